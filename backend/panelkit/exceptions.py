"""
panelkit/exceptions.py

Framework exception hierarchy.

Authorization never raises: denials are plain ``False``. Configuration
mistakes (unknown page names, duplicate slugs, unimportable models) surface
as ``ConfigurationError`` at boot or on first use.
"""
from typing import Any, Dict, Optional


class PanelError(Exception):
    """Base class for all panelkit errors"""


class ConfigurationError(PanelError):
    """A panel or resource is configured inconsistently"""


class DuplicateSlugError(ConfigurationError):
    """Two resources of the same panel resolve to the same slug"""

    def __init__(self, panel_id: str, slug: str, resources: Optional[list] = None):
        self.panel_id = panel_id
        self.slug = slug
        self.resources = resources or []
        names = ", ".join(self.resources)
        super().__init__(f"Panel '{panel_id}' registers slug '{slug}' more than once ({names})")


class RouteNotFoundError(ConfigurationError):
    """The router has no route by that name, or its parameters do not fit"""

    def __init__(self, name: str, parameters: Optional[Dict[str, Any]] = None):
        self.name = name
        self.parameters = parameters or {}
        super().__init__(f"Route [{name}] not defined or missing parameters {sorted(self.parameters)}")


class ModelResolutionError(ConfigurationError):
    """A dotted model identifier could not be imported"""


__all__ = [
    "PanelError",
    "ConfigurationError",
    "DuplicateSlugError",
    "RouteNotFoundError",
    "ModelResolutionError",
]
