"""
panelkit - admin panel resources for FastAPI and SQLAlchemy

A panel mounts a set of resources under one path. Each resource maps a
SQLAlchemy model to pages, navigation, policy-based authorization and
global search.

Modules:
- naming: slug, label and model identifier conventions
- resources: ResourceConfig, Resource and the built-in pages
- security: authorization gate, policies, JWT authentication
- search: global search constraints and SQL dialect dispatch
- routing: named routes and URL generation over FastAPI
- panel: Panel builder, PanelProvider, panel registry

Usage:
    >>> from panelkit import Panel, PanelProvider, ResourceConfig, Router
    >>> router = Router(app)
    >>> AdminPanelProvider().register(router)
"""
from panelkit.context import PanelContext
from panelkit.exceptions import (
    ConfigurationError,
    DuplicateSlugError,
    ModelResolutionError,
    PanelError,
    RouteNotFoundError,
)
from panelkit.panel import Panel, PanelProvider, PanelRegistry, panel_registry
from panelkit.resources import Resource, ResourceConfig
from panelkit.routing import Router
from panelkit.security import AuthorizationGate, Policy, gate

__all__ = [
    "PanelContext",
    "ConfigurationError",
    "DuplicateSlugError",
    "ModelResolutionError",
    "PanelError",
    "RouteNotFoundError",
    "Panel",
    "PanelProvider",
    "PanelRegistry",
    "panel_registry",
    "Resource",
    "ResourceConfig",
    "Router",
    "AuthorizationGate",
    "Policy",
    "gate",
]
