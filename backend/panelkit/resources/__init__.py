"""
panelkit/resources - resource configuration, resolution and pages

Usage:
    >>> from panelkit.resources import Resource, ResourceConfig, ListRecords, EditRecord
    >>> POSTS = ResourceConfig(
    ...     name="BlogPostResource",
    ...     model=BlogPost,
    ...     record_title_attribute="title",
    ...     pages={"index": ListRecords.route("/"), "edit": EditRecord.route("/{record}/edit")},
    ... )
"""
from panelkit.resources.pages import (
    CreateRecord,
    Dashboard,
    EditRecord,
    ListRecords,
    Page,
    PageRegistration,
    PanelPage,
    ViewRecord,
)
from panelkit.resources.resource import Resource, ResourceConfig

__all__ = [
    "CreateRecord",
    "Dashboard",
    "EditRecord",
    "ListRecords",
    "Page",
    "PageRegistration",
    "PanelPage",
    "ViewRecord",
    "Resource",
    "ResourceConfig",
]
