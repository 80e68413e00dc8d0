"""
panelkit/resources/pages.py

Resource pages and their route registrations.

A resource maps page names to PageRegistration values:

    pages={
        "index": ListRecords.route("/"),
        "create": CreateRecord.route("/create"),
        "view": ViewRecord.route("/{record}"),
        "edit": EditRecord.route("/{record}/edit"),
    }

The built-in pages answer with JSON payloads; rendering is left to the host
application.
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Tuple, Type

from fastapi import Depends, HTTPException, Query, status
from fastapi.routing import APIRoute

from panelkit.context import PanelContext, current_panel_context
from panelkit.naming import headline, kebab
from panelkit.routing import RouteGroup, route_key
from panelkit.schemas import CreateRecordResponse, DashboardResponse, RecordListResponse, RecordResponse

if TYPE_CHECKING:
    from panelkit.panel import Panel
    from panelkit.resources.resource import Resource


@dataclass(frozen=True)
class PageRegistration:
    """A page class bound to the path it is served at"""

    page: Type["Page"]
    path: str = "/"

    def register_route(self, group: RouteGroup, resource: "Resource", name: str) -> APIRoute:
        page = self.page(resource)
        return group.add_route(self.path, page.endpoint(), name=name, methods=page.methods)


class Page:
    """Base class of resource pages"""

    methods: Tuple[str, ...] = ("GET",)

    def __init__(self, resource: "Resource"):
        self.resource = resource

    @classmethod
    def route(cls, path: str = "/") -> PageRegistration:
        return PageRegistration(page=cls, path=path)

    def endpoint(self) -> Callable:
        raise NotImplementedError

    @staticmethod
    def authorize(allowed: bool) -> None:
        if not allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This action is unauthorized.")

    def find_record(self, ctx: PanelContext, key: str) -> Any:
        record = self.resource.resolve_record_route_binding(ctx, key)
        if record is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found")
        return record

    def record_payload(self, record: Any) -> RecordResponse:
        return RecordResponse(
            key=str(route_key(record)),
            title=self.resource.get_record_title(record),
        )


class ListRecords(Page):

    def endpoint(self) -> Callable:
        def list_records(
            ctx: PanelContext = Depends(current_panel_context),
            page: int = Query(1, ge=1),
            per_page: int = Query(10, ge=1, le=100),
        ) -> RecordListResponse:
            self.authorize(self.resource.can_view_any(ctx))

            query = self.resource.get_query(ctx)
            total = query.count()
            records = query.offset((page - 1) * per_page).limit(per_page).all()

            return RecordListResponse(
                resource=self.resource.get_plural_model_label(ctx.locale),
                total=total,
                page=page,
                per_page=per_page,
                records=[self.record_payload(record) for record in records],
            )

        return list_records


class CreateRecord(Page):

    def endpoint(self) -> Callable:
        def create_record(ctx: PanelContext = Depends(current_panel_context)) -> CreateRecordResponse:
            self.authorize(self.resource.can_create(ctx))
            return CreateRecordResponse(
                resource=self.resource.get_slug(),
                model_label=self.resource.get_model_label(),
            )

        return create_record


class ViewRecord(Page):

    def endpoint(self) -> Callable:
        def view_record(record: str, ctx: PanelContext = Depends(current_panel_context)) -> RecordResponse:
            instance = self.find_record(ctx, record)
            self.authorize(self.resource.can_view(ctx, instance))
            return self.record_payload(instance)

        return view_record


class EditRecord(Page):

    def endpoint(self) -> Callable:
        def edit_record(record: str, ctx: PanelContext = Depends(current_panel_context)) -> RecordResponse:
            instance = self.find_record(ctx, record)
            self.authorize(self.resource.can_edit(ctx, instance))
            return self.record_payload(instance)

        return edit_record


class PanelPage:
    """
    Standalone page of a panel, registered as ``pages.{slug}``

    The slug defaults to the kebab-cased class name.
    """

    slug: Optional[str] = None
    path: Optional[str] = None
    methods: Tuple[str, ...] = ("GET",)

    def __init__(self, panel: "Panel"):
        self.panel = panel

    @classmethod
    def get_slug(cls) -> str:
        return cls.slug or kebab(cls.__name__)

    @classmethod
    def get_path(cls) -> str:
        return cls.path if cls.path is not None else f"/{cls.get_slug()}"

    def endpoint(self) -> Callable:
        raise NotImplementedError

    def register_route(self, group: RouteGroup) -> APIRoute:
        return group.add_route(self.get_path(), self.endpoint(), name=f"pages.{self.get_slug()}", methods=self.methods)


class Dashboard(PanelPage):
    path = "/"

    def endpoint(self) -> Callable:
        def dashboard(ctx: PanelContext = Depends(current_panel_context)) -> DashboardResponse:
            return DashboardResponse(
                panel=ctx.panel_id,
                title=headline(self.get_slug()),
                navigation_items=sum(len(group.items) for group in self.panel.get_navigation(ctx)),
            )

        return dashboard


__all__ = [
    "PageRegistration",
    "Page",
    "ListRecords",
    "CreateRecord",
    "ViewRecord",
    "EditRecord",
    "PanelPage",
    "Dashboard",
]
