"""
panelkit/panel.py

Panel - a mounted admin area grouping resources, pages, middleware,
authentication and optional tenancy.

Panels are configured fluently by a PanelProvider and booted once against a
Router:

    class AdminPanelProvider(PanelProvider):
        def panel(self, panel: Panel) -> Panel:
            return (
                panel.id("admin")
                .path("admin")
                .login()
                .resources([POSTS, CATEGORIES])
                .middleware([DispatchServingPanelEvent])
                .auth_middleware([Authenticate])
            )

    AdminPanelProvider().register(router)
"""
import logging
import threading
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, Union

from fastapi import Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session
from starlette.middleware import Middleware

from panelkit.config import Settings, settings as default_settings
from panelkit.context import PanelContext, current_panel_context
from panelkit.database import get_db
from panelkit.events import PANEL_REGISTERED, Event, EventBus, event_bus
from panelkit.exceptions import ConfigurationError, DuplicateSlugError
from panelkit.naming import snake
from panelkit.navigation import NavigationGroup, build_navigation
from panelkit.resources.pages import PanelPage
from panelkit.resources.resource import Resource, ResourceConfig
from panelkit.routing import RouteGroup, Router, coerce_route_key, route_key, route_key_attribute
from panelkit.schemas import GlobalSearchGroupResponse, NavigationGroupResponse, NavigationItemResponse
from panelkit.search.global_search import GlobalSearchResultGroup, split_search_words
from panelkit.security.auth import login_endpoint, verify_password
from panelkit.security.gate import AuthorizationGate, gate as default_gate

logger = logging.getLogger(__name__)

# (db, username, password) -> user or None
Authenticator = Callable[[Session, str, str], Any]

# (db, identifier) -> user or None
UserLoader = Callable[[Session, Any], Any]


class Panel:
    """Fluent panel builder; ``register()`` boots it against a router"""

    def __init__(self, settings: Optional[Settings] = None, bus: Optional[EventBus] = None):
        self.settings = settings or default_settings
        self.bus = bus if bus is not None else event_bus

        self._id: Optional[str] = None
        self._path = ""
        self._has_login = False
        self._authenticator: Optional[Authenticator] = None
        self._resources: List[Union[ResourceConfig, Resource]] = []
        self._pages: List[Type[PanelPage]] = []
        self._middleware: List[Any] = []
        self._auth_middleware: List[Any] = []
        self._tenant_model: Optional[type] = None
        self._tenant_ownership_relationship: Optional[str] = None
        self._user_model: Optional[type] = None
        self._user_identifier_attribute = "email"
        self._user_password_attribute = "password"
        self._user_loader: Optional[UserLoader] = None
        self._gate: AuthorizationGate = default_gate
        self._navigation_groups: List[str] = []

        self._router: Optional[Router] = None
        self._registered_resources: List[Resource] = []

    def __repr__(self) -> str:
        return f"Panel({self._id!r})"

    # ============== Configuration ==============

    def id(self, panel_id: str) -> "Panel":
        self._id = panel_id
        return self

    def path(self, path: str) -> "Panel":
        self._path = path.strip("/")
        return self

    def login(self, authenticator: Optional[Authenticator] = None) -> "Panel":
        self._has_login = True
        self._authenticator = authenticator
        return self

    def resources(self, resources: Sequence[Union[ResourceConfig, Resource]]) -> "Panel":
        self._resources = list(resources)
        return self

    def pages(self, pages: Sequence[Type[PanelPage]]) -> "Panel":
        self._pages = list(pages)
        return self

    def middleware(self, middleware: Sequence[Any]) -> "Panel":
        """Starlette middleware of the panel sub-app: ``Middleware`` entries or classes"""
        self._middleware = list(middleware)
        return self

    def auth_middleware(self, middleware: Sequence[Any]) -> "Panel":
        """Dependencies guarding authenticated routes; classes receive the panel"""
        self._auth_middleware = list(middleware)
        return self

    def tenant(self, model: type, ownership_relationship: Optional[str] = None) -> "Panel":
        self._tenant_model = model
        self._tenant_ownership_relationship = ownership_relationship
        return self

    def user_model(
        self,
        model: type,
        identifier_attribute: str = "email",
        password_attribute: str = "password",
    ) -> "Panel":
        self._user_model = model
        self._user_identifier_attribute = identifier_attribute
        self._user_password_attribute = password_attribute
        return self

    def user_loader(self, loader: UserLoader) -> "Panel":
        self._user_loader = loader
        return self

    def gate(self, gate: AuthorizationGate) -> "Panel":
        self._gate = gate
        return self

    def navigation_groups(self, groups: Sequence[str]) -> "Panel":
        self._navigation_groups = list(groups)
        return self

    # ============== Getters ==============

    def get_id(self) -> str:
        if not self._id:
            raise ConfigurationError("Panel has no id")
        return self._id

    def get_path(self) -> str:
        return self._path

    def has_login(self) -> bool:
        return self._has_login

    def has_tenancy(self) -> bool:
        return self._tenant_model is not None

    def get_tenant_model(self) -> Optional[type]:
        return self._tenant_model

    def get_gate(self) -> AuthorizationGate:
        return self._gate

    def get_router(self) -> Router:
        if self._router is None:
            raise ConfigurationError(f"{self} is not registered")
        return self._router

    def get_resources(self) -> List[Resource]:
        return list(self._registered_resources)

    def get_resource(self, slug: str) -> Optional[Resource]:
        for resource in self._registered_resources:
            if resource.get_slug() == slug:
                return resource
        return None

    def get_pages(self) -> List[Type[PanelPage]]:
        return list(self._pages)

    def get_middleware(self) -> List[Middleware]:
        entries = []
        for entry in self._middleware:
            if isinstance(entry, Middleware):
                entries.append(entry)
            elif getattr(entry, "panel_aware", False):
                entries.append(Middleware(entry, panel_id=self.get_id(), bus=self.bus))
            else:
                entries.append(Middleware(entry))
        return entries

    def get_auth_middleware(self) -> List[Callable]:
        return [entry(self) if isinstance(entry, type) else entry for entry in self._auth_middleware]

    def get_route_name_prefix(self) -> str:
        return f"{self.settings.ROUTE_NAME_PREFIX}.{self.get_id()}."

    def get_url(self, name: str, parameters: Optional[Dict[str, Any]] = None, is_absolute: bool = True) -> str:
        """URL of a panel route by its short name (``auth.login``, ``global-search``)"""
        return self.get_router().resolve_url(self.get_route_name_prefix() + name, parameters, is_absolute)

    # ============== Users & tenants ==============

    def authenticate_user(self, db: Session, username: str, password: str) -> Any:
        if self._authenticator is not None:
            return self._authenticator(db, username, password)

        model = self._require_user_model()
        user = db.query(model).filter(getattr(model, self._user_identifier_attribute) == username).first()
        if user is None:
            return None

        if not verify_password(password, getattr(user, self._user_password_attribute, None)):
            return None

        if getattr(user, "is_active", True) is False:
            return None

        return user

    def get_user_identifier(self, user: Any) -> Any:
        return route_key(user)

    def load_user(self, db: Session, identifier: Any) -> Any:
        if identifier is None:
            return None

        if self._user_loader is not None:
            return self._user_loader(db, identifier)

        return self._find_by_route_key(db, self._require_user_model(), identifier)

    def resolve_tenant(self, db: Session, key: Any) -> Any:
        if self._tenant_model is None or key is None:
            return None
        return self._find_by_route_key(db, self._tenant_model, key)

    def _require_user_model(self) -> type:
        if self._user_model is None:
            raise ConfigurationError(f"{self} has no user model; call user_model() or login(authenticator)")
        return self._user_model

    @staticmethod
    def _find_by_route_key(db: Session, model: type, key: Any) -> Any:
        attribute = route_key_attribute(model)
        try:
            key = coerce_route_key(attribute, key)
        except ValueError:
            return None
        return db.query(model).filter(attribute == key).first()

    # ============== Boot ==============

    def register(self, router: Router) -> "Panel":
        """Build resources, check slugs and register every panel route"""
        if not self._path:
            raise ConfigurationError(f"Panel '{self.get_id()}' needs a non-empty path")
        self._router = router
        self._registered_resources = [self._build_resource(entry, router) for entry in self._resources]
        self._ensure_unique_slugs()

        router.register_route_group(
            name_prefix=self.get_route_name_prefix(),
            path_prefix=f"/{self._path}",
            middleware=[],
            register=self._register_routes,
            asgi_middleware=self.get_middleware(),
        )

        logger.info(
            f"Panel '{self.get_id()}' registered at '/{self._path}' with "
            f"{len(self._registered_resources)} resources and {len(self._pages)} pages"
        )
        self.bus.publish(Event(
            event_type=PANEL_REGISTERED,
            data={
                "panel_id": self.get_id(),
                "path": f"/{self._path}",
                "resources": [resource.get_slug() for resource in self._registered_resources],
            },
            source="Panel",
        ))
        return self

    def _build_resource(self, entry: Union[ResourceConfig, Resource], router: Router) -> Resource:
        if isinstance(entry, Resource):
            resource = Resource(entry.config, gate=self._gate, router=router, settings=entry.settings)
        else:
            resource = Resource(entry, gate=self._gate, router=router, settings=self.settings)

        if self.has_tenancy() and resource.config.tenant_ownership_relationship is None:
            resource.configure(
                tenant_ownership_relationship=self._tenant_ownership_relationship or snake(self._tenant_model.__name__)
            )
        return resource

    def _ensure_unique_slugs(self) -> None:
        by_slug: Dict[str, List[str]] = {}
        for resource in self._registered_resources:
            by_slug.setdefault(resource.get_slug(), []).append(resource.config.name)

        for slug, names in by_slug.items():
            if len(names) > 1:
                raise DuplicateSlugError(self.get_id(), slug, names)

    def _register_routes(self, group: RouteGroup) -> None:
        if self._has_login:
            group.add_route("/login", login_endpoint(self), name="auth.login", methods=("POST",))

        group.register_route_group(
            name_prefix="",
            path_prefix="/{tenant}" if self.has_tenancy() else "",
            middleware=[*self.get_auth_middleware(), self.context_dependency()],
            register=self._register_authenticated_routes,
        )

    def _register_authenticated_routes(self, group: RouteGroup) -> None:
        for page in self._pages:
            page(self).register_route(group)

        group.add_route("/global-search", self.global_search_endpoint(), name="global-search")
        group.add_route("/navigation", self.navigation_endpoint(), name="navigation")

        def register_resources(resources_group: RouteGroup) -> None:
            for resource in self._registered_resources:
                resource.routes(self, resources_group)

        group.register_route_group(
            name_prefix="resources.",
            path_prefix="",
            middleware=[],
            register=register_resources,
        )

    # ============== Request handling ==============

    def context_dependency(self) -> Callable:
        """Dependency building the request's PanelContext"""

        def panel_context(request: Request, db: Session = Depends(get_db)) -> PanelContext:
            user = getattr(request.state, "user", None)
            tenant = None

            if self.has_tenancy():
                tenant = self.resolve_tenant(db, request.path_params.get("tenant"))
                if tenant is None:
                    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")

                can_access_tenant = getattr(user, "can_access_tenant", None)
                if callable(can_access_tenant) and not can_access_tenant(tenant):
                    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This action is unauthorized.")

            context = PanelContext(panel_id=self.get_id(), db=db, user=user, tenant=tenant)
            request.state.panel_context = context
            return context

        return panel_context

    def get_navigation(self, ctx: PanelContext) -> List[NavigationGroup]:
        items = [item for resource in self._registered_resources for item in resource.register_navigation_items(ctx)]
        return build_navigation(items, self._navigation_groups)

    def get_global_search_results(self, ctx: PanelContext, search: str) -> List[GlobalSearchResultGroup]:
        """One labelled group per globally searchable resource with results"""
        if not split_search_words(search):
            return []

        groups = []
        for resource in self._registered_resources:
            if not resource.can_globally_search(ctx):
                continue

            results = resource.get_global_search_results(ctx, search)
            if results:
                groups.append(GlobalSearchResultGroup(label=resource.get_plural_model_label(ctx.locale), results=results))

        return groups

    def global_search_endpoint(self) -> Callable:
        def global_search(
            search: str = Query("", max_length=200),
            ctx: PanelContext = Depends(current_panel_context),
        ) -> List[GlobalSearchGroupResponse]:
            return [GlobalSearchGroupResponse(**asdict(group)) for group in self.get_global_search_results(ctx, search)]

        return global_search

    def navigation_endpoint(self) -> Callable:
        def navigation(
            route: Optional[str] = Query(None),
            ctx: PanelContext = Depends(current_panel_context),
        ) -> List[NavigationGroupResponse]:
            return [
                NavigationGroupResponse(
                    label=group.label,
                    items=[
                        NavigationItemResponse(
                            label=item.label,
                            url=item.url,
                            icon=item.icon,
                            active_icon=item.active_icon,
                            badge=item.badge,
                            badge_color=item.badge_color,
                            sort=item.sort,
                            is_active=item.is_active(route),
                        )
                        for item in group.items
                    ],
                )
                for group in self.get_navigation(ctx)
            ]

        return navigation


class PanelProvider:
    """Configures one panel; subclasses implement panel()"""

    def panel(self, panel: Panel) -> Panel:
        raise NotImplementedError

    def register(
        self,
        router: Router,
        registry: Optional["PanelRegistry"] = None,
        settings: Optional[Settings] = None,
        bus: Optional[EventBus] = None,
    ) -> Panel:
        registry = registry if registry is not None else panel_registry
        panel = self.panel(Panel(settings=settings, bus=bus))
        registry.add(panel)
        try:
            panel.register(router)
        except ConfigurationError:
            registry.remove(panel.get_id())
            raise
        return panel


class PanelRegistry:
    """Registered panels by id"""

    def __init__(self):
        self._panels: Dict[str, Panel] = {}
        self._lock = threading.Lock()

    def add(self, panel: Panel) -> None:
        with self._lock:
            if panel.get_id() in self._panels:
                raise ConfigurationError(f"Panel '{panel.get_id()}' is already registered")
            self._panels[panel.get_id()] = panel

    def remove(self, panel_id: str) -> None:
        with self._lock:
            self._panels.pop(panel_id, None)

    def get(self, panel_id: str) -> Optional[Panel]:
        return self._panels.get(panel_id)

    def get_default(self) -> Optional[Panel]:
        """First registered panel"""
        with self._lock:
            return next(iter(self._panels.values()), None)

    def all(self) -> List[Panel]:
        with self._lock:
            return list(self._panels.values())

    def clear(self) -> None:
        """Forget every panel (for tests)"""
        with self._lock:
            self._panels.clear()


panel_registry = PanelRegistry()

__all__ = [
    "Authenticator",
    "UserLoader",
    "Panel",
    "PanelProvider",
    "PanelRegistry",
    "panel_registry",
]
