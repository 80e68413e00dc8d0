"""
panelkit/resources/resource.py

Resource - declarative mapping of a data model to admin pages, navigation,
authorization and global search.

A ResourceConfig is an immutable value built once per model type. A Resource
resolves it against its collaborators (authorization gate, router, settings)
and answers per-request questions from an explicit PanelContext. The few
behaviours meant to be customised (query scoping, badges, search result
shaping) are strategy callables on the config.
"""
import importlib
import logging
import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from sqlalchemy.orm import Query

from panelkit.config import Settings, settings as default_settings
from panelkit.context import PanelContext
from panelkit.exceptions import ConfigurationError, ModelResolutionError
from panelkit.naming import (
    headline,
    locale_has_pluralization,
    model_identifier,
    model_label,
    pluralize,
    resource_slug,
    snake,
)
from panelkit.navigation import NavigationItem
from panelkit.resources.pages import PageRegistration
from panelkit.routing import Router, coerce_route_key, route_key_attribute
from panelkit.search.global_search import (
    GlobalSearchAction,
    GlobalSearchResult,
    SearchableAttribute,
    apply_global_search_constraints,
    split_search_words,
)
from panelkit.security.gate import AuthorizationGate, gate as default_gate, model_key

logger = logging.getLogger(__name__)

_SLUG_PATTERN = re.compile(r"[A-Za-z0-9._~-]+(/[A-Za-z0-9._~-]+)*")

QueryScope = Callable[[Query, PanelContext], Query]
TenantScope = Callable[[Query, Any], Query]
ContextLabel = Callable[[PanelContext], Optional[str]]


@dataclass(frozen=True)
class ResourceConfig:
    """
    Static configuration of one resource

    ``name`` is the declared name the conventions work from, either a bare
    ``BlogPostResource`` or a dotted ``app.admin.resources.blog.PostResource``.
    Every other field is optional and defaulted independently.
    """

    name: str
    model: Union[type, str, None] = None
    slug: Optional[str] = None

    # Labels
    model_label: Optional[str] = None
    plural_model_label: Optional[str] = None
    label: Optional[str] = None  # legacy, use model_label
    plural_label: Optional[str] = None  # legacy, use plural_model_label
    breadcrumb: Optional[str] = None
    record_title_attribute: Optional[str] = None
    record_route_key_name: Optional[str] = None

    # Navigation
    navigation_group: Optional[str] = None
    navigation_icon: Optional[str] = None
    active_navigation_icon: Optional[str] = None
    navigation_label: Optional[str] = None
    navigation_sort: Optional[int] = None
    navigation_badge: Optional[ContextLabel] = None
    navigation_badge_color: Optional[ContextLabel] = None
    should_register_navigation: bool = True
    is_discovered: bool = True

    # Global search
    is_globally_searchable: bool = True
    globally_searchable_attributes: Optional[Sequence[SearchableAttribute]] = None
    global_search_results_limit: int = field(default_factory=lambda: default_settings.GLOBAL_SEARCH_RESULTS_LIMIT)
    global_search_query: Optional[QueryScope] = None
    global_search_result_title: Optional[Callable[[Any], str]] = None
    global_search_result_details: Optional[Callable[[Any], Dict[str, str]]] = None
    global_search_result_actions: Optional[Callable[[Any], List[GlobalSearchAction]]] = None

    # Authorization
    ignore_policies: bool = False

    # Routing and query scoping
    pages: Mapping[str, PageRegistration] = field(default_factory=dict)
    route_middleware: Sequence[Callable] = ()
    tenant_ownership_relationship: Optional[str] = None
    scope_query: Optional[QueryScope] = None
    scope_query_to_tenant: Optional[TenantScope] = None

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("Resource name must not be empty")
        if self.global_search_results_limit <= 0:
            raise ConfigurationError(
                f"{self.name}: global_search_results_limit must be positive, got {self.global_search_results_limit}"
            )
        if self.slug is not None and not _SLUG_PATTERN.fullmatch(self.slug):
            raise ConfigurationError(f"{self.name}: slug '{self.slug}' is not URL-safe")

        object.__setattr__(self, "pages", MappingProxyType(dict(self.pages)))
        object.__setattr__(self, "route_middleware", tuple(self.route_middleware))


class Resource:
    """
    Resolver over a ResourceConfig

    Example:
        >>> posts = Resource(ResourceConfig(name="BlogPostResource", model=BlogPost), gate=gate, router=router)
        >>> posts.get_slug()
        'blog-posts'
        >>> posts.get_url("edit", {"record": post}, ctx=ctx)
        'http://localhost/admin/blog-posts/7/edit'
    """

    def __init__(
        self,
        config: ResourceConfig,
        gate: Optional[AuthorizationGate] = None,
        router: Optional[Router] = None,
        settings: Optional[Settings] = None,
    ):
        self._config = config
        self.gate = gate if gate is not None else default_gate
        self.router = router
        self.settings = settings or default_settings

    @property
    def config(self) -> ResourceConfig:
        return self._config

    def __repr__(self) -> str:
        return f"Resource({self._config.name!r})"

    # ============== Boot-time configuration ==============

    def configure(self, **changes: Any) -> "Resource":
        """Swap in a config with ``changes`` applied; boot time only"""
        self._config = replace(self._config, **changes)
        return self

    def ignore_policies(self, condition: bool = True) -> None:
        self.configure(ignore_policies=condition)

    def navigation_group(self, group: Optional[str]) -> None:
        self.configure(navigation_group=group)

    def navigation_icon(self, icon: Optional[str]) -> None:
        self.configure(navigation_icon=icon)

    def navigation_sort(self, sort: Optional[int]) -> None:
        self.configure(navigation_sort=sort)

    # ============== Identity & labels ==============

    def get_model(self) -> str:
        model = self._config.model
        if isinstance(model, type):
            return model_key(model)
        if model:
            return model
        return model_identifier(self._config.name, self.settings.MODEL_NAMESPACE)

    def get_model_class(self) -> type:
        if isinstance(self._config.model, type):
            return self._config.model

        identifier = self.get_model()
        module_name, _, class_name = identifier.rpartition(".")
        if not module_name:
            raise ModelResolutionError(f"{self._config.name}: model '{identifier}' is not a dotted path")

        try:
            module = importlib.import_module(module_name)
        except ImportError as exc:
            raise ModelResolutionError(f"{self._config.name}: cannot import module '{module_name}'") from exc

        try:
            return getattr(module, class_name)
        except AttributeError:
            raise ModelResolutionError(f"{self._config.name}: '{module_name}' has no model '{class_name}'") from None

    def get_label(self) -> Optional[str]:
        return self._config.label

    def get_plural_label(self) -> Optional[str]:
        return self._config.plural_label

    def get_model_label(self) -> str:
        return self._config.model_label or self.get_label() or model_label(self.get_model())

    def get_plural_model_label(self, locale: Optional[str] = None) -> str:
        label = self._config.plural_model_label or self.get_plural_label()
        if label:
            return label

        locale = locale or self.settings.LOCALE
        if locale_has_pluralization(locale):
            return pluralize(self.get_model_label(), locale)

        return self.get_model_label()

    def get_slug(self) -> str:
        if self._config.slug:
            return self._config.slug

        slug = resource_slug(self._config.name, self.settings.RESOURCE_NAMESPACE)
        if not slug:
            raise ConfigurationError(f"Cannot derive a slug from resource name '{self._config.name}'")
        return slug

    def get_breadcrumb(self, locale: Optional[str] = None) -> str:
        return self._config.breadcrumb or headline(self.get_plural_model_label(locale))

    def get_record_title_attribute(self) -> Optional[str]:
        return self._config.record_title_attribute

    def has_record_title(self) -> bool:
        return self.get_record_title_attribute() is not None

    def get_record_title(self, record: Any) -> str:
        attribute = self.get_record_title_attribute()
        title = getattr(record, attribute, None) if record is not None and attribute else None
        return str(title) if title is not None else self.get_model_label()

    def get_record_route_key_name(self) -> Optional[str]:
        return self._config.record_route_key_name

    def is_discovered(self) -> bool:
        return self._config.is_discovered

    # ============== Authorization ==============

    def should_ignore_policies(self) -> bool:
        return self._config.ignore_policies

    def can(self, ctx: PanelContext, action: str, record: Any = None) -> bool:
        """
        Authorize ``action`` for the context's user.

        Models without a policy, and actions the policy does not define, are
        allowed: policies opt resources into restrictions.
        """
        if self.should_ignore_policies():
            return True

        model = self.get_model_class()
        policy = self.gate.policy_for(model)

        if policy is None:
            logger.debug(f"{self}: no policy for {model_key(model)}, allowing '{action}'")
            return True

        if not policy.has(action):
            logger.debug(f"{self}: policy does not define '{action}', allowing")
            return True

        return self.gate.check(ctx.user, action, record if record is not None else model)

    def can_view_any(self, ctx: PanelContext) -> bool:
        return self.can(ctx, "view_any")

    def can_create(self, ctx: PanelContext) -> bool:
        return self.can(ctx, "create")

    def can_edit(self, ctx: PanelContext, record: Any) -> bool:
        return self.can(ctx, "update", record)

    def can_delete(self, ctx: PanelContext, record: Any) -> bool:
        return self.can(ctx, "delete", record)

    def can_delete_any(self, ctx: PanelContext) -> bool:
        return self.can(ctx, "delete_any")

    def can_force_delete(self, ctx: PanelContext, record: Any) -> bool:
        return self.can(ctx, "force_delete", record)

    def can_force_delete_any(self, ctx: PanelContext) -> bool:
        return self.can(ctx, "force_delete_any")

    def can_reorder(self, ctx: PanelContext) -> bool:
        return self.can(ctx, "reorder")

    def can_replicate(self, ctx: PanelContext, record: Any) -> bool:
        return self.can(ctx, "replicate", record)

    def can_restore(self, ctx: PanelContext, record: Any) -> bool:
        return self.can(ctx, "restore", record)

    def can_restore_any(self, ctx: PanelContext) -> bool:
        return self.can(ctx, "restore_any")

    def can_view(self, ctx: PanelContext, record: Any) -> bool:
        return self.can(ctx, "view", record)

    def can_globally_search(self, ctx: PanelContext) -> bool:
        return (
            self._config.is_globally_searchable
            and bool(self.get_globally_searchable_attributes())
            and self.can_view_any(ctx)
        )

    # ============== Query scoping ==============

    def get_query(self, ctx: PanelContext) -> Query:
        """Base query of the model, scoped to the context's tenant"""
        if ctx.db is None:
            raise ConfigurationError(f"{self}: the panel context carries no database session")

        query = ctx.db.query(self.get_model_class())

        if ctx.tenant is not None:
            query = self.scope_query_to_tenant(query, ctx.tenant)

        if self._config.scope_query is not None:
            query = self._config.scope_query(query, ctx)

        return query

    def scope_query_to_tenant(self, query: Query, tenant: Any) -> Query:
        if self._config.scope_query_to_tenant is not None:
            return self._config.scope_query_to_tenant(query, tenant)

        model = self.get_model_class()
        name = self._config.tenant_ownership_relationship or snake(type(tenant).__name__)
        relationship = getattr(model, name, None)
        if relationship is None:
            raise ConfigurationError(
                f"{model.__name__} has no '{name}' relationship to scope it to tenant {type(tenant).__name__}"
            )

        return query.filter(relationship == tenant)

    def get_global_search_query(self, ctx: PanelContext) -> Query:
        query = self.get_query(ctx)
        if self._config.global_search_query is not None:
            query = self._config.global_search_query(query, ctx)
        return query

    def resolve_record_route_binding(self, ctx: PanelContext, key: Any) -> Any:
        """Record whose route key equals ``key``, or None"""
        attribute = route_key_attribute(self.get_model_class(), self.get_record_route_key_name())

        try:
            key = coerce_route_key(attribute, key)
        except ValueError:
            return None

        return self.get_query(ctx).filter(attribute == key).first()

    # ============== Global search ==============

    def get_globally_searchable_attributes(self) -> List[SearchableAttribute]:
        if self._config.globally_searchable_attributes is not None:
            return list(self._config.globally_searchable_attributes)

        title_attribute = self.get_record_title_attribute()
        return [title_attribute] if title_attribute else []

    def get_global_search_results_limit(self) -> int:
        return self._config.global_search_results_limit

    def get_global_search_result_title(self, record: Any) -> str:
        if self._config.global_search_result_title is not None:
            return self._config.global_search_result_title(record)
        return self.get_record_title(record)

    def get_global_search_result_details(self, record: Any) -> Dict[str, str]:
        if self._config.global_search_result_details is not None:
            return dict(self._config.global_search_result_details(record))
        return {}

    def get_global_search_result_actions(self, record: Any) -> List[GlobalSearchAction]:
        if self._config.global_search_result_actions is not None:
            return list(self._config.global_search_result_actions(record))
        return []

    def get_global_search_result_url(self, ctx: PanelContext, record: Any) -> Optional[str]:
        if self.has_page("edit") and self.can_edit(ctx, record):
            return self.get_url("edit", {"record": record}, ctx=ctx)

        if self.has_page("view") and self.can_view(ctx, record):
            return self.get_url("view", {"record": record}, ctx=ctx)

        return None

    def get_global_search_results(self, ctx: PanelContext, search: str) -> List[GlobalSearchResult]:
        """
        Records matching every word of ``search`` in any searchable attribute.

        Blank search text matches nothing and runs no query. Records without a
        reachable edit/view URL are left out.
        """
        if not split_search_words(search):
            return []

        query = apply_global_search_constraints(
            self.get_global_search_query(ctx),
            search,
            self.get_globally_searchable_attributes(),
        )

        results = []
        for record in query.limit(self.get_global_search_results_limit()).all():
            url = self.get_global_search_result_url(ctx, record)
            if not url:
                continue

            results.append(GlobalSearchResult(
                title=self.get_global_search_result_title(record),
                url=url,
                details=self.get_global_search_result_details(record),
                actions=self.get_global_search_result_actions(record),
            ))

        return results

    # ============== Routing ==============

    def get_pages(self) -> Dict[str, PageRegistration]:
        return dict(self._config.pages)

    def has_page(self, page: str) -> bool:
        return page in self._config.pages

    def get_route_base_name(self, ctx: Optional[PanelContext] = None, panel_id: Optional[str] = None) -> str:
        panel_id = panel_id or (ctx.panel_id if ctx is not None else None)
        if not panel_id:
            raise ConfigurationError(f"{self}: a panel id is required to build route names")

        return f"{self.settings.ROUTE_NAME_PREFIX}.{panel_id}.resources.{self.get_slug()}"

    def get_url(
        self,
        name: str = "index",
        parameters: Optional[Dict[str, Any]] = None,
        is_absolute: bool = True,
        ctx: Optional[PanelContext] = None,
        panel_id: Optional[str] = None,
        tenant: Any = None,
    ) -> str:
        """
        URL of one of the resource's pages

        The tenant parameter defaults to the explicit ``tenant``, else the
        context's routable tenant.

        Raises:
            RouteNotFoundError: no page route called ``name`` is registered
        """
        parameters = dict(parameters or {})
        if parameters.get("tenant") is None:
            if tenant is None and ctx is not None:
                tenant = ctx.routable_tenant
            parameters["tenant"] = tenant

        route_name = f"{self.get_route_base_name(ctx=ctx, panel_id=panel_id)}.{name}"
        return self._require_router().resolve_url(route_name, parameters, is_absolute)

    def get_route_middleware(self, panel: Any) -> List[Callable]:
        return list(self._config.route_middleware)

    def routes(self, panel: Any, router: Any) -> None:
        """Register this resource's page routes in a ``{slug}.`` group of ``router``"""
        slug = self.get_slug()

        def register_pages(group) -> None:
            for name, page in self.get_pages().items():
                page.register_route(group, self, name)

        router.register_route_group(
            name_prefix=f"{slug}.",
            path_prefix=f"/{slug}",
            middleware=self.get_route_middleware(panel),
            register=register_pages,
        )

    def _require_router(self) -> Router:
        if self.router is None:
            raise ConfigurationError(f"{self} is not registered with a router")
        return self.router

    # ============== Navigation ==============

    def should_register_navigation(self) -> bool:
        return self._config.should_register_navigation

    def get_navigation_group(self) -> Optional[str]:
        return self._config.navigation_group

    def get_navigation_icon(self) -> str:
        return self._config.navigation_icon or self.settings.DEFAULT_NAVIGATION_ICON

    def get_active_navigation_icon(self) -> str:
        return self._config.active_navigation_icon or self.get_navigation_icon()

    def get_navigation_label(self, locale: Optional[str] = None) -> str:
        return self._config.navigation_label or headline(self.get_plural_model_label(locale))

    def get_navigation_badge(self, ctx: PanelContext) -> Optional[str]:
        if self._config.navigation_badge is None:
            return None
        return self._config.navigation_badge(ctx)

    def get_navigation_badge_color(self, ctx: PanelContext) -> Optional[str]:
        if self._config.navigation_badge_color is None:
            return None
        return self._config.navigation_badge_color(ctx)

    def get_navigation_sort(self) -> Optional[int]:
        return self._config.navigation_sort

    def get_navigation_url(self, ctx: PanelContext) -> str:
        return self.get_url(ctx=ctx)

    def get_navigation_items(self, ctx: PanelContext) -> List[NavigationItem]:
        route_base_name = self.get_route_base_name(ctx=ctx)

        return [
            NavigationItem(
                label=self.get_navigation_label(ctx.locale),
                url=self.get_navigation_url(ctx),
                group=self.get_navigation_group(),
                icon=self.get_navigation_icon(),
                active_icon=self.get_active_navigation_icon(),
                active_route_pattern=f"{route_base_name}.*",
                badge=self.get_navigation_badge(ctx),
                badge_color=self.get_navigation_badge_color(ctx),
                sort=self.get_navigation_sort(),
            ),
        ]

    def register_navigation_items(self, ctx: PanelContext) -> List[NavigationItem]:
        """Navigation items for ``ctx``; none when hidden or not viewable"""
        if not self.should_register_navigation():
            return []

        if not self.can_view_any(ctx):
            return []

        return self.get_navigation_items(ctx)


__all__ = [
    "QueryScope",
    "TenantScope",
    "ContextLabel",
    "ResourceConfig",
    "Resource",
]
