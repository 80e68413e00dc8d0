"""
panelkit/routing.py

Router adapter over a FastAPI application.

Routes are registered inside named, prefixed groups whose "middleware" are
FastAPI dependencies. A top-level group may instead be backed by a mounted
sub-application carrying its own Starlette middleware stack (one per panel).
Every named route is indexed here so URLs can be generated by name across
mounts.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from fastapi import Depends, FastAPI
from fastapi.routing import APIRoute
from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm.state import InstanceState
from starlette.datastructures import URL
from starlette.middleware import Middleware
from starlette.routing import NoMatchFound

from panelkit.config import settings
from panelkit.exceptions import ConfigurationError, RouteNotFoundError

logger = logging.getLogger(__name__)


def route_key(value: Any) -> Any:
    """
    Value used for a route parameter

    Objects with ``get_route_key()`` decide for themselves; mapped instances
    use the column named by the model's ``__route_key__``, else their primary
    key; anything else is used as is.
    """
    getter = getattr(value, "get_route_key", None)
    if callable(getter):
        return getter()

    if isinstance(value, type):
        return value

    try:
        state = inspect(value)
    except NoInspectionAvailable:
        return value

    if not isinstance(state, InstanceState):
        return value

    key_name = getattr(type(value), "__route_key__", None)
    if key_name:
        return getattr(value, key_name)

    identity = state.identity or state.mapper.primary_key_from_instance(value)
    return identity[0] if len(identity) == 1 else "-".join(str(part) for part in identity)


def route_key_attribute(model: type, key_name: Optional[str] = None) -> Any:
    """
    Mapped attribute that route keys of ``model`` are matched against

    ``key_name``, else the model's ``__route_key__``, else its single primary
    key column.
    """
    key_name = key_name or getattr(model, "__route_key__", None)
    if key_name is None:
        mapper = inspect(model)
        if len(mapper.primary_key) != 1:
            raise ConfigurationError(f"{model.__name__} has a composite primary key; set a route key name")
        key_name = mapper.get_property_by_column(mapper.primary_key[0]).key
    return getattr(model, key_name)


def coerce_route_key(attribute: Any, key: Any) -> Any:
    """
    Convert a raw URL segment to the Python type of ``attribute``

    Raises:
        ValueError: the segment cannot be converted
    """
    try:
        python_type = attribute.expression.type.python_type
    except NotImplementedError:
        return key

    if isinstance(key, python_type):
        return key
    try:
        return python_type(key)
    except (TypeError, ValueError, ArithmeticError) as exc:
        raise ValueError(f"Cannot use {key!r} as {python_type.__name__} route key") from exc


def join_paths(*parts: str) -> str:
    segments = [part.strip("/") for part in parts if part and part.strip("/")]
    return "/" + "/".join(segments)


@dataclass(frozen=True)
class NamedRoute:
    route: APIRoute
    mount_path: str = ""


class RouteGroup:
    """A name/path prefix plus the dependencies applied to every route in it"""

    def __init__(
        self,
        router: "Router",
        target: FastAPI,
        name_prefix: str = "",
        path_prefix: str = "",
        dependencies: Optional[Sequence[Callable]] = None,
        mount_path: str = "",
    ):
        self.router = router
        self.target = target
        self.name_prefix = name_prefix
        self.path_prefix = path_prefix
        self.dependencies: List[Callable] = list(dependencies or [])
        self.mount_path = mount_path

    def register_route_group(
        self,
        name_prefix: str,
        path_prefix: str,
        middleware: Iterable[Callable],
        register: Callable[["RouteGroup"], None],
    ) -> "RouteGroup":
        group = RouteGroup(
            self.router,
            self.target,
            name_prefix=self.name_prefix + name_prefix,
            path_prefix=join_paths(self.path_prefix, path_prefix),
            dependencies=self.dependencies + list(middleware),
            mount_path=self.mount_path,
        )
        register(group)
        return group

    def add_route(
        self,
        path: str,
        endpoint: Callable,
        name: str,
        methods: Sequence[str] = ("GET",),
        **options: Any,
    ) -> APIRoute:
        full_name = self.name_prefix + name
        self.router.ensure_available(full_name)

        self.target.add_api_route(
            join_paths(self.path_prefix, path),
            endpoint,
            methods=list(methods),
            name=full_name,
            dependencies=[Depends(dependency) for dependency in self.dependencies],
            **options,
        )
        route = self.target.router.routes[-1]
        self.router.remember(full_name, route, self.mount_path)
        return route


class Router:
    """
    Named-route registry bound to a FastAPI application

    Example:
        >>> router = Router(FastAPI(), base_url="http://localhost")
        >>> router.register_route_group("blog.", "/blog", [], lambda g: g.add_route("/", index, "index"))
        >>> router.resolve_url("blog.index", {"page": 2})
        'http://localhost/blog?page=2'
    """

    def __init__(self, app: Optional[FastAPI] = None, base_url: Optional[str] = None):
        self.app = app if app is not None else FastAPI()
        self.base_url = (base_url or settings.APP_URL).rstrip("/")
        self._routes: Dict[str, NamedRoute] = {}
        self._lock = threading.Lock()

    def register_route_group(
        self,
        name_prefix: str,
        path_prefix: str,
        middleware: Iterable[Callable],
        register: Callable[[RouteGroup], None],
        asgi_middleware: Optional[Sequence[Middleware]] = None,
    ) -> RouteGroup:
        """
        Register a group of routes

        Args:
            name_prefix: prepended to every route name of the group
            path_prefix: prepended to every route path of the group
            middleware: FastAPI dependencies run before every route
            register: callback receiving the group to add routes to
            asgi_middleware: when given, the group is mounted as a sub-app
                at ``path_prefix`` wrapped in this Starlette middleware

        Raises:
            ConfigurationError: a mounted group has an empty ``path_prefix``

        When ``register`` raises, the routes, names and mount added for the
        group are removed before the error propagates.
        """
        routes_before = list(self.app.router.routes)
        names_before = set(self._routes)

        if asgi_middleware is None:
            group = RouteGroup(self, self.app, name_prefix, join_paths(path_prefix), middleware)
        else:
            mount_path = join_paths(path_prefix).rstrip("/")
            if not mount_path:
                raise ConfigurationError(f"Route group '{name_prefix}' cannot be mounted at the application root")
            sub_app = FastAPI(
                middleware=list(asgi_middleware),
                openapi_url=None,
                docs_url=None,
                redoc_url=None,
            )
            sub_app.dependency_overrides = self.app.dependency_overrides
            self.app.mount(mount_path, sub_app, name=name_prefix.rstrip(".") or None)
            group = RouteGroup(self, sub_app, name_prefix, "", middleware, mount_path=mount_path)
            logger.info(f"Mounted route group '{name_prefix}' at '{mount_path}'")

        try:
            register(group)
        except Exception:
            self._rollback(routes_before, names_before)
            logger.warning(f"Route group '{name_prefix}' failed to register; its routes were removed")
            raise
        return group

    def _rollback(self, routes_before: List[Any], names_before: set) -> None:
        self.app.router.routes[:] = routes_before
        with self._lock:
            for name in set(self._routes) - names_before:
                del self._routes[name]

    def ensure_available(self, name: str) -> None:
        if name in self._routes:
            raise ConfigurationError(f"Route name [{name}] is already registered")

    def remember(self, name: str, route: APIRoute, mount_path: str = "") -> None:
        with self._lock:
            self.ensure_available(name)
            self._routes[name] = NamedRoute(route=route, mount_path=mount_path)
        logger.debug(f"Registered route {name} -> {mount_path}{route.path}")

    def has_route(self, name: str) -> bool:
        return name in self._routes

    def route_names(self) -> List[str]:
        return sorted(self._routes)

    def resolve_url(
        self,
        name: str,
        parameters: Optional[Dict[str, Any]] = None,
        is_absolute: bool = True,
    ) -> str:
        """
        URL of the route called ``name``

        Parameters matching the route's path parameters fill the path; other
        non-None parameters become the query string.

        Raises:
            RouteNotFoundError: unknown name or missing path parameters
        """
        named = self._routes.get(name)
        if named is None:
            raise RouteNotFoundError(name, parameters)

        values = {key: route_key(value) for key, value in (parameters or {}).items() if value is not None}
        expected = set(named.route.param_convertors)
        if not expected.issubset(values):
            raise RouteNotFoundError(name, parameters)

        path_params = {key: values[key] for key in expected}
        query = {key: value for key, value in values.items() if key not in expected}

        try:
            url_path = named.route.url_path_for(name, **path_params)
        except NoMatchFound as exc:
            raise RouteNotFoundError(name, parameters) from exc

        path = named.mount_path + str(url_path)
        url = URL(self.base_url + path) if is_absolute else URL(path)
        if query:
            url = url.include_query_params(**query)
        return str(url)


__all__ = [
    "route_key",
    "route_key_attribute",
    "coerce_route_key",
    "join_paths",
    "NamedRoute",
    "RouteGroup",
    "Router",
]
