"""Route table builder.

The builder is a short-lived, mutable staging object. Register routes,
sub-routers, and fallbacks on it, then call ``build()`` to get an
immutable ``Router``. Every registration method works either directly::

    builder.get("/users", responder=list_users)

or as a decorator::

    @builder.get("/users/:id", require_auth)
    async def show_user(request: Request) -> Response:
        return Response(request.parameters["id"])

Positional arguments after the path are middleware, outermost first.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from waypoint._internal.invoke import as_responder
from waypoint.config import RouterConfig
from waypoint.errors import BuildError, DuplicateAction, ParameterCollision
from waypoint.http.method import COMMON_METHODS, Method
from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.middleware.chain import chain
from waypoint.middleware.protocol import Middleware, Responder
from waypoint.routing.matcher import Matcher
from waypoint.routing.pattern import (
    CompiledPattern,
    compile_pattern,
    join_path,
    join_patterns,
    split_path,
)
from waypoint.routing.route import MethodNotAllowedResponder, Route
from waypoint.routing.router import Router

logger = logging.getLogger("waypoint.routing")

Handler: TypeAlias = Callable[..., Any]


@dataclass(slots=True)
class _RouteEntry:
    """A route while it is still being built. Mutable until ``freeze``."""

    compiled: CompiledPattern
    actions: dict[Method, Responder] = field(default_factory=dict)
    fallback: Responder | None = None

    def freeze(self) -> Route:
        return Route(compiled=self.compiled, actions=self.actions, fallback_override=self.fallback)


def _mount(router: Router, prefix_count: int) -> Responder:
    """Responder that strips the mount prefix and re-dispatches inside *router*."""

    async def mounted(request: Request) -> Response:
        parts, trailing = split_path(request.path)
        request.path = join_path(parts[prefix_count:], trailing)
        return await router.respond(request)

    return mounted


class RouterBuilder:
    """Accumulates routes under a path prefix.

    Routes are keyed by their fully-qualified pattern: registering a second
    method for the same pattern adds an action to the existing route, and
    registering the same ``(pattern, method)`` twice raises ``DuplicateAction``.
    Patterns are compiled on registration, so ``PatternError`` surfaces
    here rather than at request time.
    """

    __slots__ = ("_entries", "_fallback", "config", "path")

    def __init__(self, path: str = "", *, config: RouterConfig | None = None) -> None:
        self.path = path
        self.config = config or RouterConfig()
        self._entries: dict[str, _RouteEntry] = {}
        self._fallback: Responder | None = None

    @property
    def routes(self) -> tuple[Route, ...]:
        """Snapshot of the routes registered so far, in registration order."""
        return tuple(entry.freeze() for entry in self._entries.values())

    def build(self, *middleware: Middleware, matcher: str | type[Matcher] | None = None) -> Router:
        """Freeze the registered routes into an immutable ``Router``.

        *middleware* wraps every action and both kinds of fallback.
        """
        return Router(
            self.routes,
            middleware=middleware,
            fallback=self._fallback,
            matcher=matcher,
            config=self.config,
            path=self.path,
        )

    # -- Per-method registration --

    def get(self, path: str, *middleware: Middleware, responder: Handler | None = None) -> Any:
        return self._register((Method.GET,), path, middleware, responder)

    def head(self, path: str, *middleware: Middleware, responder: Handler | None = None) -> Any:
        return self._register((Method.HEAD,), path, middleware, responder)

    def post(self, path: str, *middleware: Middleware, responder: Handler | None = None) -> Any:
        return self._register((Method.POST,), path, middleware, responder)

    def put(self, path: str, *middleware: Middleware, responder: Handler | None = None) -> Any:
        return self._register((Method.PUT,), path, middleware, responder)

    def patch(self, path: str, *middleware: Middleware, responder: Handler | None = None) -> Any:
        return self._register((Method.PATCH,), path, middleware, responder)

    def delete(self, path: str, *middleware: Middleware, responder: Handler | None = None) -> Any:
        return self._register((Method.DELETE,), path, middleware, responder)

    def options(self, path: str, *middleware: Middleware, responder: Handler | None = None) -> Any:
        return self._register((Method.OPTIONS,), path, middleware, responder)

    def trace(self, path: str, *middleware: Middleware, responder: Handler | None = None) -> Any:
        return self._register((Method.TRACE,), path, middleware, responder)

    def connect(self, path: str, *middleware: Middleware, responder: Handler | None = None) -> Any:
        return self._register((Method.CONNECT,), path, middleware, responder)

    def methods(
        self,
        methods: Iterable[str | Method],
        path: str,
        *middleware: Middleware,
        responder: Handler | None = None,
    ) -> Any:
        """Register one responder for several methods on the same path."""
        parsed = tuple(dict.fromkeys(Method.parse(m) for m in methods))
        return self._register(parsed, path, middleware, responder)

    def any(self, path: str, *middleware: Middleware, responder: Handler | None = None) -> Any:
        """Register for GET, POST, PUT, PATCH, and DELETE."""
        ordered = tuple(m for m in Method if m in COMMON_METHODS)
        return self._register(ordered, path, middleware, responder)

    def _register(
        self,
        methods: Sequence[Method],
        path: str,
        middleware: Sequence[Middleware],
        responder: Handler | None,
    ) -> Any:
        """Register now, or return a decorator when no responder is given."""
        if responder is None:

            def decorator(func: Handler) -> Handler:
                self._register(methods, path, middleware, func)
                return func

            return decorator

        action = chain(middleware, self._normalize(responder))
        pattern = self._qualify(path)
        for method in methods:
            self._add_action(pattern, method, action)
        return self

    # -- Fallbacks --

    def fallback(
        self,
        *middleware: Middleware,
        responder: Handler | None = None,
        path: str | None = None,
    ) -> Any:
        """Set the global fallback, or the fallback of one path.

        Without *path* this replaces the default ``404 Not Found`` responder.
        With *path* it replaces that route's default ``405 Method Not
        Allowed``, creating a route with no actions if the path is new.
        """
        if responder is None:

            def decorator(func: Handler) -> Handler:
                self.fallback(*middleware, responder=func, path=path)
                return func

            return decorator

        composed = chain(middleware, self._normalize(responder))
        if path is None:
            self._fallback = composed
        else:
            self._set_route_fallback(self._qualify(path), composed)
        return self

    # -- Composition --

    def compose(self, router: Router, *middleware: Middleware, path: str = "") -> "RouterBuilder":
        """Mount a built sub-router under *path*.

        Every ``(pattern, method)`` of *router* is registered here at
        ``self.path + path + pattern``. On dispatch the mount prefix is
        stripped from ``request.path`` and the request is handed to
        ``router.respond``, which re-matches and captures its own parameters
        alongside the ones captured here.
        """
        prefix = self.path + path
        prefix_parts, _ = split_path(prefix)
        outer_names = compile_pattern(prefix).param_names if prefix else ()
        mounted = _mount(router, len(prefix_parts))
        action = chain(middleware, mounted)

        for route in router.routes:
            pattern = join_patterns(prefix, route.pattern)
            self._check_collision(pattern, outer_names, route.param_names)
            for method in route.actions:
                self._add_action(pattern, method, action, allow_duplicates=True)
            if route.fallback_override is not None:
                self._set_route_fallback(pattern, action, allow_duplicates=True)

        logger.debug("Mounted %r at %r (%d routes)", router, prefix or "/", len(router.routes))
        return self

    def group(
        self,
        path: str,
        build: Callable[["RouterBuilder"], object],
        *middleware: Middleware,
    ) -> "RouterBuilder":
        """Register routes under a nested path prefix.

        *build* receives a child builder whose routes are merged into this
        one, each wrapped in *middleware*. Unlike ``compose`` there is no
        re-dispatch: the child's actions are registered directly.
        """
        child = RouterBuilder(self._qualify(path), config=self.config)
        build(child)
        if child._fallback is not None:
            msg = f"group {child.path!r} cannot set the global fallback; set it on the parent"
            raise BuildError(msg)

        for pattern, entry in child._entries.items():
            for method, action in entry.actions.items():
                self._add_action(pattern, method, chain(middleware, action), allow_duplicates=True)
            if entry.fallback is not None:
                self._set_route_fallback(
                    pattern, chain(middleware, entry.fallback), allow_duplicates=True
                )
        return self

    # -- RESTful sugar --

    def resources(
        self,
        path: str,
        build: "Callable[[ResourceBuilder], object] | ResourceBuilder",
        *middleware: Middleware,
    ) -> "RouterBuilder":
        """Register a collection resource.

        ``GET path`` → index, ``POST path`` → create, ``GET path/:id`` → show,
        ``PUT``/``PATCH path/:id`` → update, ``DELETE path/:id`` → destroy.
        """
        resource = _resolve_resource(build)
        member = path.rstrip("/") + "/:id"
        collection_allow = resource.allowed(index=Method.GET, create=Method.POST)
        member_allow = resource.allowed(
            show=Method.GET, update=(Method.PUT, Method.PATCH), destroy=Method.DELETE
        )

        self.get(path, *middleware, responder=resource.responder("index", collection_allow))
        self.post(path, *middleware, responder=resource.responder("create", collection_allow))
        self.get(member, *middleware, responder=resource.responder("show", member_allow))
        update = resource.responder("update", member_allow)
        self.put(member, *middleware, responder=update)
        self.patch(member, *middleware, responder=update)
        self.delete(member, *middleware, responder=resource.responder("destroy", member_allow))
        return self

    def resource(
        self,
        path: str,
        build: "Callable[[ResourceBuilder], object] | ResourceBuilder",
        *middleware: Middleware,
    ) -> "RouterBuilder":
        """Register a singular resource: every action lives on *path* itself."""
        resource = _resolve_resource(build)
        allow = resource.allowed(
            index=Method.GET,
            create=Method.POST,
            update=(Method.PUT, Method.PATCH),
            destroy=Method.DELETE,
        )

        self.get(path, *middleware, responder=resource.responder("index", allow))
        self.post(path, *middleware, responder=resource.responder("create", allow))
        update = resource.responder("update", allow)
        self.put(path, *middleware, responder=update)
        self.patch(path, *middleware, responder=update)
        self.delete(path, *middleware, responder=resource.responder("destroy", allow))
        return self

    # -- Internals --

    def _qualify(self, path: str) -> str:
        return join_patterns(self.path, path)

    def _normalize(self, responder: Handler) -> Responder:
        return as_responder(responder, offload=self.config.offload_sync_handlers)

    def _entry(self, pattern: str, *, allow_duplicates: bool = False) -> _RouteEntry:
        compiled = compile_pattern(pattern, allow_duplicates=allow_duplicates)
        entry = self._entries.get(compiled.pattern)
        if entry is None:
            entry = _RouteEntry(compiled=compiled)
            self._entries[compiled.pattern] = entry
        return entry

    def _add_action(
        self,
        pattern: str,
        method: Method,
        action: Responder,
        *,
        allow_duplicates: bool = False,
    ) -> None:
        entry = self._entry(pattern, allow_duplicates=allow_duplicates)
        if method in entry.actions:
            raise DuplicateAction(entry.compiled.pattern, method)
        entry.actions[method] = action
        logger.debug("Registered %s %s", method, entry.compiled.pattern)

    def _set_route_fallback(
        self,
        pattern: str,
        responder: Responder,
        *,
        allow_duplicates: bool = False,
    ) -> None:
        entry = self._entry(pattern, allow_duplicates=allow_duplicates)
        entry.fallback = responder
        logger.debug("Registered fallback for %s", entry.compiled.pattern)

    def _check_collision(
        self,
        pattern: str,
        outer_names: Sequence[str],
        inner_names: Sequence[str],
    ) -> None:
        shared = frozenset(outer_names) & frozenset(inner_names)
        if not shared:
            return
        if self.config.reject_parameter_collisions:
            raise ParameterCollision(pattern, shared)
        logger.warning(
            "Composed route %s reuses parameter(s) %s; the sub-router's values win",
            pattern,
            ", ".join(sorted(shared)),
        )


# -- Resources --

_RESOURCE_ACTIONS = ("index", "create", "show", "update", "destroy")


class ResourceBuilder:
    """Collects the handlers of a RESTful resource.

    Each setter works directly or as a decorator::

        def build(users: ResourceBuilder) -> None:
            users.index(list_users)

            @users.show
            async def show(request: Request) -> Response:
                return Response(request.parameters["id"])

    Handlers left unset answer ``405 Method Not Allowed``.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}

    @classmethod
    def from_object(cls, resource: object) -> "ResourceBuilder":
        """Collect handlers from the action-named methods of *resource*.

        Looks up ``index``, ``create``, ``show``, ``update`` and ``destroy``.
        """
        builder = cls()
        for name in _RESOURCE_ACTIONS:
            handler = getattr(resource, name, None)
            if handler is not None:
                builder._handlers[name] = handler
        return builder

    def index(self, responder: Handler) -> Handler:
        self._handlers["index"] = responder
        return responder

    def create(self, responder: Handler) -> Handler:
        self._handlers["create"] = responder
        return responder

    def show(self, responder: Handler) -> Handler:
        self._handlers["show"] = responder
        return responder

    def update(self, responder: Handler) -> Handler:
        self._handlers["update"] = responder
        return responder

    def destroy(self, responder: Handler) -> Handler:
        self._handlers["destroy"] = responder
        return responder

    def allowed(self, **methods: Method | tuple[Method, ...]) -> frozenset[Method]:
        """Methods served by the handlers named in *methods* that are set."""
        result: set[Method] = set()
        for name, served in methods.items():
            if name in self._handlers:
                result.update(served if isinstance(served, tuple) else (served,))
        return frozenset(result)

    def responder(self, name: str, allowed: Iterable[Method] = ()) -> Handler:
        """The handler registered as *name*, or a 405 responder."""
        return self._handlers.get(name) or MethodNotAllowedResponder(allowed)


def _resolve_resource(
    build: Callable[[ResourceBuilder], object] | ResourceBuilder,
) -> ResourceBuilder:
    if isinstance(build, ResourceBuilder):
        return build
    resource = ResourceBuilder()
    build(resource)
    return resource
