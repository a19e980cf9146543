"""Immutable runtime router.

Built once (usually by ``RouterBuilder.build``) and read-only afterwards,
so any number of tasks may call ``respond`` concurrently without locks.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Any

from waypoint._internal.invoke import as_responder
from waypoint.config import RouterConfig
from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.middleware.chain import chain
from waypoint.middleware.protocol import Middleware
from waypoint.routing.matcher import Matcher, resolve_matcher
from waypoint.routing.route import NotFoundResponder, Route

if TYPE_CHECKING:
    from waypoint.routing.builder import RouterBuilder

logger = logging.getLogger("waypoint.routing")


class Router:
    """Dispatches requests to the route actions of a frozen route table.

    Router-level middleware is composed around every action, every route
    fallback, and the global fallback when the router is constructed, so a
    request costs one match plus one call.

    Usage::

        builder = RouterBuilder()
        builder.get("/users/:id", responder=show_user)
        router = builder.build()

        response = await router.respond(Request.create("GET", "/users/7"))
    """

    __slots__ = ("_config", "_dispatch", "_fallback", "_matcher", "_middleware", "_path", "_routes")

    def __init__(
        self,
        routes: Iterable[Route] = (),
        *,
        middleware: Sequence[Middleware] = (),
        fallback: Callable[..., Any] | None = None,
        matcher: str | type[Matcher] | None = None,
        config: RouterConfig | None = None,
        path: str = "",
    ) -> None:
        config = config or RouterConfig()
        matcher_cls = resolve_matcher(matcher or config.matcher)
        routes = tuple(routes)
        middleware = tuple(middleware)

        compiled = matcher_cls(routes, case_sensitive=config.case_sensitive)
        dispatch = {route: route.with_middleware(middleware) for route in compiled.routes}
        terminal = (
            NotFoundResponder()
            if fallback is None
            else as_responder(fallback, offload=config.offload_sync_handlers)
        )

        object.__setattr__(self, "_config", config)
        object.__setattr__(self, "_routes", routes)
        object.__setattr__(self, "_matcher", compiled)
        object.__setattr__(self, "_middleware", middleware)
        object.__setattr__(self, "_dispatch", dispatch)
        object.__setattr__(self, "_fallback", chain(middleware, terminal))
        object.__setattr__(self, "_path", path)

        logger.debug(
            "Built router %r: %d routes, %d middleware, %s",
            path or "/",
            len(routes),
            len(middleware),
            matcher_cls.__name__,
        )

    @classmethod
    def define(
        cls,
        path: str = "",
        *middleware: Middleware,
        build: Callable[[RouterBuilder], object],
        matcher: str | type[Matcher] | None = None,
        config: RouterConfig | None = None,
    ) -> Router:
        """Build a router in one expression::

            router = Router.define("/api", build=lambda route: route.get("/ping", responder=ping))
        """
        from waypoint.routing.builder import RouterBuilder

        builder = RouterBuilder(path, config=config)
        build(builder)
        return builder.build(*middleware, matcher=matcher)

    # -- Immutability --

    def __setattr__(self, name: str, value: object) -> None:
        msg = "Router is immutable once built."
        raise AttributeError(msg)

    def __delattr__(self, name: str) -> None:
        msg = "Router is immutable once built."
        raise AttributeError(msg)

    # -- Introspection --

    @property
    def routes(self) -> tuple[Route, ...]:
        """The route table in registration order, without router middleware."""
        return self._routes

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        return self._middleware

    @property
    def matcher(self) -> Matcher:
        return self._matcher

    @property
    def config(self) -> RouterConfig:
        return self._config

    @property
    def path(self) -> str:
        """The path prefix the routes were registered under."""
        return self._path

    def __repr__(self) -> str:
        matcher = type(self._matcher).__name__
        return f"Router(path={self._path!r}, routes={len(self._routes)}, matcher={matcher})"

    # -- Dispatch --

    def match(self, request: Request) -> Route | None:
        """Match *request* (storing its parameters) without invoking anything."""
        return self._matcher.match(request)

    async def respond(self, request: Request) -> Response:
        """Route *request* and return the handler's response.

        No match runs the global fallback; a path match without a method
        match runs the route fallback. Handler and middleware exceptions
        propagate unchanged.
        """
        route = self._matcher.match(request)
        if route is None:
            return await self._fallback(request)
        return await self._dispatch[route].respond(request)

    async def __call__(self, request: Request) -> Response:
        return await self.respond(request)

