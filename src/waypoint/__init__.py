"""Waypoint — an HTTP request router with composable sub-routers.

Match a request against path patterns, extract named parameters, run a
middleware chain, and hand the request to a handler. The transport is
yours: waypoint consumes decoded requests and returns response objects.

Basic usage::

    from waypoint import Request, Response, RouterBuilder

    route = RouterBuilder()

    @route.get("/users/:id")
    async def show_user(request: Request) -> Response:
        return Response(f"user {request.parameters['id']}")

    router = route.build()
    response = await router.respond(Request.create("GET", "/users/7"))

Sub-routers mount under a prefix with ``compose``; the prefix is stripped
before the sub-router re-matches::

    api = RouterBuilder("/api")
    api.compose(users_router, path="/v1")
"""

__version__ = "0.1.0"
__all__ = [
    "COMMON_METHODS",
    "BuildError",
    "DuplicateAction",
    "DuplicateParameter",
    "EmptyPath",
    "HTTPError",
    "HandlerError",
    "Headers",
    "InvalidParameter",
    "Method",
    "Middleware",
    "Next",
    "ParameterCollision",
    "PatternError",
    "RecoveryMiddleware",
    "Request",
    "ResourceBuilder",
    "Responder",
    "Response",
    "Route",
    "Router",
    "RouterBuilder",
    "RouterConfig",
    "WaypointError",
    "chain",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import waypoint`` fast while providing a clean top-level API.
    """
    if name == "Router":
        from waypoint.routing.router import Router

        return Router

    if name in ("RouterBuilder", "ResourceBuilder"):
        from waypoint.routing import builder as _builder

        return getattr(_builder, name)

    if name == "Route":
        from waypoint.routing.route import Route

        return Route

    if name == "RouterConfig":
        from waypoint.config import RouterConfig

        return RouterConfig

    if name == "Request":
        from waypoint.http.request import Request

        return Request

    if name == "Response":
        from waypoint.http.response import Response

        return Response

    if name == "Headers":
        from waypoint.http.headers import Headers

        return Headers

    if name in ("Method", "COMMON_METHODS"):
        from waypoint.http import method as _method

        return getattr(_method, name)

    if name in ("Middleware", "Next", "Responder", "chain", "RecoveryMiddleware"):
        from waypoint import middleware as _mw

        return getattr(_mw, name)

    if name in (
        "WaypointError",
        "PatternError",
        "InvalidParameter",
        "DuplicateParameter",
        "EmptyPath",
        "BuildError",
        "DuplicateAction",
        "ParameterCollision",
        "HandlerError",
        "HTTPError",
    ):
        from waypoint import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
