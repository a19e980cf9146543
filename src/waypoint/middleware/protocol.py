"""Responder and middleware protocols.

A responder is any awaitable callable::

    async def handler(request: Request) -> Response: ...

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> Response: ...

No base class required. The framework checks the shape, not the lineage.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from waypoint.http.request import Request
from waypoint.http.response import Response

# The next responder in the middleware chain
Next: TypeAlias = Callable[[Request], Awaitable[Response]]


class Responder(Protocol):
    """Protocol for anything that turns a request into a response.

    Plain ``def`` handlers are accepted by the builder and wrapped into
    this shape at registration time. A built ``Router`` is itself a responder.
    """

    async def __call__(self, request: Request) -> Response: ...


class Middleware(Protocol):
    """Protocol for waypoint middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(request: Request, next: Next) -> Response:
            start = time.monotonic()
            response = await next(request)
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")

        # Class middleware
        class RequireHeader:
            async def __call__(self, request: Request, next: Next) -> Response:
                ...

    A middleware may short-circuit by returning without calling ``next``.
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...
