"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    RecoveryMiddleware -- Turn handler failures into 4xx/5xx responses
"""

from waypoint.middleware.builtin import RecoveryConfig, RecoveryMiddleware
from waypoint.middleware.chain import chain
from waypoint.middleware.protocol import Middleware, Next, Responder

__all__ = [
    "Middleware",
    "Next",
    "RecoveryConfig",
    "RecoveryMiddleware",
    "Responder",
    "chain",
]
