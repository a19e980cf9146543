"""Built-in middleware: failure recovery.

The router propagates every handler failure unchanged. Mount
``RecoveryMiddleware`` as the outermost router middleware to turn those
failures into responses instead.
"""

import logging
from dataclasses import dataclass

from waypoint.errors import HTTPError
from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.middleware.protocol import Next

logger = logging.getLogger("waypoint.middleware")


@dataclass(frozen=True, slots=True)
class RecoveryConfig:
    """Recovery middleware configuration.

    ``expose_errors`` puts the exception text in 500 bodies. Development only.
    """

    expose_errors: bool = False
    error_status: int = 500


class RecoveryMiddleware:
    """Convert handler failures into responses.

    Handles:
    - ``HTTPError`` — response with the error's status, detail, and headers
    - Any other ``Exception`` — logged with traceback, answered with a 500

    Usage::

        router = builder.build(RecoveryMiddleware())
    """

    __slots__ = ("config",)

    def __init__(self, config: RecoveryConfig | None = None) -> None:
        self.config = config or RecoveryConfig()

    async def __call__(self, request: Request, next: Next) -> Response:
        try:
            return await next(request)
        except HTTPError as exc:
            return Response(body=exc.detail, status=exc.status, headers=exc.headers)
        except Exception as exc:
            logger.exception("Unhandled error in %s %s", request.method, request.path)
            body = "Internal Server Error"
            if self.config.expose_errors:
                body = f"{type(exc).__name__}: {exc}"
            return Response(body=body, status=self.config.error_status)
