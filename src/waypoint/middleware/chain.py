"""Build-time middleware composition.

``chain([m1, m2, m3], r)`` returns a responder equivalent to
``m1(m2(m3(r)))``: ``m1`` sees the request first and the response last.
The fold happens once, when a route is registered, so dispatch is a single
call into the composed responder.
"""

from collections.abc import Sequence

from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.middleware.protocol import Middleware, Next, Responder


def chain(middleware: Sequence[Middleware], responder: Responder) -> Responder:
    """Wrap *responder* with *middleware*, outermost first.

    An empty sequence returns *responder* itself.
    """
    handler: Responder = responder
    for mw in reversed(middleware):
        outer = handler
        mw_ref = mw

        async def make_next(
            req: Request, _mw: Middleware = mw_ref, _next: Next = outer
        ) -> Response:
            return await _mw(req, _next)

        handler = make_next
    return handler
