"""Route record and the default fallback responders."""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from waypoint.errors import DuplicateAction
from waypoint.http.method import Method
from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.middleware.chain import chain
from waypoint.middleware.protocol import Middleware, Responder
from waypoint.routing.pattern import CompiledPattern


class NotFoundResponder:
    """Default global fallback: ``404 Not Found``."""

    __slots__ = ()

    async def __call__(self, request: Request) -> Response:
        return Response(body="Not Found", status=404)

    def __repr__(self) -> str:
        return "NotFoundResponder()"


class MethodNotAllowedResponder:
    """Default route fallback: ``405 Method Not Allowed``.

    Includes an ``Allow`` header listing the methods the route does serve.
    """

    __slots__ = ("allowed",)

    def __init__(self, allowed: Iterable[str] = ()) -> None:
        self.allowed = frozenset(allowed)

    async def __call__(self, request: Request) -> Response:
        response = Response(body="Method Not Allowed", status=405)
        if self.allowed:
            response = response.with_header("Allow", ", ".join(sorted(self.allowed)))
        return response

    def __repr__(self) -> str:
        return f"MethodNotAllowedResponder({sorted(self.allowed)!r})"


@dataclass(frozen=True, slots=True, eq=False)
class Route:
    """A frozen route: one pattern, its method actions, and a fallback.

    ``fallback`` runs when the path matches but the request method has no
    action. It is ``fallback_override`` when one was registered, otherwise a
    ``MethodNotAllowedResponder`` for the route's methods.

    Routes compare by identity so they can key dispatch tables.
    """

    compiled: CompiledPattern
    actions: Mapping[Method, Responder]
    fallback_override: Responder | None = None
    fallback: Responder = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "actions", MappingProxyType(dict(self.actions)))
        fallback = self.fallback_override or MethodNotAllowedResponder(self.actions)
        object.__setattr__(self, "fallback", fallback)

    @property
    def pattern(self) -> str:
        return self.compiled.pattern

    @property
    def param_names(self) -> tuple[str, ...]:
        return self.compiled.param_names

    @property
    def methods(self) -> frozenset[Method]:
        return frozenset(self.actions)

    def action_for(self, method: str) -> Responder:
        """The action for *method*, or the route fallback."""
        return self.actions.get(method, self.fallback)

    async def respond(self, request: Request) -> Response:
        return await self.action_for(request.method)(request)

    def with_middleware(self, middleware: Sequence[Middleware]) -> "Route":
        """Return a copy whose actions and fallback are wrapped in *middleware*."""
        if not middleware:
            return self
        return Route(
            compiled=self.compiled,
            actions={method: chain(middleware, action) for method, action in self.actions.items()},
            fallback_override=chain(middleware, self.fallback),
        )

    def merge(self, other: "Route") -> "Route":
        """Combine two routes that accept the same paths.

        Actions are unioned; a method present in both raises ``DuplicateAction``.
        The later route's pattern and explicit fallback take precedence.
        """
        for method in other.actions:
            if method in self.actions:
                raise DuplicateAction(other.pattern, method)
        return Route(
            compiled=other.compiled,
            actions={**self.actions, **other.actions},
            fallback_override=other.fallback_override or self.fallback_override,
        )
