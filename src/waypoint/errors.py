"""Waypoint exception hierarchy.

Shared across the pattern compiler, builder, router, and middleware so
every module raises and catches the same types.

Build-time errors (``PatternError``, ``BuildError``) abort router
construction. Request-time errors are never caught by the router.
"""

from dataclasses import dataclass


class WaypointError(Exception):
    """Base for all waypoint-specific errors."""


# -- Build time --


class PatternError(WaypointError):
    """A path pattern could not be compiled."""

    def __init__(self, pattern: str, detail: str) -> None:
        self.pattern = pattern
        self.detail = detail
        super().__init__(f"Invalid pattern {pattern!r}: {detail}")


class InvalidParameter(PatternError):
    """A ``:name`` or ``*name`` segment is empty or misplaced."""


class DuplicateParameter(PatternError):
    """The same parameter name appears twice in one pattern."""

    def __init__(self, pattern: str, name: str) -> None:
        self.name = name
        super().__init__(pattern, f"parameter {name!r} is declared more than once")


class EmptyPath(PatternError):
    """The effective pattern is the empty string."""

    def __init__(self, pattern: str = "") -> None:
        super().__init__(pattern, "path must not be empty")


class BuildError(WaypointError):
    """The route table is semantically invalid."""


class DuplicateAction(BuildError):
    """The same ``(pattern, method)`` pair was registered twice."""

    def __init__(self, pattern: str, method: str) -> None:
        self.pattern = pattern
        self.method = method
        super().__init__(f"{method} {pattern} is already registered")


class ParameterCollision(BuildError):
    """A composed sub-router reuses a parameter name of its mount prefix.

    Only raised when ``RouterConfig.reject_parameter_collisions`` is set;
    otherwise the inner value overwrites the outer one and a warning is logged.
    """

    def __init__(self, pattern: str, names: frozenset[str]) -> None:
        self.pattern = pattern
        self.names = names
        listed = ", ".join(sorted(names))
        super().__init__(f"{pattern} captures {listed} in both the mount prefix and the sub-router")


# -- Request time --


class HandlerError(WaypointError):
    """Conventional base for failures raised by user handlers and middleware.

    The router never catches it: it propagates out of ``Router.respond``
    unchanged. Wrap the router with ``RecoveryMiddleware`` to turn it into
    a 500 response.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(HandlerError):
    """A handler failure that maps directly to an HTTP status code.

    ``RecoveryMiddleware`` turns it into a response with the same status,
    detail, and headers.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)
