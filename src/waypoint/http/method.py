"""HTTP request methods."""

from enum import StrEnum


class Method(StrEnum):
    """The request methods the router dispatches on.

    Members compare equal to their upper-case names, so ``"GET"`` and
    ``Method.GET`` are interchangeable as dict keys.
    """

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"
    CONNECT = "CONNECT"

    @classmethod
    def parse(cls, value: "str | Method") -> "Method":
        """Return the member for *value*, accepting any letter case."""
        if isinstance(value, Method):
            return value
        try:
            return cls(value.upper())
        except ValueError:
            msg = f"Unknown HTTP method: {value!r}"
            raise ValueError(msg) from None


# Methods registered by ``RouterBuilder.any``
COMMON_METHODS: frozenset[Method] = frozenset(
    {Method.GET, Method.POST, Method.PUT, Method.PATCH, Method.DELETE}
)
