"""HTTP request as seen by the router.

Unlike the response, the request is deliberately mutable: the matcher
writes captured path parameters into ``parameters`` and sub-router
composition rewrites ``path`` before re-dispatching. A request is consumed
by reference, so never share one instance between concurrent calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs

from waypoint.http.headers import Headers
from waypoint.http.method import Method


@dataclass(slots=True)
class Request:
    """A decoded HTTP request.

    Only ``method``, ``path``, and ``parameters`` matter to the router;
    everything else is carried through untouched for middleware and handlers.
    """

    method: Method
    path: str
    headers: Headers = field(default_factory=Headers)
    query: str = ""
    body: bytes = b""
    parameters: dict[str, str] = field(default_factory=dict)

    # Free-form per-request storage for middleware (e.g. an authenticated user)
    state: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.method = Method.parse(self.method)

    # -- Computed properties --

    @property
    def query_params(self) -> dict[str, list[str]]:
        """The query string parsed into lists of values."""
        return parse_qs(self.query, keep_blank_values=True)

    @property
    def url(self) -> str:
        """Current path plus query string."""
        if self.query:
            return f"{self.path}?{self.query}"
        return self.path

    @property
    def text(self) -> str:
        """The body decoded as UTF-8."""
        return self.body.decode("utf-8")

    # -- Factory --

    @classmethod
    def create(
        cls,
        method: str | Method,
        target: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | str = b"",
    ) -> Request:
        """Build a request from a method and an origin-form target like ``/a/b?x=1``.

        The target is split at the first ``?`` only; a leading ``//`` is part
        of the path, never an authority. Any ``#fragment`` is dropped.
        """
        target = target.partition("#")[0]
        path, _, query = target.partition("?")
        return cls(
            method=Method.parse(method),
            path=path or "/",
            headers=Headers(headers or {}),
            query=query,
            body=body.encode("utf-8") if isinstance(body, str) else body,
        )
