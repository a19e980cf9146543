"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response; the original is never
modified.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from http import HTTPStatus


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status and headers. Each call returns a new ``Response``::

        Response("created", status=HTTPStatus.CREATED).with_header("Location", "/users/7")
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/plain; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    reason_phrase: str = ""

    def __post_init__(self) -> None:
        # Normalise HTTPStatus members so equality against plain ints is exact
        object.__setattr__(self, "status", int(self.status))

    @classmethod
    def from_reason(cls, status_code: int, reason_phrase: str) -> Response:
        """Build a bodiless response with an explicit reason phrase."""
        return cls(status=status_code, reason_phrase=reason_phrase)

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=int(status), reason_phrase="")

    def with_body(self, body: str | bytes) -> Response:
        """Return a new Response with a different body."""
        return replace(self, body=body)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Append every header in *headers*, keeping existing ones."""
        return replace(self, headers=self.headers + tuple(headers.items()))

    def with_content_type(self, content_type: str) -> Response:
        """Swap the ``Content-Type`` the transport should send."""
        return replace(self, content_type=content_type)

    # -- Accessors --

    @property
    def reason(self) -> str:
        """Reason phrase: the explicit one, else the standard phrase for the status."""
        if self.reason_phrase:
            return self.reason_phrase
        try:
            return HTTPStatus(self.status).phrase
        except ValueError:
            return ""

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), or ``None``."""
        name_lower = name.lower()
        for hname, hvalue in self.headers:
            if hname.lower() == name_lower:
                return hvalue
        return None

    @property
    def body_bytes(self) -> bytes:
        """The body encoded as UTF-8 when it was given as text."""
        body = self.body
        return body.encode("utf-8") if isinstance(body, str) else body

    @property
    def text(self) -> str:
        """The body decoded as UTF-8 when it was given as bytes."""
        body = self.body
        return body.decode("utf-8") if isinstance(body, bytes) else body
