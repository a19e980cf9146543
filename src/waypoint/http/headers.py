"""Request headers.

The router never reads headers; they ride along on the request for
middleware and handlers.
"""

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Read-only header mapping with case-insensitive names.

    Repeated headers keep every value: indexing gives the first one,
    ``get_list`` gives all of them in arrival order. Names are stored
    lower-cased.
    """

    __slots__ = ("_values",)

    def __init__(self, pairs: Mapping[str, str] | Iterable[tuple[str, str]] = ()) -> None:
        source = pairs.items() if isinstance(pairs, Mapping) else pairs
        values: dict[str, list[str]] = {}
        for name, value in source:
            values.setdefault(name.lower(), []).append(value)
        self._values = {name: tuple(found) for name, found in values.items()}

    def __getitem__(self, name: str) -> str:
        return self._values[name.lower()][0]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Headers({dict(self)!r})"

    def get_list(self, name: str) -> list[str]:
        """Every value sent for *name*; empty when absent."""
        return list(self._values.get(name.lower(), ()))
