"""Path pattern compiler.

A pattern is a ``/``-separated list of segments:

    ``users``   literal — matches itself exactly
    ``:id``     parameter — matches one segment, captured as ``id``
    ``*rest``   wildcard — last segment only, matches the remainder

A ``:`` or ``*`` followed by anything other than a name (``[A-Za-z0-9_]+``)
is plain literal text: ``/time/:12-30`` and ``/files/*.txt`` are literals.

Empty segments collapse (``/a//b`` is ``/a/b``); a trailing slash is
significant (``/a/`` is not ``/a``).
"""

import re
from dataclasses import dataclass
from enum import Enum

from waypoint.errors import DuplicateParameter, EmptyPath, InvalidParameter, PatternError

_PARAM_NAME = re.compile(r"[A-Za-z0-9_]+")

# Capture group used by the regex backend. ASCII alphanumerics only, as
# POSIX [[:alnum:]] in the C locale; the trie backend accepts any non-slash text.
PARAM_REGEX = r"([A-Za-z0-9]+)"
WILDCARD_REGEX = r"(.+)"

# Capture key for a bare ``*`` segment
DEFAULT_WILDCARD_NAME = "wildcard"


class SegmentKind(Enum):
    LITERAL = "literal"
    PARAMETER = "parameter"
    WILDCARD = "wildcard"


@dataclass(frozen=True, slots=True)
class Segment:
    """One compiled path segment.

    ``value`` is the literal text, or the capture name for parameters
    and wildcards.
    """

    kind: SegmentKind
    value: str

    @property
    def is_literal(self) -> bool:
        return self.kind is SegmentKind.LITERAL

    @property
    def is_param(self) -> bool:
        return self.kind is SegmentKind.PARAMETER

    @property
    def is_wildcard(self) -> bool:
        return self.kind is SegmentKind.WILDCARD


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """Result of ``compile_pattern``.

    ``param_names`` lists every capture name (parameters and wildcard)
    in source order.
    """

    pattern: str
    segments: tuple[Segment, ...]
    param_names: tuple[str, ...]
    trailing_slash: bool = False

    @property
    def has_wildcard(self) -> bool:
        return bool(self.segments) and self.segments[-1].is_wildcard

    def shape(self, *, case_sensitive: bool = True) -> tuple[object, ...]:
        """Key that ignores capture names: ``/a/:x`` and ``/a/:y`` share a shape."""
        key: list[object] = []
        for seg in self.segments:
            if seg.is_literal:
                key.append(seg.value if case_sensitive else seg.value.lower())
            else:
                key.append(seg.kind)
        key.append(self.trailing_slash)
        return tuple(key)

    def to_regex(self, *, case_sensitive: bool = True) -> re.Pattern[str]:
        """Anchored regex accepting exactly the normalised paths this pattern matches."""
        parts: list[str] = []
        for seg in self.segments:
            if seg.is_param:
                parts.append(PARAM_REGEX)
            elif seg.is_wildcard:
                parts.append(WILDCARD_REGEX)
            else:
                parts.append(re.escape(seg.value))
        body = "/" + "/".join(parts)
        if self.trailing_slash:
            body += "/"
        flags = 0 if case_sensitive else re.IGNORECASE
        return re.compile(f"^{body}$", flags)


def split_path(path: str) -> tuple[list[str], bool]:
    """Split a path into non-empty segments plus a trailing-slash flag.

    Examples::

        "/"            -> ([], False)
        "/users"       -> (["users"], False)
        "//users//7/"  -> (["users", "7"], True)
    """
    parts = [p for p in path.split("/") if p]
    return parts, bool(parts) and path.endswith("/")


def join_path(parts: list[str], trailing_slash: bool = False) -> str:
    """Inverse of ``split_path``: ``(["a", "b"], True)`` -> ``"/a/b/"``."""
    path = "/" + "/".join(parts)
    if trailing_slash and parts:
        path += "/"
    return path


def normalize_path(path: str) -> str:
    """Collapse empty segments, keeping a significant trailing slash."""
    return join_path(*split_path(path))


def join_patterns(prefix: str, pattern: str) -> str:
    """Append *pattern* to a mount *prefix*; a root pattern ``/`` adds nothing."""
    if prefix and pattern == "/":
        return prefix
    return prefix + pattern


def compile_pattern(pattern: str, *, allow_duplicates: bool = False) -> CompiledPattern:
    """Compile a path pattern into segments and parameter names.

    The compiled ``pattern`` is the normalised text (empty segments removed).

    Raises ``EmptyPath`` for ``""``, ``InvalidParameter`` for ``:`` with no
    name or a wildcard before the last segment, ``DuplicateParameter`` when
    a name repeats, and ``PatternError`` when the pattern does not start
    with ``/``.

    *allow_duplicates* admits repeated names; the last capture wins. Only
    mounted sub-router routes are compiled this way.
    """
    if not pattern:
        raise EmptyPath(pattern)
    if not pattern.startswith("/"):
        raise PatternError(pattern, "pattern must begin with '/'")

    parts, trailing = split_path(pattern)
    segments: list[Segment] = []
    names: list[str] = []

    for index, part in enumerate(parts):
        if part.startswith(":"):
            name = part[1:]
            if not name:
                raise InvalidParameter(pattern, "parameter name must not be empty")
            if not _PARAM_NAME.fullmatch(name):
                segments.append(Segment(SegmentKind.LITERAL, part))
                continue
            segments.append(Segment(SegmentKind.PARAMETER, name))
        elif part.startswith("*"):
            name = part[1:] or DEFAULT_WILDCARD_NAME
            if not _PARAM_NAME.fullmatch(name):
                segments.append(Segment(SegmentKind.LITERAL, part))
                continue
            if index != len(parts) - 1:
                raise InvalidParameter(pattern, f"wildcard {part!r} must be the last segment")
            segments.append(Segment(SegmentKind.WILDCARD, name))
            # The wildcard consumes any trailing slash
            trailing = False
        else:
            segments.append(Segment(SegmentKind.LITERAL, part))
            continue

        if name in names and not allow_duplicates:
            raise DuplicateParameter(pattern, name)
        names.append(name)

    return CompiledPattern(
        pattern=join_path(parts, trailing),
        segments=tuple(segments),
        param_names=tuple(names),
        trailing_slash=trailing,
    )
