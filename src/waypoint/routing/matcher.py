"""Route matchers — strategy objects that index a frozen route table.

Two interchangeable implementations:

    TrieMatcher   segment trie, O(path depth) regardless of route count (default)
    RegexMatcher  one anchored regex per route, scanned in registration order

Both answer ``match(request)`` the same way: the route whose pattern accepts
``request.path`` and serves ``request.method``, else the first route whose
pattern accepts the path (its fallback then answers), else ``None``.
Captured values are written into ``request.parameters``.
"""

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TypeAlias

from waypoint.http.request import Request
from waypoint.routing.pattern import join_path, split_path
from waypoint.routing.route import Route

logger = logging.getLogger("waypoint.routing")

MatchResult: TypeAlias = tuple[Route, dict[str, str]]


class Matcher(ABC):
    """Common matcher interface. Built once; read-only afterwards."""

    __slots__ = ("case_sensitive",)

    def __init__(self, routes: Sequence[Route], *, case_sensitive: bool = True) -> None:
        self.case_sensitive = case_sensitive

    @property
    @abstractmethod
    def routes(self) -> tuple[Route, ...]:
        """Every route ``lookup`` can return (after any merging)."""

    @abstractmethod
    def lookup(self, method: str, path: str) -> MatchResult | None:
        """Find the route for *method* and *path* without touching a request."""

    def match(self, request: Request) -> Route | None:
        """Match *request* and store the captured parameters on it."""
        found = self.lookup(request.method, request.path)
        if found is None:
            return None
        route, params = found
        request.parameters.update(params)
        return route


# -- Trie --


@dataclass(slots=True)
class _Terminal:
    """Routes stored at a trie node, merged when their patterns share a shape."""

    route: Route
    names_by_method: dict[str, tuple[str, ...]]
    default_names: tuple[str, ...]

    @classmethod
    def for_route(cls, route: Route) -> "_Terminal":
        return cls(
            route=route,
            names_by_method=dict.fromkeys(route.actions, route.param_names),
            default_names=route.param_names,
        )

    def add(self, route: Route) -> None:
        self.route = self.route.merge(route)
        for method in route.actions:
            self.names_by_method[method] = route.param_names
        self.default_names = route.param_names

    def names_for(self, method: str) -> tuple[str, ...]:
        return self.names_by_method.get(method, self.default_names)


class _TrieNode:
    """A node in the route trie. Mutable during construction only."""

    __slots__ = ("children", "param_child", "slash_terminal", "terminal", "wildcard")

    def __init__(self) -> None:
        # Literal segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child (parameter names live on the terminals)
        self.param_child: _TrieNode | None = None
        # Wildcard routes consume the rest of the path
        self.wildcard: _Terminal | None = None
        # Routes ending here, without and with a trailing slash
        self.terminal: _Terminal | None = None
        self.slash_terminal: _Terminal | None = None


class TrieMatcher(Matcher):
    """Segment trie with literal, parameter, and wildcard edges.

    At each node a literal edge is tried before the parameter edge, and the
    parameter edge before the wildcard, backtracking on dead ends. Patterns
    that differ only in parameter names share one node; their actions merge
    and the captured values take the names of the pattern that registered
    the requested method.

    Usage::

        matcher = TrieMatcher(routes)
        route = matcher.match(request)
    """

    __slots__ = ("_root", "_terminals")

    def __init__(self, routes: Sequence[Route], *, case_sensitive: bool = True) -> None:
        super().__init__(routes, case_sensitive=case_sensitive)
        self._root = _TrieNode()
        self._terminals: list[_Terminal] = []
        for route in routes:
            self._insert(route)
        logger.debug(
            "Compiled %d routes into a trie (%d distinct paths)", len(routes), len(self._terminals)
        )

    @property
    def routes(self) -> tuple[Route, ...]:
        return tuple(t.route for t in self._terminals)

    def _key(self, segment: str) -> str:
        return segment if self.case_sensitive else segment.lower()

    def _insert(self, route: Route) -> None:
        node = self._root
        compiled = route.compiled

        for seg in compiled.segments:
            if seg.is_wildcard:
                node.wildcard = self._attach(node.wildcard, route)
                return
            if seg.is_param:
                if node.param_child is None:
                    node.param_child = _TrieNode()
                node = node.param_child
            else:
                key = self._key(seg.value)
                if key not in node.children:
                    node.children[key] = _TrieNode()
                node = node.children[key]

        if compiled.trailing_slash:
            node.slash_terminal = self._attach(node.slash_terminal, route)
        else:
            node.terminal = self._attach(node.terminal, route)

    def _attach(self, terminal: _Terminal | None, route: Route) -> _Terminal:
        if terminal is None:
            terminal = _Terminal.for_route(route)
            self._terminals.append(terminal)
        else:
            terminal.add(route)
        return terminal

    def lookup(self, method: str, path: str) -> MatchResult | None:
        parts, trailing = split_path(path)

        def serves(terminal: _Terminal) -> bool:
            return method in terminal.route.actions

        found = self._match_node(self._root, parts, 0, trailing, [], serves)
        if found is None:
            found = self._match_node(self._root, parts, 0, trailing, [], lambda t: True)
        if found is None:
            return None
        terminal, values = found
        return terminal.route, dict(zip(terminal.names_for(method), values, strict=True))

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        trailing: bool,
        values: list[str],
        accept: Callable[[_Terminal], bool],
    ) -> tuple[_Terminal, list[str]] | None:
        """Recursively match path parts against the trie."""
        # All parts consumed: the route, if any, lives on this node
        if index == len(parts):
            terminal = node.slash_terminal if trailing else node.terminal
            if terminal is not None and accept(terminal):
                return terminal, values
            return None

        part = parts[index]

        # 1. Literal child
        child = node.children.get(self._key(part))
        if child is not None:
            result = self._match_node(child, parts, index + 1, trailing, values, accept)
            if result is not None:
                return result

        # 2. Parameter child
        if node.param_child is not None:
            result = self._match_node(
                node.param_child, parts, index + 1, trailing, [*values, part], accept
            )
            if result is not None:
                return result

        # 3. Wildcard consumes the remainder, trailing slash included
        if node.wildcard is not None and accept(node.wildcard):
            remainder = "/".join(parts[index:])
            if trailing:
                remainder += "/"
            return node.wildcard, [*values, remainder]

        return None


# -- Regex --


class RegexMatcher(Matcher):
    """Linear scan over one compiled regex per distinct pattern shape.

    Parameters only match ASCII alphanumeric values. Routes whose patterns
    differ only in parameter names accept the same paths, so they are merged
    into one route (at the position of the first registration) exactly as
    the trie merges them. Among the routes whose regex accepts the path, the
    first one that serves the method wins; failing that, the first path
    match is returned.
    """

    __slots__ = ("_entries",)

    def __init__(self, routes: Sequence[Route], *, case_sensitive: bool = True) -> None:
        super().__init__(routes, case_sensitive=case_sensitive)
        by_shape: dict[tuple[object, ...], tuple[re.Pattern[str], _Terminal]] = {}
        for route in routes:
            shape = route.compiled.shape(case_sensitive=case_sensitive)
            entry = by_shape.get(shape)
            if entry is None:
                regex = route.compiled.to_regex(case_sensitive=case_sensitive)
                by_shape[shape] = (regex, _Terminal.for_route(route))
            else:
                entry[1].add(route)
        self._entries: tuple[tuple[re.Pattern[str], _Terminal], ...] = tuple(by_shape.values())
        logger.debug(
            "Compiled %d routes into regexes (%d distinct paths)", len(routes), len(self._entries)
        )

    @property
    def routes(self) -> tuple[Route, ...]:
        return tuple(terminal.route for _, terminal in self._entries)

    def lookup(self, method: str, path: str) -> MatchResult | None:
        normalized = join_path(*split_path(path))
        path_hit: tuple[_Terminal, re.Match[str]] | None = None

        for regex, terminal in self._entries:
            m = regex.match(normalized)
            if m is None:
                continue
            if method in terminal.route.actions:
                path_hit = (terminal, m)
                break
            if path_hit is None:
                path_hit = (terminal, m)

        if path_hit is None:
            return None
        terminal, m = path_hit
        return terminal.route, dict(zip(terminal.names_for(method), m.groups(), strict=True))


MATCHERS: dict[str, type[Matcher]] = {
    "trie": TrieMatcher,
    "regex": RegexMatcher,
}


def resolve_matcher(matcher: str | type[Matcher]) -> type[Matcher]:
    """Return the matcher class for a registered name, or *matcher* itself."""
    if isinstance(matcher, str):
        try:
            return MATCHERS[matcher]
        except KeyError:
            known = ", ".join(sorted(MATCHERS))
            msg = f"Unknown matcher {matcher!r}. Known matchers: {known}"
            raise ValueError(msg) from None
    return matcher
