"""Tests for waypoint.routing.route: Route and default fallbacks."""

import pytest

from waypoint.errors import DuplicateAction
from waypoint.http.method import Method
from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.middleware.protocol import Next
from waypoint.routing.pattern import compile_pattern
from waypoint.routing.route import MethodNotAllowedResponder, NotFoundResponder, Route


async def _get(request: Request) -> Response:
    return Response("get")


async def _post(request: Request) -> Response:
    return Response("post")


async def _teapot(request: Request) -> Response:
    return Response("teapot", status=418)


def _make(pattern: str = "/x", **actions: object) -> Route:
    return Route(
        compiled=compile_pattern(pattern),
        actions={Method.parse(name): handler for name, handler in actions.items()},
    )


class TestRoute:
    def test_fields(self) -> None:
        route = _make("/users/:id", GET=_get)
        assert route.pattern == "/users/:id"
        assert route.param_names == ("id",)
        assert route.methods == frozenset({Method.GET})

    def test_frozen(self) -> None:
        route = _make(GET=_get)
        with pytest.raises(AttributeError):
            route.compiled = compile_pattern("/y")  # type: ignore[misc]

    def test_actions_read_only(self) -> None:
        route = _make(GET=_get)
        with pytest.raises(TypeError):
            route.actions[Method.POST] = _post  # type: ignore[index]

    def test_actions_copied(self) -> None:
        actions = {Method.GET: _get}
        route = Route(compiled=compile_pattern("/x"), actions=actions)
        actions[Method.POST] = _post
        assert Method.POST not in route.actions

    def test_identity_equality(self) -> None:
        assert _make(GET=_get) != _make(GET=_get)

    def test_action_for(self) -> None:
        route = _make(GET=_get)
        assert route.action_for("GET") is _get
        assert route.action_for(Method.POST) is route.fallback


@pytest.mark.anyio
class TestRouteDispatch:
    async def test_respond_uses_action(self) -> None:
        route = _make(GET=_get, POST=_post)
        response = await route.respond(Request.create("POST", "/x"))
        assert response.text == "post"

    async def test_default_fallback_is_405_with_allow(self) -> None:
        route = _make(GET=_get, POST=_post)
        response = await route.respond(Request.create("DELETE", "/x"))
        assert response.status == 405
        assert response.header("Allow") == "GET, POST"

    async def test_fallback_override(self) -> None:
        route = Route(
            compiled=compile_pattern("/x"),
            actions={Method.GET: _get},
            fallback_override=_teapot,
        )
        response = await route.respond(Request.create("PUT", "/x"))
        assert response.status == 418

    async def test_with_middleware_wraps_actions_and_fallback(self) -> None:
        async def tag(request: Request, next: Next) -> Response:
            response = await next(request)
            return response.with_header("X-Tag", "1")

        route = _make(GET=_get).with_middleware([tag])
        ok = await route.respond(Request.create("GET", "/x"))
        missing = await route.respond(Request.create("POST", "/x"))
        assert ok.header("X-Tag") == "1"
        assert missing.status == 405
        assert missing.header("X-Tag") == "1"

    async def test_with_no_middleware_is_identity(self) -> None:
        route = _make(GET=_get)
        assert route.with_middleware([]) is route


class TestMerge:
    def test_union_of_actions(self) -> None:
        merged = _make("/u/:id", GET=_get).merge(_make("/u/:name", POST=_post))
        assert merged.methods == frozenset({Method.GET, Method.POST})
        assert merged.pattern == "/u/:name"

    def test_overlap_is_duplicate(self) -> None:
        with pytest.raises(DuplicateAction) as exc_info:
            _make("/u/:id", GET=_get).merge(_make("/u/:name", GET=_post))
        assert exc_info.value.method == Method.GET

    def test_keeps_explicit_fallback(self) -> None:
        first = Route(compile_pattern("/a"), {Method.GET: _get}, fallback_override=_teapot)
        merged = first.merge(_make("/a", POST=_post))
        assert merged.fallback is _teapot


@pytest.mark.anyio
class TestDefaultResponders:
    async def test_not_found(self) -> None:
        response = await NotFoundResponder()(Request.create("GET", "/"))
        assert response.status == 404
        assert response.reason == "Not Found"

    async def test_method_not_allowed_without_methods(self) -> None:
        response = await MethodNotAllowedResponder()(Request.create("GET", "/"))
        assert response.status == 405
        assert response.header("Allow") is None
