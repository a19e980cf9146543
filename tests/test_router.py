"""Tests for waypoint.routing.router: dispatch, composition, and fallbacks."""

import threading

import anyio
import pytest

from waypoint.config import RouterConfig
from waypoint.errors import HTTPError
from waypoint.http.request import Request
from waypoint.http.response import Response
from waypoint.middleware.protocol import Middleware, Next
from waypoint.routing.builder import RouterBuilder
from waypoint.routing.matcher import RegexMatcher, TrieMatcher
from waypoint.routing.router import Router
from waypoint.testing import TestClient, assert_allow, assert_body, assert_status


def _text(body: str, status: int = 200):
    async def responder(request: Request) -> Response:
        return Response(body, status=status)

    return responder


async def _echo_params(request: Request) -> Response:
    return Response(",".join(f"{k}={v}" for k, v in request.parameters.items()))


def _append(tag: str) -> Middleware:
    async def mw(request: Request, next: Next) -> Response:
        response = await next(request)
        return response.with_body(tag + response.text)

    return mw


@pytest.mark.anyio
class TestDispatch:
    async def test_handler_response(self) -> None:
        builder = RouterBuilder()
        builder.get("/users/:id", responder=_echo_params)

        async with TestClient(builder.build()) as client:
            response = await client.get("/users/7")
        assert_body(response, "id=7")

    async def test_method_fallback_is_405(self) -> None:
        builder = RouterBuilder()
        builder.get("/x", responder=_text("x"))
        builder.put("/x", responder=_text("x"))

        async with TestClient(builder.build()) as client:
            response = await client.post("/x")
        assert_status(response, 405)
        assert_allow(response, {"GET", "PUT"})

    async def test_global_fallback_is_404(self) -> None:
        builder = RouterBuilder()
        builder.get("/x", responder=_text("x"))

        async with TestClient(builder.build()) as client:
            response = await client.get("/y")
        assert_status(response, 404)

    async def test_custom_global_fallback(self) -> None:
        builder = RouterBuilder()
        builder.get("/x", responder=_text("x"))
        builder.fallback(responder=_text("nothing here", status=410))

        async with TestClient(builder.build()) as client:
            response = await client.get("/y")
        assert_body(response, "nothing here", status=410)

    async def test_custom_route_fallback(self) -> None:
        builder = RouterBuilder()
        builder.get("/x", responder=_text("x"))
        builder.fallback(responder=_text("read only", status=403), path="/x")

        async with TestClient(builder.build()) as client:
            response = await client.delete("/x")
        assert_body(response, "read only", status=403)

    async def test_query_string_does_not_affect_matching(self) -> None:
        builder = RouterBuilder()
        builder.get("/search", responder=_text("found"))

        async with TestClient(builder.build()) as client:
            response = await client.get("/search?q=zewo")
        assert_body(response, "found")

    async def test_callable_router(self) -> None:
        builder = RouterBuilder()
        builder.get("/", responder=_text("home"))
        router = builder.build()
        response = await router(Request.create("GET", "/"))
        assert response.text == "home"

    async def test_handler_exceptions_propagate(self) -> None:
        async def boom(request: Request) -> Response:
            raise HTTPError(409, "conflict")

        builder = RouterBuilder()
        builder.get("/x", responder=boom)

        with pytest.raises(HTTPError) as exc_info:
            await builder.build().respond(Request.create("GET", "/x"))
        assert exc_info.value.status == 409

    async def test_sync_handler(self) -> None:
        def hello(request: Request) -> Response:
            return Response("sync")

        builder = RouterBuilder()
        builder.get("/", responder=hello)
        async with TestClient(builder.build()) as client:
            assert_body(await client.get("/"), "sync")

    async def test_offloaded_sync_handler_runs_in_worker_thread(self) -> None:
        loop_thread = threading.get_ident()

        def where(request: Request) -> Response:
            return Response("worker" if threading.get_ident() != loop_thread else "loop")

        builder = RouterBuilder(config=RouterConfig(offload_sync_handlers=True))
        builder.get("/", responder=where)
        async with TestClient(builder.build()) as client:
            assert_body(await client.get("/"), "worker")


@pytest.mark.anyio
class TestMiddleware:
    async def test_order_outermost_first(self) -> None:
        builder = RouterBuilder()
        builder.get("/", responder=_text("H"))
        router = builder.build(_append("A"), _append("B"))

        async with TestClient(router) as client:
            assert_body(await client.get("/"), "ABH")

    async def test_router_then_route_middleware(self) -> None:
        builder = RouterBuilder()
        builder.get("/", _append("R"), responder=_text("H"))
        router = builder.build(_append("A"))

        async with TestClient(router) as client:
            assert_body(await client.get("/"), "ARH")

    async def test_router_middleware_wraps_fallbacks(self) -> None:
        builder = RouterBuilder()
        builder.get("/x", responder=_text("x"))
        router = builder.build(_append("A"))

        async with TestClient(router) as client:
            missing = await client.get("/nope")
            wrong_method = await client.post("/x")
        assert missing.status == 404
        assert missing.text.startswith("A")
        assert wrong_method.status == 405
        assert wrong_method.text.startswith("A")

    async def test_group_middleware(self) -> None:
        builder = RouterBuilder()

        def admin(group: RouterBuilder) -> None:
            group.get("/stats", responder=_text("S"))

        builder.group("/admin", admin, _append("G"))
        builder.get("/public", responder=_text("P"))

        async with TestClient(builder.build()) as client:
            assert_body(await client.get("/admin/stats"), "GS")
            assert_body(await client.get("/public"), "P")


@pytest.mark.anyio
class TestCompose:
    async def test_nested_parameters(self) -> None:
        inner = RouterBuilder()
        inner.get("/:location/of/zewo", responder=_echo_params)

        outer = RouterBuilder("/:greeting")
        outer.compose(inner.build(), path="/:adjective")

        request = Request.create("GET", "/hello/beautiful/world/of/zewo")
        response = await outer.build().respond(request)
        assert response.status == 200
        assert request.parameters == {
            "greeting": "hello",
            "adjective": "beautiful",
            "location": "world",
        }

    async def test_same_path_different_methods(self) -> None:
        first = RouterBuilder()
        first.get("/path", responder=_text("route 1"))
        second = RouterBuilder()
        second.post("/path", responder=_text("route 2"))

        parent = RouterBuilder()
        parent.compose(first.build())
        parent.compose(second.build())

        async with TestClient(parent.build()) as client:
            assert_body(await client.get("/path"), "route 1")
            assert_body(await client.post("/path"), "route 2")
            response = await client.delete("/path")
        assert_status(response, 405)
        assert_allow(response, {"GET", "POST"})

    async def test_mount_strips_prefix(self) -> None:
        async def path(request: Request) -> Response:
            return Response(request.path)

        inner = RouterBuilder()
        inner.get("/users/:id/", responder=path)

        outer = RouterBuilder()
        outer.compose(inner.build(), path="/api/v1")

        async with TestClient(outer.build()) as client:
            assert_body(await client.get("/api/v1/users/3/"), "/users/3/")

    async def test_root_route_mounts_at_prefix(self) -> None:
        inner = RouterBuilder()
        inner.get("/", responder=_text("index"))

        outer = RouterBuilder()
        outer.compose(inner.build(), path="/docs")

        async with TestClient(outer.build()) as client:
            assert_body(await client.get("/docs"), "index")

    async def test_mount_middleware_order(self) -> None:
        inner = RouterBuilder()
        inner.get("/", responder=_text("H"))
        sub = inner.build(_append("C"))

        outer = RouterBuilder()
        outer.compose(sub, _append("B"), path="/sub")
        router = outer.build(_append("A"))

        async with TestClient(router) as client:
            assert_body(await client.get("/sub"), "ABCH")

    async def test_sub_router_route_fallback_survives(self) -> None:
        inner = RouterBuilder()
        inner.get("/x", responder=_text("x"))
        inner.fallback(responder=_text("inner says no", status=403), path="/x")

        outer = RouterBuilder()
        outer.compose(inner.build(), path="/sub")

        async with TestClient(outer.build()) as client:
            response = await client.post("/sub/x")
        assert_body(response, "inner says no", status=403)

    async def test_colliding_parameter_takes_inner_value(self) -> None:
        inner = RouterBuilder()
        inner.get("/:id", responder=_echo_params)

        outer = RouterBuilder("/teams/:id")
        outer.compose(inner.build(), path="/members")

        async with TestClient(outer.build()) as client:
            assert_body(await client.get("/teams/red/members/7"), "id=7")

    async def test_deep_nesting(self) -> None:
        leaf = RouterBuilder()
        leaf.get("/:c", responder=_echo_params)

        middle = RouterBuilder("/:b")
        middle.compose(leaf.build())

        root = RouterBuilder("/:a")
        root.compose(middle.build())

        async with TestClient(root.build()) as client:
            assert_body(await client.get("/1/2/3"), "a=1,b=2,c=3")


@pytest.mark.anyio
class TestResources:
    async def test_collection_dispatch(self) -> None:
        class Users:
            async def index(self, request: Request) -> Response:
                return Response("index")

            async def show(self, request: Request) -> Response:
                return Response("show " + request.parameters["id"])

            async def update(self, request: Request) -> Response:
                return Response(f"update {request.method}")

        from waypoint.routing.builder import ResourceBuilder

        builder = RouterBuilder("/api")
        builder.resources("/users", ResourceBuilder.from_object(Users()))

        async with TestClient(builder.build()) as client:
            assert_body(await client.get("/api/users"), "index")
            assert_body(await client.get("/api/users/9"), "show 9")
            assert_body(await client.put("/api/users/9"), "update PUT")
            assert_body(await client.patch("/api/users/9"), "update PATCH")
            create = await client.post("/api/users")
            destroy = await client.delete("/api/users/9")

        assert_status(create, 405)
        assert_allow(create, {"GET"})
        assert_status(destroy, 405)
        assert_allow(destroy, {"GET", "PUT", "PATCH"})


@pytest.mark.anyio
class TestMatcherSelection:
    def _builder(self, config: RouterConfig | None = None) -> RouterBuilder:
        builder = RouterBuilder(config=config)
        builder.get("/users", responder=_text("list"))
        builder.post("/users", responder=_text("create"))
        builder.get("/users/:id", responder=_echo_params)
        builder.get("/files/*path", responder=_echo_params)
        return builder

    async def test_trie_is_default(self) -> None:
        assert isinstance(self._builder().build().matcher, TrieMatcher)

    async def test_regex_by_name(self) -> None:
        assert isinstance(self._builder().build(matcher="regex").matcher, RegexMatcher)

    async def test_regex_by_config(self) -> None:
        router = self._builder(RouterConfig(matcher="regex")).build()
        assert isinstance(router.matcher, RegexMatcher)

    async def test_identical_responses(self) -> None:
        trie = self._builder().build()
        regex = self._builder().build(matcher=RegexMatcher)
        requests = [
            ("GET", "/users"),
            ("POST", "/users"),
            ("PUT", "/users"),
            ("GET", "/users/42"),
            ("DELETE", "/users/42"),
            ("GET", "/files/a/b/c"),
            ("GET", "/missing"),
        ]
        for method, target in requests:
            a = await trie.respond(Request.create(method, target))
            b = await regex.respond(Request.create(method, target))
            assert (a.status, a.text, a.headers) == (b.status, b.text, b.headers), (method, target)

    async def test_case_insensitive(self) -> None:
        router = self._builder(RouterConfig(case_sensitive=False)).build()
        async with TestClient(router) as client:
            assert_body(await client.get("/USERS"), "list")


@pytest.mark.anyio
class TestConcurrency:
    async def test_parallel_requests(self) -> None:
        async def slow_echo(request: Request) -> Response:
            await anyio.sleep(0)
            return Response(request.parameters["n"])

        builder = RouterBuilder()
        builder.get("/echo/:n", responder=slow_echo)
        router = builder.build(_append("<"))

        results: dict[int, Response] = {}

        async def one(n: int) -> None:
            results[n] = await router.respond(Request.create("GET", f"/echo/{n}"))

        async with anyio.create_task_group() as tg:
            for n in range(100):
                tg.start_soon(one, n)

        assert len(results) == 100
        for n, response in results.items():
            assert response.status == 200
            assert response.text == f"<{n}"


class TestRouterObject:
    def test_immutable(self) -> None:
        router = RouterBuilder().build()
        with pytest.raises(AttributeError, match="immutable"):
            router._routes = ()  # type: ignore[misc]
        with pytest.raises(AttributeError):
            del router._routes

    def test_introspection(self) -> None:
        builder = RouterBuilder("/api")
        builder.get("/ping", responder=_text("pong"))
        mw = _append("A")
        router = builder.build(mw)

        assert router.path == "/api"
        assert router.middleware == (mw,)
        assert [route.pattern for route in router.routes] == ["/api/ping"]
        assert "routes=1" in repr(router)

    def test_match_without_dispatch(self) -> None:
        builder = RouterBuilder()
        builder.get("/users/:id", responder=_text("x"))
        router = builder.build()

        request = Request.create("GET", "/users/5")
        route = router.match(request)
        assert route is not None
        assert route.pattern == "/users/:id"
        assert request.parameters == {"id": "5"}

    def test_define(self) -> None:
        router = Router.define(
            "/api",
            _append("A"),
            build=lambda route: route.get("/ping", responder=_text("pong")),
            matcher="regex",
        )
        assert isinstance(router.matcher, RegexMatcher)
        assert [route.pattern for route in router.routes] == ["/api/ping"]

    def test_empty_router(self) -> None:
        router = Router()
        assert router.routes == ()
        assert router.match(Request.create("GET", "/")) is None
