"""Tests for route matching and handler result conversion."""

import pytest

from gantry.core.errors import MethodNotAllowedError, RouteNotFoundError
from gantry.core.events import KernelRequestEvent
from gantry.http.message import Request, Response
from gantry.http.routing import Route, Router, to_response


@pytest.fixture
def router():
    router = Router()

    @router.get("/", name="home")
    def home(request):
        return "<h1>home</h1>"

    @router.get("/users/{id}", name="user")
    def show_user(request, id):
        return {"id": id}

    @router.post("/users")
    def create_user(request):
        return {"created": True}, 201

    @router.delete("/users/{id}")
    def delete_user(request, id):
        return None

    return router


class TestRoute:
    @pytest.mark.unit
    def test_path_to_pattern(self):
        route = Route(handler=lambda request: None, path="/posts/{slug}/comments/{id}", methods=["get"])

        assert route.methods == ["GET"]
        assert route.param_names == ["slug", "id"]
        assert route.match("/posts/hello/comments/3", "GET") == {"slug": "hello", "id": "3"}
        assert route.match("/posts/hello/comments/3", "POST") is None
        assert route.match("/posts/hello", "GET") is None

    @pytest.mark.unit
    def test_literal_segments_are_escaped(self):
        route = Route(handler=lambda request: None, path="/files/a.txt", methods=["GET"])

        assert route.match("/files/a.txt", "GET") == {}
        assert route.match("/files/abtxt", "GET") is None

    @pytest.mark.unit
    def test_parameter_inside_segment(self):
        route = Route(
            handler=lambda request: None, path="/files/{name}.txt", methods=["GET"], name="file"
        )

        url = route.url(name="report")
        assert url == "/files/report.txt"
        assert route.match(url, "GET") == {"name": "report"}
        assert route.match("/files/report.csv", "GET") is None
        assert route.match("/files/a/b.txt", "GET") is None

    @pytest.mark.unit
    def test_url(self):
        route = Route(handler=lambda request: None, path="/users/{id}", methods=["GET"])

        assert route.url(id=42) == "/users/42"
        with pytest.raises(KeyError):
            route.url()


class TestRouter:
    @pytest.mark.unit
    def test_match(self, router):
        route, params = router.match("/users/7", "GET")

        assert route.name == "user"
        assert params == {"id": "7"}

    @pytest.mark.unit
    def test_no_match(self, router):
        with pytest.raises(RouteNotFoundError):
            router.match("/missing", "GET")

    @pytest.mark.unit
    def test_wrong_method(self, router):
        with pytest.raises(MethodNotAllowedError) as exc_info:
            router.match("/users/7", "PUT")

        assert exc_info.value.allowed == ["GET", "DELETE"]
        assert exc_info.value.headers["Allow"] == "GET, DELETE"

    @pytest.mark.unit
    def test_url_for(self, router):
        assert router.url_for("home") == "/"
        assert router.url_for("user", id=9) == "/users/9"
        with pytest.raises(RouteNotFoundError):
            router.url_for("unknown")

    @pytest.mark.unit
    def test_route_decorator_with_methods(self):
        router = Router()

        @router.route("/items", methods=["GET", "PUT"])
        def items(request):
            return []

        assert router.match("/items", "PUT")[0].handler is items
        assert len(router.routes) == 1

    @pytest.mark.unit
    def test_kernel_request_listener_attaches_route(self, router):
        event = KernelRequestEvent(request=Request(path="/users/5"))
        router.on_kernel_request(event)

        assert event.request.get_attribute("route").name == "user"
        assert event.request.get_attribute("route_params") == {"id": "5"}

    @pytest.mark.unit
    def test_kernel_request_listener_ignores_unmatched(self, router):
        request = Request(path="/missing")
        event = KernelRequestEvent(request=request)
        router.on_kernel_request(event)

        assert event.request is request


class TestHandle:
    @pytest.mark.unit
    def test_uses_attached_route(self, router):
        attached = Route(handler=lambda request, id: f"attached {id}", path="/x/{id}", methods=["GET"])
        request = (
            Request(path="/users/1")
            .with_attribute("route", attached)
            .with_attribute("route_params", {"id": "1"})
        )

        assert router.handle(request).content() == b"attached 1"

    @pytest.mark.unit
    def test_matches_when_no_route_attached(self, router):
        response = router.handle(Request(path="/users/3"))

        assert response.status == 200
        assert response.content() == b'{"id": "3"}'

    @pytest.mark.unit
    def test_status_tuple(self, router):
        response = router.handle(Request(method="POST", path="/users"))
        assert response.status == 201

    @pytest.mark.unit
    def test_none_is_no_content(self, router):
        response = router.handle(Request(method="DELETE", path="/users/3"))
        assert response.status == 204

    @pytest.mark.unit
    def test_unmatched_raises(self, router):
        with pytest.raises(RouteNotFoundError):
            router.handle(Request(path="/missing"))


class TestToResponse:
    @pytest.mark.unit
    def test_response_passes_through(self):
        response = Response("x")
        assert to_response(response) is response

    @pytest.mark.unit
    def test_string_is_html(self):
        response = to_response("<p>hi</p>")
        assert response.header("content-type") == "text/html; charset=utf-8"

    @pytest.mark.unit
    def test_list_is_json(self):
        response = to_response([1, 2])
        assert response.header("content-type") == "application/json"
        assert response.content() == b"[1, 2]"

    @pytest.mark.unit
    def test_bytes(self):
        response = to_response(b"\x89PNG")
        assert response.header("content-type") == "application/octet-stream"

    @pytest.mark.unit
    def test_none_with_explicit_status(self):
        assert to_response((None, 202)).status == 202
