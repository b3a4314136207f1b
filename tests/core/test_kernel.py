"""Tests for the application kernel entry point."""

import io

import pytest

from gantry.core.application import Application
from gantry.core.errors import InstanceUnavailableError
from gantry.core.kernel import Kernel
from gantry.http.emitter import StreamEmitter
from gantry.http.kernel import HttpKernel
from gantry.http.message import Request
from gantry.http.provider import HttpServiceProvider
from gantry.http.routing import Router


class ExitRecorder:
    def __init__(self):
        self.codes = []

    def __call__(self, code):
        self.codes.append(code)


class FakeSession:
    def __init__(self):
        self.starts = 0

    def start(self):
        self.starts += 1
        return True


def capture(http_kernel, output):
    """Point an HTTP kernel at a buffer and stop it from exiting."""
    http_kernel.emitter = StreamEmitter(output)
    http_kernel.exit_func = ExitRecorder()
    return http_kernel.exit_func


class TestKernelInstance:
    @pytest.mark.unit
    def test_unavailable_before_application(self):
        with pytest.raises(InstanceUnavailableError, match=r"\[Kernel\]"):
            Kernel.get_instance()

    @pytest.mark.unit
    def test_created_by_application(self, app):
        kernel = Kernel.get_instance()

        assert kernel is app.kernel
        assert kernel.get_app() is app


class TestHandle:
    @pytest.mark.integration
    def test_handle_builds_application(self, app):
        router = Router()
        router.add("/", lambda request: "home")
        app.container.share(Router, router)

        response = app.kernel.handle(Request(path="/"))

        assert app.is_built()
        assert response.content() == b"home"

    @pytest.mark.integration
    def test_default_http_kernel_is_bound_once(self, app):
        app.build()
        http_kernel = app.kernel.get_http_kernel()

        assert app.kernel.get_http_kernel() is http_kernel
        assert app.get("http_kernel") is http_kernel
        assert isinstance(app.get("router"), Router)

    @pytest.mark.integration
    def test_default_router_is_subscribed(self, app):
        app.build()
        http_kernel = app.kernel.get_http_kernel()
        seen = []
        app.router.add("/users/{id}", lambda request, id: seen.append(request) or {"id": id})

        http_kernel.handle(Request(path="/users/1"))

        assert seen[0].get_attribute("route_params") == {"id": "1"}

    @pytest.mark.integration
    def test_session_is_attached_to_handled_request(self, app):
        session = FakeSession()
        app.container.share("session", session)
        received = []
        router = Router()
        router.add("/", lambda request: received.append(request))
        app.container.share(Router, router)

        app.kernel.handle(Request(path="/"))

        assert received[0].session is session

    @pytest.mark.integration
    def test_session_is_attached_after_build(self, base_dir, output):
        app = Application(base_dir, providers=[HttpServiceProvider])
        session = FakeSession()
        app.container.share("session", session)
        app.build()
        received = []
        app.router.add("/", lambda request: received.append(request))
        exits = capture(app.get(HttpKernel), output)

        app.kernel.run({"PATH_INFO": "/"}, io.BytesIO())

        assert received[0].session is session
        assert app.request.session is session
        assert session.starts == 1
        assert exits.codes == [0]


class TestRun:
    @pytest.mark.integration
    def test_cgi_request(self, base_dir, output):
        app = Application(base_dir, providers=[HttpServiceProvider]).build()

        @app.router.post("/users/{id}", name="user")
        def update_user(request, id):
            return {"id": id, "name": request.json()["name"]}

        exits = capture(app.get(HttpKernel), output)
        environ = {
            "GATEWAY_INTERFACE": "CGI/1.1",
            "REQUEST_METHOD": "POST",
            "PATH_INFO": "/users/3",
            "CONTENT_TYPE": "application/json",
            "CONTENT_LENGTH": "15",
        }

        response = app.kernel.run(environ, io.BytesIO(b'{"name": "ada"}'))

        assert response.status == 200
        assert output.getvalue().startswith(b"Status: 200 OK\r\n")
        assert output.getvalue().endswith(b'{"id": "3", "name": "ada"}')
        assert exits.codes == [0]
        assert app.request.path == "/users/3"

    @pytest.mark.integration
    def test_cgi_not_found(self, base_dir, output):
        app = Application(base_dir, providers=[HttpServiceProvider]).build()
        exits = capture(app.get(HttpKernel), output)

        response = app.kernel.run({"PATH_INFO": "/missing"}, io.BytesIO())

        assert response.status == 404
        assert output.getvalue().startswith(b"Status: 404 Not Found\r\n")
        assert exits.codes == [0]

    @pytest.mark.integration
    def test_debug_from_config(self, base_dir):
        app = Application(
            base_dir, providers=[HttpServiceProvider], config_params={"debug": "true"}
        ).build()

        assert app.get(HttpKernel).debug is True
