"""Entry point that ties the application to the HTTP kernel."""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from typing import TYPE_CHECKING, BinaryIO, ClassVar

from loguru import logger

from gantry.http.kernel import HttpKernel
from gantry.http.message import Request, Response
from gantry.http.routing import Router

from .config import ConfigStore
from .env import to_bool
from .events import EventDispatcher, KernelRequestEvent
from .instance import InstanceCell

if TYPE_CHECKING:
    from .application import Application


class Kernel:
    """Runs one request through a built application.

    Example:
        >>> app = Application("/srv/myapp", providers=[HttpServiceProvider])
        >>> app.kernel.run()  # reads the CGI environment, answers on stdout
    """

    _instance: ClassVar[InstanceCell[Kernel]] = InstanceCell("Kernel")

    def __init__(self, app: Application):
        self.app = app
        Kernel._instance.set_once(self)

    @classmethod
    def get_instance(cls) -> Kernel:
        return cls._instance.get()

    def get_app(self) -> Application:
        return self.app

    def get_http_kernel(self) -> HttpKernel:
        """Return the bound HttpKernel, binding a default one if there is none."""
        container = self.app.container
        if container.is_bound(HttpKernel):
            return container.get(HttpKernel)

        dispatcher = container.get(EventDispatcher) if container.is_bound(EventDispatcher) else None
        if container.is_bound(Router):
            router = container.get(Router)
        else:
            router = Router()
            container.share(Router, router)
            if dispatcher is not None:
                dispatcher.subscribe(KernelRequestEvent, router.on_kernel_request)

        debug = False
        if container.is_bound(ConfigStore):
            debug = to_bool(container.get(ConfigStore).get("debug", False))

        logger.debug("No HTTP kernel bound, using the default one")
        http_kernel = HttpKernel(dispatcher, router, debug=debug)
        container.share(HttpKernel, http_kernel)
        return http_kernel

    def handle(self, request: Request) -> Response:
        """Build the application if needed and handle ``request``.

        The request is bound in the container first, so the session is
        attached to it whether the build happens now or already happened.
        """
        container = self.app.container
        container.share(Request, request)
        if self.app.is_built():
            self.app.start_session()
        else:
            self.app.build()
        return self.get_http_kernel().handle(container.get(Request))

    def send(self, response: Response) -> Response:
        return self.get_http_kernel().send(response)

    def terminate(self, request: Request, response: Response) -> None:
        self.get_http_kernel().terminate(request, response)

    def run(
        self, environ: Mapping[str, str] | None = None, stdin: BinaryIO | None = None
    ) -> Response:
        """Answer the request described by a CGI environment."""
        environ = os.environ if environ is None else environ
        stdin = sys.stdin.buffer if stdin is None else stdin

        request = Request.from_environ(environ, stdin)
        response = self.handle(request)
        response = self.send(response)
        self.terminate(request, response)
        return response
