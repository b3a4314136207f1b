"""Binds the router and the HTTP kernel."""

from __future__ import annotations

from loguru import logger

from gantry.core.config import ConfigStore
from gantry.core.env import to_bool
from gantry.core.events import EventDispatcher, KernelRequestEvent
from gantry.core.providers import BootableServiceProvider

from .emitter import StreamEmitter
from .kernel import HttpKernel
from .routing import Router


class HttpServiceProvider(BootableServiceProvider):
    """Shares a Router and an HttpKernel unless the application bound its own."""

    provides = (Router, HttpKernel)

    def register(self):
        container = self.get_container()

        if not container.is_bound(Router):
            container.share(Router, Router())

        if not container.is_bound(HttpKernel):
            container.share(HttpKernel, self._make_kernel)

    def _make_kernel(self) -> HttpKernel:
        container = self.get_container()
        debug = False
        if container.is_bound(ConfigStore):
            debug = to_bool(container.get(ConfigStore).get("debug", False))
        return HttpKernel(
            container.get(EventDispatcher) if container.is_bound(EventDispatcher) else None,
            container.get(Router),
            StreamEmitter(),
            debug=debug,
        )

    def boot(self):
        container = self.get_container()
        if not container.is_bound(EventDispatcher):
            logger.debug("No event dispatcher bound, routes are matched while handling")
            return
        events = container.get(EventDispatcher)
        events.subscribe(KernelRequestEvent, container.get(Router).on_kernel_request)
