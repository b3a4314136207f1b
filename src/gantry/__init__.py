"""Gantry - the bootstrap kernel of a Python web application.

Gantry loads the environment and configuration of an application, wires a
service container with named aliases, registers and boots service
providers and runs a single request through an HTTP kernel, announcing
every step with lifecycle events.

Quick Start:
    >>> from gantry import Application, HttpServiceProvider
    >>>
    >>> app = Application("/srv/myapp", providers=[HttpServiceProvider])
    >>> app.build()
    >>>
    >>> @app.router.get("/", name="home")
    ... def home(request):
    ...     return {"hello": "world"}
    >>>
    >>> app.kernel.run()  # CGI: reads os.environ, writes to stdout

Logging goes through loguru and is disabled by default; enable it with
``logger.enable("gantry")``.
"""

__version__ = "1.0.0"

from loguru import logger

from gantry.core import (
    Application,
    Bootable,
    BootableServiceProvider,
    BootedEvent,
    BootEvent,
    ConfigLoadedEvent,
    ConfigLoadEvent,
    ConfigStore,
    ConfigurationError,
    Container,
    ContainerError,
    Environment,
    Event,
    EventDispatcher,
    GantryError,
    HttpError,
    InstanceUnavailableError,
    Kernel,
    KernelRequestEvent,
    KernelResponseEvent,
    KernelTerminateEvent,
    LifecycleError,
    LocaleUpdateEvent,
    MethodNotAllowedError,
    ProviderError,
    ProxyManager,
    ProxyResolver,
    RouteNotFoundError,
    ServiceNotFoundError,
    ServiceProvider,
    ServiceProxy,
)
from gantry.http import (
    HttpKernel,
    HttpServiceProvider,
    Request,
    Response,
    Router,
    StreamEmitter,
)

logger.disable("gantry")  # Disabled by default, users can enable with logger.enable("gantry")

__all__ = [
    # Application
    "Application",
    "Kernel",
    # Container
    "Container",
    "ServiceProvider",
    "BootableServiceProvider",
    "Bootable",
    "ProxyManager",
    "ProxyResolver",
    "ServiceProxy",
    # Configuration
    "ConfigStore",
    "Environment",
    # Events
    "Event",
    "EventDispatcher",
    "BootEvent",
    "BootedEvent",
    "ConfigLoadEvent",
    "ConfigLoadedEvent",
    "KernelRequestEvent",
    "KernelResponseEvent",
    "KernelTerminateEvent",
    "LocaleUpdateEvent",
    # HTTP
    "HttpKernel",
    "HttpServiceProvider",
    "Request",
    "Response",
    "Router",
    "StreamEmitter",
    # Errors
    "GantryError",
    "ContainerError",
    "ServiceNotFoundError",
    "ConfigurationError",
    "ProviderError",
    "InstanceUnavailableError",
    "LifecycleError",
    "HttpError",
    "RouteNotFoundError",
    "MethodNotAllowedError",
]
