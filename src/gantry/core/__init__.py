"""Core bootstrap: application, container, configuration and events."""

from .application import Application
from .config import ConfigStore, merge_configs
from .container import Container
from .env import Environment
from .errors import (
    ConfigurationError,
    ContainerError,
    GantryError,
    HttpError,
    InstanceUnavailableError,
    LifecycleError,
    MethodNotAllowedError,
    ProviderError,
    RouteNotFoundError,
    ServiceNotFoundError,
)
from .events import (
    BootedEvent,
    BootEvent,
    ConfigLoadedEvent,
    ConfigLoadEvent,
    Event,
    EventDispatcher,
    KernelRequestEvent,
    KernelResponseEvent,
    KernelTerminateEvent,
    LocaleUpdateEvent,
)
from .instance import InstanceCell
from .kernel import Kernel
from .providers import Bootable, BootableServiceProvider, ProviderRegistry, ServiceProvider
from .proxy import ProxyManager, ProxyResolver, ServiceProxy

__all__ = [
    "Application",
    "Bootable",
    "BootableServiceProvider",
    "BootEvent",
    "BootedEvent",
    "ConfigLoadEvent",
    "ConfigLoadedEvent",
    "ConfigStore",
    "ConfigurationError",
    "Container",
    "ContainerError",
    "Environment",
    "Event",
    "EventDispatcher",
    "GantryError",
    "HttpError",
    "InstanceCell",
    "InstanceUnavailableError",
    "Kernel",
    "KernelRequestEvent",
    "KernelResponseEvent",
    "KernelTerminateEvent",
    "LifecycleError",
    "LocaleUpdateEvent",
    "MethodNotAllowedError",
    "ProviderError",
    "ProviderRegistry",
    "ProxyManager",
    "ProxyResolver",
    "RouteNotFoundError",
    "ServiceNotFoundError",
    "ServiceProvider",
    "ServiceProxy",
    "merge_configs",
]
