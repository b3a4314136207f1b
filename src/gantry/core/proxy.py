"""Static accessors: module-level handles that resolve services on use.

A proxy stands in for a service before the container exists. Every
attribute access or call resolves the service again through the
resolver, so a proxy created at import time follows whatever the
container currently binds.

Example:
    >>> router = ServiceProxy("router")
    >>> ProxyResolver.set_container(app.container)
    >>> router.url_for("home")
    '/'
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from typing import TYPE_CHECKING, Any

from loguru import logger

from .errors import InstanceUnavailableError

if TYPE_CHECKING:
    from .container import Container


class ProxyResolver:
    """Holds the container every proxy resolves against."""

    _container: Container | None = None

    @classmethod
    def set_container(cls, container: Container) -> None:
        cls._container = container

    @classmethod
    def get_container(cls) -> Container:
        if cls._container is None:
            raise InstanceUnavailableError("proxy container")
        return cls._container

    @classmethod
    def has_container(cls) -> bool:
        return cls._container is not None

    @classmethod
    def reset(cls) -> None:
        cls._container = None


class ServiceProxy:
    """Lazy stand-in for the service bound to ``service_id``."""

    __slots__ = ("_service_id",)

    def __init__(self, service_id: Hashable):
        object.__setattr__(self, "_service_id", service_id)

    def resolve(self) -> Any:
        return ProxyResolver.get_container().get(self._service_id)

    def __getattr__(self, name: str) -> Any:
        return getattr(self.resolve(), name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self.resolve(), name, value)

    def __call__(self, *args, **kwargs) -> Any:
        return self.resolve()(*args, **kwargs)

    def __repr__(self) -> str:
        return f"ServiceProxy({self._service_id!r})"


class ProxyManager:
    """Named proxies, reachable as attributes.

    Example:
        >>> proxies = ProxyManager({"router": "router"})
        >>> proxies.router.url_for("home")
    """

    def __init__(self, proxies: Mapping[str, Hashable] | None = None):
        self._proxies: dict[str, ServiceProxy] = {}
        for alias, service_id in (proxies or {}).items():
            self.add_proxy(alias, service_id)

    def add_proxy(self, alias: str, service_id: Hashable) -> ServiceProxy:
        proxy = ServiceProxy(service_id)
        self._proxies[alias] = proxy
        logger.debug(f"Added proxy {alias} -> {service_id}")
        return proxy

    def has(self, alias: str) -> bool:
        return alias in self._proxies

    def get(self, alias: str) -> ServiceProxy:
        try:
            return self._proxies[alias]
        except KeyError:
            raise KeyError(f"No proxy named '{alias}'") from None

    def __getattr__(self, alias: str) -> ServiceProxy:
        if alias.startswith("_"):
            raise AttributeError(alias)
        try:
            return self.get(alias)
        except KeyError as e:
            raise AttributeError(str(e)) from None

    def __contains__(self, alias: str) -> bool:
        return self.has(alias)

    def __len__(self) -> int:
        return len(self._proxies)
