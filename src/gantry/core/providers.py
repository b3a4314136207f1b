"""Service providers: units that register and boot services."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, runtime_checkable

from loguru import logger

from .errors import ProviderError

if TYPE_CHECKING:
    from .application import Application
    from .container import Container


class ServiceProvider:
    """Base class for service providers.

    ``register`` is called while the container is being set up and must
    only bind services. Work that needs other services belongs in
    ``boot`` (see BootableServiceProvider).

    Example:
        >>> class MailProvider(BootableServiceProvider):
        ...     provides = ("mail",)
        ...
        ...     def register(self):
        ...         self.container.share("mail", lambda: Mailer())
        ...
        ...     def boot(self):
        ...         self.app.events.subscribe("kernel.terminate", flush_mail)
    """

    #: Identifiers this provider binds, for introspection
    provides: ClassVar[tuple[Any, ...]] = ()

    def __init__(self, app: Application):
        self.app = app
        self.container: Container | None = None

    def set_container(self, container: Container) -> None:
        self.container = container

    def get_container(self) -> Container:
        if self.container is None:
            return self.app.container
        return self.container

    def register(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


@runtime_checkable
class Bootable(Protocol):
    """A provider that needs a second phase after every provider registered."""

    def boot(self) -> None: ...


class BootableServiceProvider(ServiceProvider):
    def boot(self) -> None:
        pass


def make_provider(reference: Any, app: Application) -> ServiceProvider:
    """Turn a provider reference into a provider instance.

    Args:
        reference: A ServiceProvider subclass, an instance, or an import
            string such as ``"myapp.providers:MailProvider"`` or
            ``"myapp.providers.MailProvider"``
        app: The application passed to the provider constructor

    Raises:
        ProviderError: If the reference cannot be loaded or is not a provider
    """
    if isinstance(reference, ServiceProvider):
        reference.set_container(app.container)
        return reference

    if isinstance(reference, str):
        reference = _import_string(reference)

    if not (isinstance(reference, type) and issubclass(reference, ServiceProvider)):
        raise ProviderError(
            f"Service provider [{_describe(reference)}] must be a ServiceProvider subclass",
            provider=reference,
        )

    try:
        provider = reference(app)
    except Exception as e:
        raise ProviderError(
            f"Service provider [{_describe(reference)}] could not be instantiated: {e}",
            provider=reference,
            cause=e,
        ) from e

    provider.set_container(app.container)
    return provider


def _import_string(path: str) -> Any:
    # Entry point format: "module:Class", or dotted "module.Class"
    if ":" in path:
        module_name, _, attribute = path.partition(":")
    else:
        module_name, _, attribute = path.rpartition(".")

    if not module_name or not attribute:
        raise ProviderError(f"Invalid service provider reference [{path}]", provider=path)

    try:
        module = importlib.import_module(module_name)
        return getattr(module, attribute)
    except (ImportError, AttributeError) as e:
        raise ProviderError(
            f"Service provider [{path}] could not be loaded: {e}", provider=path, cause=e
        ) from e


def _describe(reference: Any) -> str:
    return getattr(reference, "__qualname__", None) or repr(reference)


class ProviderRegistry:
    """Ordered set of provider instances.

    Registration and boot each happen at most once per provider, no matter
    how often ``register_all`` or ``boot_all`` is called.
    """

    def __init__(self):
        self._providers: list[ServiceProvider] = []
        self._registered: set[int] = set()
        self._booted: set[int] = set()

    def add(self, provider: ServiceProvider) -> ServiceProvider:
        if any(existing is provider for existing in self._providers):
            return provider
        self._providers.append(provider)
        return provider

    def register_all(self, container: Container) -> None:
        """Call ``register`` on every provider not yet registered, in order."""
        for provider in self._providers:
            if id(provider) in self._registered:
                continue
            provider.set_container(container)
            try:
                provider.register()
            except Exception as e:
                raise ProviderError(
                    f"Service provider [{type(provider).__name__}] failed to register: {e}",
                    provider=provider,
                    cause=e,
                ) from e
            self._registered.add(id(provider))
            logger.debug(f"Registered service provider: {type(provider).__name__}")

    def boot_all(self) -> None:
        """Call ``boot`` on every bootable provider not yet booted, in order."""
        for provider in self._providers:
            if id(provider) in self._booted or not isinstance(provider, Bootable):
                continue
            # Marked first so a boot that re-enters the build is not repeated
            self._booted.add(id(provider))
            try:
                provider.boot()
            except Exception as e:
                raise ProviderError(
                    f"Service provider [{type(provider).__name__}] failed to boot: {e}",
                    provider=provider,
                    cause=e,
                ) from e
            logger.debug(f"Booted service provider: {type(provider).__name__}")

    @property
    def bootables(self) -> list[ServiceProvider]:
        return [provider for provider in self._providers if isinstance(provider, Bootable)]

    def is_booted(self, provider: ServiceProvider) -> bool:
        return id(provider) in self._booted

    def __iter__(self):
        return iter(list(self._providers))

    def __len__(self) -> int:
        return len(self._providers)
