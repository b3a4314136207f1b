"""Application lifecycle: environment, configuration, container and providers.

The Application owns the service container and drives the bootstrap in two
phases. Construction runs ``pre_build`` (environment, paths, the kernel
singleton); ``build`` then materializes the configuration, registers every
service provider, boots them and announces the result through lifecycle
events.

Example:
    >>> class App(Application):
    ...     providers = [HttpServiceProvider, "myapp.providers:MailProvider"]
    >>>
    >>> app = App("/srv/myapp", config_params={"app": {"locale": "fr"}})
    >>> app.build()
    >>> app.config.get("app.locale")
    'fr'
    >>> Application.get_instance() is app
    True
"""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Callable, Hashable, Mapping
from pathlib import Path
from typing import Any, ClassVar

from loguru import logger

from .config import ConfigStore
from .container import Container
from .env import Environment, to_bool
from .errors import ContainerError, ServiceNotFoundError
from .events import (
    BootedEvent,
    BootEvent,
    ConfigLoadedEvent,
    ConfigLoadEvent,
    Event,
    EventDispatcher,
    LocaleUpdateEvent,
)
from .instance import InstanceCell
from .kernel import Kernel
from .paths import join_path, normalize_path
from .providers import ProviderRegistry, ServiceProvider, make_provider
from .proxy import ProxyManager, ProxyResolver

VERSION = "1.0.0"
DEFAULT_LOCALE = "en"


class Application:
    """Main application class with a two-phase bootstrap.

    Attributes:
        container: The service container, populated during ``build``
        env: Environment variables loaded from the base path
        proxies: Named static accessors, available after ``build``
    """

    #: Provider references registered by every instance of the class
    providers: ClassVar[list[Any]] = []

    _instance: ClassVar[InstanceCell[Application]] = InstanceCell("Application")

    def __init__(
        self,
        base_path: str | Path,
        *,
        providers: list[Any] | None = None,
        config_params: Mapping[str, Any] | None = None,
        process_mode: str | None = None,
    ):
        """Create the application and run ``pre_build``.

        Args:
            base_path: Root directory of the application
            providers: Provider references added to the class-level ones
            config_params: Configuration applied over the loaded files
            process_mode: ``"cli"`` or ``"cgi"``; detected when omitted
        """
        self._base_path = normalize_path(str(base_path))
        Application._instance.set_once(self)

        self.container = Container()
        self.env = Environment(use_global=to_bool(os.environ.get("USE_GLOBAL_ENV", False)))
        self.proxies: ProxyManager | None = None
        self.start_time: float | None = None

        self._provider_references = list(providers or [])
        self._config_params = dict(config_params or {})
        self._process_mode = process_mode
        self._registry = ProviderRegistry()
        self._public_dir = "public"
        self._locale: str | None = None
        self._running_in_console: bool | None = None

        self._lock = threading.RLock()
        self._pre_built = False
        self._building = False
        self._built = False
        self._completed_phases: set[str] = set()
        self._providers_loaded = False
        self._session_started = False

        self.pre_build()

    @classmethod
    def get_instance(cls) -> Application:
        """Return the first Application constructed in this process.

        Raises:
            InstanceUnavailableError: If no Application exists yet
        """
        return cls._instance.get()

    # Bootstrap

    def pre_build(self) -> None:
        if self._pre_built:
            return

        self.start_time = time.time()
        self.env.load(self._base_path)
        self._public_dir = self.env.get("APP_PUBLIC_DIR", "public") or "public"
        self.env.set_merge_vars(
            {"app": {"base_dir": self.base_path(), "public_dir": self.public_path()}}
        )

        self._register_aliases()

        if not self.container.is_bound(Kernel):
            self.container.share(Kernel, Kernel(self))
        if not self.container.is_bound(EventDispatcher):
            self.container.share(EventDispatcher, EventDispatcher())

        self._pre_built = True
        logger.debug(f"Application pre-built at {self._base_path}")

    def build(self) -> Application:
        """Load configuration, register and boot providers. Runs once.

        A call made while the build is in progress (for instance from a
        provider's ``boot``) returns immediately. After a failed build, a
        later call resumes at the phase that failed. Completed phases are
        not repeated.

        Raises:
            ProviderError: If a provider cannot be loaded, registered or booted
            ConfigurationError: If a configuration file is invalid
        """
        with self._lock:
            if self._built or self._building:
                return self

            self._building = True
            try:
                self._run_phase("config", self._build_config)
                self._run_phase("container", self._build_container)
                self._run_phase("proxies", self._build_proxies)
                self._run_phase("boot", lambda: self._dispatch(BootEvent(app=self)))
                self._run_phase("services", self._build_services)
                self._run_phase("locale", self._build_locale)
                self._run_phase("session", self.start_session)
                self._built = True
            finally:
                self._building = False

            logger.info(f"Application built in {self.elapsed():.3f}s")
            self._dispatch(BootedEvent(app=self))

        return self

    def boot(self) -> None:
        """Hook run after every provider booted. Override in subclasses."""
        pass

    def _run_phase(self, name: str, step: Callable[[], Any]) -> None:
        if name in self._completed_phases:
            return
        step()
        self._completed_phases.add(name)

    def _build_config(self) -> None:
        config = ConfigStore()
        config.add_schema("app_url", str)
        config.merge(
            {
                "app_url": self.env.get("APP_URL"),
                "timezone": self.env.get("APP_TIMEZONE"),
                "debug": self.env.get("APP_DEBUG", False),
                "charset": "UTF-8",
            }
        )
        config.load_directory(self.config_path(), interpolate=self.env.interpolate)
        config.merge(self._config_params)

        event = self._dispatch(ConfigLoadEvent(config=config, app=self))
        config = event.config

        self.container.share(ConfigStore, config)
        self._dispatch(ConfigLoadedEvent(config=config, app=self))

    def _build_container(self) -> None:
        self.container.enable_autowiring()
        self.container.share(Application, self)
        if type(self) is not Application:
            self.container.share(type(self), self)
        self.container.share(Container, self.container)
        self._register_aliases()

        if not self._providers_loaded:
            references = [
                *type(self).providers,
                *self._provider_references,
                *(self.config.get("app.providers") or []),
            ]
            # Added only once every reference has loaded
            loaded = [make_provider(reference, self) for reference in references]
            for provider in loaded:
                self._registry.add(provider)
            self._providers_loaded = True

        self._registry.register_all(self.container)

    def _build_proxies(self) -> None:
        ProxyResolver.set_container(self.container)

        proxies = self.config.get("proxy") or {}
        if not isinstance(proxies, Mapping):
            logger.debug("Proxy configuration is not a mapping, no proxies added")
            proxies = {}
        self.proxies = ProxyManager(proxies)

    def _build_services(self) -> None:
        self._registry.boot_all()
        self.boot()

    def _build_locale(self) -> bool:
        locale = self._configured_locale()
        if locale is None:
            return False
        try:
            self.set_locale(locale)
        except Exception as e:
            logger.warning(f"Default locale could not be applied: {e}")
            return False
        return True

    def start_session(self) -> bool:
        """Start the session service once and attach it to the bound request.

        Called by ``build`` and again by the kernel for each request it
        binds afterwards. Failures are logged and reported as ``False``.
        """
        try:
            session = self.container.get("session")
        except ServiceNotFoundError:
            logger.debug("No session service bound")
            return False
        except ContainerError as e:
            logger.warning(f"Session service could not be created: {e}")
            return False

        try:
            if not self._session_started:
                session.start()
                self._session_started = True
            if self.container.is_bound("request"):
                request = self.container.get("request")
                if request.session is not session:
                    self.container.share("request", request.with_session(session))
        except Exception as e:
            logger.warning(f"Session could not be started: {e}")
            return False
        return True

    def _register_aliases(self) -> None:
        from .aliases import DEFAULT_ALIASES

        self.container.register_aliases(DEFAULT_ALIASES)

    def _dispatch(self, event: Event) -> Event:
        if not self.container.is_bound(EventDispatcher):
            logger.debug(f"No event dispatcher bound, {event.event_name()} not dispatched")
            return event
        return self.container.get(EventDispatcher).dispatch(event)

    # Paths

    def base_path(self, sub: str | None = None) -> str:
        return join_path(self._base_path, sub)

    def public_path(self, sub: str | None = None) -> str:
        return join_path(self._base_path, self._public_dir, sub)

    def config_path(self, sub: str | None = None) -> str:
        return join_path(self._base_path, "config", sub)

    # Environment

    @property
    def process_mode(self) -> str:
        if self._process_mode:
            return self._process_mode
        return "cgi" if "GATEWAY_INTERFACE" in os.environ else "cli"

    def running_in_console(self) -> bool:
        if self._running_in_console is None:
            value = self.env.get("APP_RUNNING_IN_CONSOLE")
            if value is None:
                self._running_in_console = self.process_mode == "cli"
            else:
                self._running_in_console = to_bool(value)
        return self._running_in_console

    def environment(self) -> str:
        return self.env.get("APP_ENV") or "production"

    def is_debug(self) -> bool:
        return to_bool(self.env.get("APP_DEBUG", False))

    def version(self) -> str:
        return VERSION

    def elapsed(self) -> float:
        """Seconds since ``pre_build`` started."""
        return time.time() - (self.start_time or time.time())

    # Locale

    def _configured_locale(self) -> str | None:
        if not self.container.is_bound(ConfigStore):
            return None
        return self.config.get("app.locale") or self.config.get("locale")

    def get_locale(self) -> str:
        return self._locale or self._configured_locale() or DEFAULT_LOCALE

    def set_locale(self, locale: str) -> Application:
        self._locale = locale
        self._dispatch(LocaleUpdateEvent(locale=locale))
        return self

    # State

    def set_config_params(self, params: Mapping[str, Any]) -> Application:
        """Replace the configuration applied over the files at build time."""
        self._config_params = dict(params)
        return self

    def get_service_providers(self) -> list[ServiceProvider]:
        return list(self._registry)

    def is_built(self) -> bool:
        return self._built

    def is_pre_built(self) -> bool:
        return self._pre_built

    # Services

    @property
    def config(self) -> ConfigStore:
        return self.container.get(ConfigStore)

    @property
    def events(self) -> EventDispatcher:
        return self.container.get(EventDispatcher)

    @property
    def kernel(self) -> Kernel:
        return self.container.get(Kernel)

    @property
    def router(self):
        return self.container.get("router")

    @property
    def request(self):
        return self.container.get("request")

    def get(self, key: Hashable) -> Any:
        return self.container.get(key)

    def has(self, key: Hashable) -> bool:
        return self.container.has(key)

    def resolve(self, key: Hashable, default: Any = None) -> Any:
        return self.container.resolve(key, default)

    def __getitem__(self, key: Hashable) -> Any:
        return self.container.get(key)

    def __contains__(self, key: Hashable) -> bool:
        return self.container.has(key)

    def __repr__(self) -> str:
        state = "built" if self._built else "pre-built" if self._pre_built else "new"
        return f"{type(self).__name__}({self._base_path!r}, {state})"
