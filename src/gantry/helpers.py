"""Shortcuts to the services of the running application.

Every helper goes through the global kernel, so calling one before an
Application exists raises InstanceUnavailableError.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from typing import Any

from gantry.core.application import Application
from gantry.core.config import ConfigStore
from gantry.core.events import EventDispatcher
from gantry.core.kernel import Kernel
from gantry.http.message import Request


def app(alias: Hashable | None = None) -> Any:
    """Return the application, or the service bound to ``alias``."""
    application: Application = Kernel.get_instance().get_app()
    if alias is None:
        return application
    return application.get(alias)


def config(key: str | Mapping[str, Any] | None = None, default: Any = None) -> Any:
    """Read a configuration value, or set values when given a mapping.

    Example:
        >>> config("app.locale", "en")
        'fr'
        >>> config({"app.locale": "de"})
    """
    store: ConfigStore = app().config
    if key is None:
        return store
    if isinstance(key, Mapping):
        store.set(key)
        return None
    return store.get(key, default)


def env(key: str, default: Any = None) -> Any:
    return app().env.get(key, default)


def event() -> EventDispatcher:
    return app().events


def request() -> Request:
    return app().request


def route(name: str, **params: Any) -> str:
    """URL of the named route."""
    return app().router.url_for(name, **params)
