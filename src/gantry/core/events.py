"""Synchronous event dispatching and the lifecycle events of the kernel."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from loguru import logger

if TYPE_CHECKING:
    from gantry.core.application import Application
    from gantry.core.config import ConfigStore
    from gantry.http.message import Request, Response

WILDCARD = "*"


@dataclass
class Event:
    """Base class for all events.

    Subclasses set the class-level ``name`` that subscribers listen on.
    """

    name: ClassVar[str] = "event"

    _propagation_stopped: bool = field(default=False, init=False, repr=False, compare=False)

    def event_name(self) -> str:
        return self.name

    def stop_propagation(self) -> None:
        """Prevent the remaining listeners from being called."""
        self._propagation_stopped = True

    @property
    def propagation_stopped(self) -> bool:
        return self._propagation_stopped


@dataclass
class NamedEvent(Event):
    """Event created on the fly when dispatching a bare name."""

    event: str = ""
    payload: Any = None

    def event_name(self) -> str:
        return self.event


EventHandler = Callable[[Event], Any]


@dataclass(order=True)
class _Listener:
    sort_key: tuple[int, int]
    handler: EventHandler = field(compare=False)


class EventDispatcher:
    """Publish/subscribe bus keyed by event name.

    Dispatch is synchronous: listeners run in descending priority and, for
    equal priority, in registration order. All listeners receive the same
    event object, so a listener sees what earlier ones changed, and the
    dispatcher returns that object to the caller.

    A listener that raises is logged and the chain continues. A listener
    can end the chain on purpose with ``event.stop_propagation()``.

    Example:
        >>> events = EventDispatcher()
        >>> @events.on("kernel.request")
        ... def attach_route(event):
        ...     event.request = event.request.with_attribute("route", "home")
        >>> event = events.dispatch(KernelRequestEvent(request))
        >>> event.request.get_attribute("route")
        'home'
    """

    def __init__(self):
        self._listeners: dict[str, list[_Listener]] = {}
        self._sequence = itertools.count()

    def subscribe(
        self, event: str | type[Event], handler: EventHandler, priority: int = 0
    ) -> EventHandler:
        """Register ``handler`` for an event name (or Event subclass)."""
        name = _event_key(event)
        listeners = self._listeners.setdefault(name, [])
        listeners.append(_Listener((-priority, next(self._sequence)), handler))
        listeners.sort()
        logger.debug(f"Registered listener for {name}")
        return handler

    def on(self, event: str | type[Event], priority: int = 0):
        """Decorator form of :meth:`subscribe`."""

        def decorator(func: EventHandler) -> EventHandler:
            return self.subscribe(event, func, priority)

        return decorator

    def unsubscribe(self, event: str | type[Event], handler: EventHandler) -> None:
        name = _event_key(event)
        self._listeners[name] = [
            listener for listener in self._listeners.get(name, []) if listener.handler != handler
        ]

    def has_listeners(self, event: str | type[Event]) -> bool:
        return bool(self._listeners.get(_event_key(event)))

    def listeners(self, event: str | type[Event]) -> list[EventHandler]:
        return [listener.handler for listener in self._listeners.get(_event_key(event), [])]

    def dispatch(self, event: Event | str, payload: Any = None) -> Event:
        """Invoke every listener of the event, in order, and return the event."""
        if isinstance(event, str):
            event = NamedEvent(event=event, payload=payload)

        name = event.event_name()
        handlers = self.listeners(name)
        if name != WILDCARD:
            handlers += self.listeners(WILDCARD)

        for handler in handlers:
            if event.propagation_stopped:
                logger.debug(f"Propagation of {name} stopped")
                break
            try:
                handler(event)
            except Exception:
                logger.exception(f"Listener {_handler_name(handler)} failed on {name}")

        return event


def _event_key(event: str | type[Event]) -> str:
    if isinstance(event, type) and issubclass(event, Event):
        return event.name
    return event


def _handler_name(handler: Callable) -> str:
    return getattr(handler, "__qualname__", repr(handler))


# Lifecycle events


@dataclass
class BootEvent(Event):
    """Dispatched once providers are registered, before they boot."""

    name: ClassVar[str] = "app.boot"

    app: Application | None = None


@dataclass
class BootedEvent(Event):
    """Dispatched once the application is fully built."""

    name: ClassVar[str] = "app.booted"

    app: Application | None = None


@dataclass
class ConfigLoadEvent(Event):
    """Dispatched with the freshly materialized configuration.

    Listeners may replace ``config``; the application keeps whatever the
    event carries after dispatch.
    """

    name: ClassVar[str] = "config.load"

    config: ConfigStore | None = None
    app: Application | None = None

    def get_config(self, key: str | None = None) -> Any:
        if key is None:
            return self.config
        return self.config.get(key) if self.config is not None else None


@dataclass
class ConfigLoadedEvent(Event):
    name: ClassVar[str] = "config.loaded"

    config: ConfigStore | None = None
    app: Application | None = None


@dataclass
class KernelRequestEvent(Event):
    """Dispatched before a request is handled.

    A listener may replace ``request`` (for instance with one carrying the
    matched route); the kernel continues with the replaced request.
    """

    name: ClassVar[str] = "kernel.request"

    request: Request | None = None


@dataclass
class KernelResponseEvent(Event):
    name: ClassVar[str] = "kernel.response"

    response: Response | None = None


@dataclass
class KernelTerminateEvent(Event):
    """Dispatched after the response was emitted, before the process ends."""

    name: ClassVar[str] = "kernel.terminate"

    request: Request | None = None
    response: Response | None = None


@dataclass
class LocaleUpdateEvent(Event):
    name: ClassVar[str] = "locale.update"

    locale: str = ""
