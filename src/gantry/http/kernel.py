"""The request, response and terminate pipeline of a single request."""

from __future__ import annotations

import sys
import traceback
from collections.abc import Callable
from enum import Enum
from typing import Any, ClassVar, Protocol, runtime_checkable

from loguru import logger

from gantry.core.errors import HttpError, LifecycleError
from gantry.core.events import (
    EventDispatcher,
    KernelRequestEvent,
    KernelResponseEvent,
    KernelTerminateEvent,
)
from gantry.core.instance import InstanceCell

from .emitter import Emitter, StreamEmitter
from .message import Request, Response


class KernelState(Enum):
    IDLE = "idle"
    REQUEST_DISPATCHED = "request_dispatched"
    HANDLED = "handled"
    RESPONSE_DISPATCHED = "response_dispatched"
    EMITTED = "emitted"
    TERMINATED = "terminated"


_TRANSITIONS = {
    KernelState.IDLE: KernelState.REQUEST_DISPATCHED,
    KernelState.REQUEST_DISPATCHED: KernelState.HANDLED,
    KernelState.HANDLED: KernelState.RESPONSE_DISPATCHED,
    KernelState.RESPONSE_DISPATCHED: KernelState.EMITTED,
    KernelState.EMITTED: KernelState.TERMINATED,
}


@runtime_checkable
class RequestHandler(Protocol):
    def handle(self, request: Request) -> Response: ...


class HttpKernel:
    """Turns one request into one emitted response, then ends the process.

    The kernel walks a fixed sequence of states; calling ``send`` before
    ``handle`` or ``terminate`` before ``send`` raises LifecycleError.

    Exceptions raised while handling are turned into an error response:
    the status of an HttpError (500 for anything else) with a JSON body,
    plus the traceback when ``debug`` is on.

    Example:
        >>> kernel = HttpKernel(events, router, StreamEmitter(buffer), exit_on_terminate=False)
        >>> response = kernel.handle(Request(path="/"))
        >>> kernel.send(response)
        >>> kernel.terminate(request, response)
    """

    _instance: ClassVar[InstanceCell[HttpKernel]] = InstanceCell("HttpKernel")

    def __init__(
        self,
        dispatcher: EventDispatcher | None,
        handler: RequestHandler,
        emitter: Emitter | None = None,
        *,
        debug: bool = False,
        exit_on_terminate: bool = True,
        exit_func: Callable[[int], Any] = sys.exit,
    ):
        self.dispatcher = dispatcher
        self.handler = handler
        self.emitter = emitter if emitter is not None else StreamEmitter()
        self.debug = debug
        self.exit_on_terminate = exit_on_terminate
        self.exit_func = exit_func
        self._state = KernelState.IDLE

        HttpKernel._instance.set_once(self)

    @classmethod
    def get_instance(cls) -> HttpKernel:
        return cls._instance.get()

    @property
    def state(self) -> KernelState:
        return self._state

    def _advance(self, target: KernelState) -> None:
        if _TRANSITIONS.get(self._state) is not target:
            raise LifecycleError(
                f"Cannot move the HTTP kernel from {self._state.value} to {target.value}"
            )
        self._state = target

    def _dispatch(self, event):
        if self.dispatcher is None:
            return event
        return self.dispatcher.dispatch(event)

    def handle(self, request: Request) -> Response:
        """Dispatch ``kernel.request`` and let the handler answer the resulting request."""
        self._advance(KernelState.REQUEST_DISPATCHED)
        try:
            event = self._dispatch(KernelRequestEvent(request=request))
            request = event.request
            response = self.handler.handle(request)
        except Exception as e:
            response = self._error_response(e)
        self._advance(KernelState.HANDLED)
        return response

    def send(self, response: Response) -> Response:
        """Dispatch ``kernel.response`` and emit the resulting response."""
        self._advance(KernelState.RESPONSE_DISPATCHED)
        response = self._dispatch(KernelResponseEvent(response=response)).response
        self.emitter.emit(response)
        self._advance(KernelState.EMITTED)
        return response

    def terminate(self, request: Request, response: Response) -> None:
        """Dispatch ``kernel.terminate`` and end the process."""
        self._advance(KernelState.TERMINATED)
        self._dispatch(KernelTerminateEvent(request=request, response=response))
        logger.debug("HTTP kernel terminated")
        if self.exit_on_terminate:
            self.exit_func(0)

    def _error_response(self, error: Exception) -> Response:
        if isinstance(error, HttpError):
            status = error.status_code
            headers = dict(error.headers)
            logger.info(f"Request failed with {status}: {error}")
        else:
            status = 500
            headers = {}
            logger.exception("Unhandled exception while handling request")

        response = Response(status=status)
        payload: dict[str, Any] = {"error": str(error) or response.reason}
        if self.debug:
            payload["exception"] = type(error).__name__
            payload["trace"] = traceback.format_exception(error)
        return Response.json(payload, status, headers)
