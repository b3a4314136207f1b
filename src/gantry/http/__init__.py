"""HTTP layer: messages, router, kernel and emitter."""

from .emitter import Emitter, StreamEmitter
from .kernel import HttpKernel, KernelState, RequestHandler
from .message import Request, Response
from .provider import HttpServiceProvider
from .routing import Route, Router, to_response

__all__ = [
    "Emitter",
    "HttpKernel",
    "HttpServiceProvider",
    "KernelState",
    "Request",
    "RequestHandler",
    "Response",
    "Route",
    "Router",
    "StreamEmitter",
    "to_response",
]
