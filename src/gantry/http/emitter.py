"""Writing responses to the gateway."""

from __future__ import annotations

import sys
from typing import BinaryIO, Protocol, runtime_checkable

from .message import Response


@runtime_checkable
class Emitter(Protocol):
    def emit(self, response: Response) -> None: ...


class StreamEmitter:
    """Writes a CGI response (status line, headers, body) to a binary stream."""

    def __init__(self, stream: BinaryIO | None = None):
        self._stream = stream

    @property
    def stream(self) -> BinaryIO:
        # Looked up on each emit so a replaced sys.stdout is honoured
        return self._stream if self._stream is not None else sys.stdout.buffer

    def emit(self, response: Response) -> None:
        content = response.content()
        headers = dict(response.headers)
        names = {name.lower() for name in headers}
        if "content-type" not in names and content:
            headers["Content-Type"] = f"text/html; charset={response.charset}"
        if "content-length" not in names:
            headers["Content-Length"] = str(len(content))

        lines = [f"Status: {response.status} {response.reason}".rstrip()]
        lines += [f"{name}: {value}" for name, value in headers.items()]
        head = "\r\n".join(lines) + "\r\n\r\n"

        stream = self.stream
        stream.write(head.encode("latin-1"))
        stream.write(content)
        stream.flush()
