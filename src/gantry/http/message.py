"""Request and response values exchanged with the HTTP kernel."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, BinaryIO
from urllib.parse import parse_qsl

_NO_BODY_STATUSES = (204, 304)


@dataclass(frozen=True)
class Request:
    """Immutable HTTP request.

    Header names are stored lowercase. ``with_*`` methods return modified
    copies, which is how listeners of ``kernel.request`` rewrite the
    request.
    """

    method: str = "GET"
    path: str = "/"
    query: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    attributes: Mapping[str, Any] = field(default_factory=dict)
    session: Any = None

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(
            self, "headers", {name.lower(): value for name, value in self.headers.items()}
        )

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def with_attribute(self, name: str, value: Any) -> Request:
        return dataclasses.replace(self, attributes={**self.attributes, name: value})

    def with_session(self, session: Any) -> Request:
        return dataclasses.replace(self, session=session)

    @property
    def cookies(self) -> dict[str, str]:
        cookies = {}
        for cookie in self.header("cookie", "").split(";"):
            if "=" in cookie:
                name, value = cookie.split("=", 1)
                cookies[name.strip()] = value.strip()
        return cookies

    def json(self) -> Any:
        if not self.body:
            return None
        return json.loads(self.body)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str], stdin: BinaryIO | None = None) -> Request:
        """Build a request from CGI gateway variables.

        Args:
            environ: ``REQUEST_METHOD``, ``PATH_INFO``, ``QUERY_STRING``,
                ``CONTENT_*`` and ``HTTP_*`` variables
            stdin: Binary stream holding ``CONTENT_LENGTH`` bytes of body
        """
        headers = {}
        for key, value in environ.items():
            if key.startswith("HTTP_"):
                headers[key[5:].replace("_", "-").lower()] = value
            elif key in ("CONTENT_TYPE", "CONTENT_LENGTH") and value:
                headers[key.replace("_", "-").lower()] = value

        body = b""
        length = environ.get("CONTENT_LENGTH") or "0"
        if stdin is not None and length.isdigit() and int(length) > 0:
            body = stdin.read(int(length))

        return cls(
            method=environ.get("REQUEST_METHOD", "GET"),
            path=environ.get("PATH_INFO") or "/",
            query=dict(parse_qsl(environ.get("QUERY_STRING", ""), keep_blank_values=True)),
            headers=headers,
            body=body,
        )


@dataclass
class Response:
    """HTTP response produced by a handler and emitted by the kernel."""

    body: str | bytes = ""
    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    charset: str = "utf-8"

    @property
    def reason(self) -> str:
        try:
            return HTTPStatus(self.status).phrase
        except ValueError:
            return ""

    def content(self) -> bytes:
        """The body encoded with the response charset."""
        if self.status in _NO_BODY_STATUSES:
            return b""
        if isinstance(self.body, bytes):
            return self.body
        return self.body.encode(self.charset)

    def header(self, name: str, default: str | None = None) -> str | None:
        for key, value in self.headers.items():
            if key.lower() == name.lower():
                return value
        return default

    def with_header(self, name: str, value: str) -> Response:
        headers = {key: item for key, item in self.headers.items() if key.lower() != name.lower()}
        headers[name] = value
        return dataclasses.replace(self, headers=headers)

    @classmethod
    def json(cls, data: Any, status: int = 200, headers: Mapping[str, str] | None = None) -> Response:
        return cls(
            body=json.dumps(data),
            status=status,
            headers={"Content-Type": "application/json", **(headers or {})},
        )

    @classmethod
    def text(cls, body: str, status: int = 200, content_type: str = "text/plain") -> Response:
        response = cls(body=body, status=status)
        response.headers["Content-Type"] = f"{content_type}; charset={response.charset}"
        return response
