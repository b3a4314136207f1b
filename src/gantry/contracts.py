"""Interfaces of the services an application plugs into the kernel.

Only the shape the kernel relies on is declared; concrete implementations
come from service providers.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Log(Protocol):
    def log(self, level: str, message: str, **context: Any) -> None: ...


@runtime_checkable
class Session(Protocol):
    """Session storage attached to the current request."""

    def start(self) -> bool: ...

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


@runtime_checkable
class Storage(Protocol):
    def exists(self, path: str) -> bool: ...

    def read(self, path: str) -> bytes: ...

    def write(self, path: str, contents: bytes) -> None: ...


@runtime_checkable
class Validator(Protocol):
    def validate(self, data: Any, rules: Any) -> bool: ...


@runtime_checkable
class Database(Protocol):
    def connection(self, name: str | None = None) -> Any: ...


@runtime_checkable
class Crypt(Protocol):
    def encrypt(self, value: str) -> str: ...

    def decrypt(self, payload: str) -> str: ...


@runtime_checkable
class Cookie(Protocol):
    def get(self, name: str, default: Any = None) -> Any: ...

    def make(self, name: str, value: str, **options: Any) -> Any: ...


@runtime_checkable
class Mail(Protocol):
    def send(self, message: Any) -> bool: ...


@runtime_checkable
class Form(Protocol):
    def render(self) -> str: ...


@runtime_checkable
class Field(Protocol):
    def render(self) -> str: ...


@runtime_checkable
class Metabox(Protocol):
    def render(self) -> str: ...


@runtime_checkable
class Partial(Protocol):
    def render(self) -> str: ...


@runtime_checkable
class Asset(Protocol):
    def url(self, path: str) -> str: ...


@runtime_checkable
class Console(Protocol):
    def run(self, argv: list[str] | None = None) -> int: ...


@runtime_checkable
class Debug(Protocol):
    def enable(self) -> None: ...


@runtime_checkable
class Faker(Protocol):
    def seed(self, value: int) -> None: ...


@runtime_checkable
class View(Protocol):
    def render(self, name: str, context: dict[str, Any] | None = None) -> str: ...
