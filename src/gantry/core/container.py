"""Service container with aliases, shared bindings and constructor injection."""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Hashable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar, Union, get_args, get_origin, get_type_hints

from loguru import logger

from .errors import ContainerError, ServiceNotFoundError

T = TypeVar("T")

CLASS = "class"
FACTORY = "factory"
INSTANCE = "instance"


@dataclass
class Definition:
    """A single binding of an identifier to something that produces a service."""

    key: Hashable
    concrete: Any
    shared: bool = False
    kind: str = CLASS


class Container:
    """A dependency injection container with a dict-like interface.

    Examples:
        container = Container()

        # Register services
        container.share(Database, Database("sqlite://"))   # Instance
        container.add(UserService)                          # Class, transient
        container.share("mailer", lambda: Mailer())         # Factory, shared
        container.alias("db", Database)

        # Resolve services
        db = container.get("db")
        fresh = container.get("mailer", fresh=True)

        # Optional services
        session = container.resolve("session")  # None when not registered
    """

    def __init__(self):
        self._definitions: dict[Hashable, Definition] = {}
        self._instances: dict[Hashable, Any] = {}
        self._aliases: dict[Hashable, Hashable] = {}
        self._autowiring = False
        self._resolving: list[Hashable] = []

    # Registration

    def add(self, key: Hashable, concrete: Any = None, *, shared: bool = False) -> Definition:
        """Register a class, factory or instance under ``key``.

        Registering under an alias binds the canonical identifier instead.
        """
        if concrete is None:
            if not inspect.isclass(key):
                raise ValueError(f"A concrete is required to register '{key}'")
            concrete = key

        canonical = self.get_alias(key)
        kind = _kind_of(concrete)
        definition = Definition(canonical, concrete, shared=shared or kind == INSTANCE, kind=kind)

        self._definitions[canonical] = definition
        self._instances.pop(canonical, None)
        return definition

    def share(self, key: Hashable, concrete: Any = None) -> Definition:
        """Register a shared binding, built once and cached."""
        return self.add(key, concrete, shared=True)

    def instance(self, key: Hashable, obj: Any) -> Definition:
        """Register an already constructed object, even a callable one."""
        canonical = self.get_alias(key)
        definition = Definition(canonical, obj, shared=True, kind=INSTANCE)
        self._definitions[canonical] = definition
        self._instances.pop(canonical, None)
        return definition

    def remove(self, key: Hashable) -> None:
        canonical = self.get_alias(key)
        self._definitions.pop(canonical, None)
        self._instances.pop(canonical, None)

    # Aliases

    def alias(self, alias: Hashable, key: Hashable) -> None:
        """Map a short name to a canonical identifier."""
        if alias == key:
            return
        self._aliases[alias] = key

    def register_aliases(self, table: Mapping[Hashable, Iterable[Hashable]]) -> None:
        """Register ``{canonical: [alias, ...]}`` mappings."""
        for key, aliases in table.items():
            for alias in aliases:
                self.alias(alias, key)

    def get_alias(self, key: Hashable) -> Hashable:
        """Return the canonical identifier for ``key``."""
        seen = set()
        while key in self._aliases and key not in seen:
            seen.add(key)
            key = self._aliases[key]
        return key

    def is_alias(self, key: Hashable) -> bool:
        return key in self._aliases

    @property
    def aliases(self) -> dict[Hashable, Hashable]:
        return dict(self._aliases)

    def enable_autowiring(self, enabled: bool = True) -> None:
        """Build unregistered concrete classes with constructor injection."""
        self._autowiring = enabled

    # Resolution

    def has(self, key: Hashable) -> bool:
        canonical = self.get_alias(key)
        if canonical in self._definitions:
            return True
        return self._autowiring and _is_autowirable(canonical)

    def is_bound(self, key: Hashable) -> bool:
        """True if ``key`` was registered explicitly, autowiring aside."""
        return self.get_alias(key) in self._definitions

    def get(self, key: Hashable, *, fresh: bool = False) -> Any:
        """Resolve ``key``.

        Args:
            key: Identifier or alias
            fresh: Build a new object even if a shared one is cached

        Raises:
            ServiceNotFoundError: If nothing is registered under ``key``
            ContainerError: If the binding exists but building it failed
        """
        canonical = self.get_alias(key)
        definition = self._definitions.get(canonical)

        if definition is None:
            if self._autowiring and _is_autowirable(canonical):
                return self._build(canonical, canonical, CLASS)
            raise ServiceNotFoundError(key, available=self._available())

        if definition.kind == INSTANCE:
            return definition.concrete

        if definition.shared and not fresh and canonical in self._instances:
            return self._instances[canonical]

        obj = self._build(canonical, definition.concrete, definition.kind)
        if definition.shared and not fresh:
            self._instances[canonical] = obj
        return obj

    def resolve(self, key: Hashable, default: Any = None) -> Any:
        """Resolve an optional service.

        Only a missing binding yields ``default``; a binding that fails to
        build still raises ContainerError.
        """
        try:
            return self.get(key)
        except ServiceNotFoundError:
            return default

    def call(self, func: Callable[..., T], *args, **overrides) -> T:
        """Call ``func`` injecting any parameter the container can satisfy."""
        kwargs = self._arguments(func, args, overrides)
        return func(*args, **kwargs)

    def _build(self, key: Hashable, concrete: Any, kind: str) -> Any:
        if key in self._resolving:
            chain = " -> ".join(_name(k) for k in [*self._resolving, key])
            raise ContainerError(f"Circular dependency detected: {chain}", service_key=key)

        self._resolving.append(key)
        try:
            return self.call(concrete)
        except ServiceNotFoundError as e:
            raise ContainerError(
                f"Cannot build '{_name(key)}': dependency '{_name(e.service_key)}' is not registered",
                service_key=key,
                cause=e,
            ) from e
        except ContainerError:
            raise
        except Exception as e:
            logger.debug(f"Failed to build {_name(key)}: {e}")
            raise ContainerError(f"Failed to resolve '{_name(key)}': {e}", service_key=key, cause=e) from e
        finally:
            self._resolving.pop()

    def _arguments(self, func: Callable, args: tuple, overrides: dict[str, Any]) -> dict[str, Any]:
        target = func.__init__ if inspect.isclass(func) else func
        try:
            signature = inspect.signature(func)
        except (TypeError, ValueError):
            return dict(overrides)

        try:
            hints = get_type_hints(target)
        except Exception:
            hints = {}

        kwargs = dict(overrides)
        for index, (name, param) in enumerate(signature.parameters.items()):
            if index < len(args) and param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
                continue
            if name in kwargs or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue

            annotation = _unwrap_optional(hints.get(name, param.annotation))

            if name == "container" or _is_container_type(annotation, self):
                kwargs[name] = self
            elif annotation is not param.empty and _is_key(annotation) and self.has(annotation):
                kwargs[name] = self.get(annotation)
            elif param.default is param.empty:
                raise ContainerError(
                    f"Cannot resolve parameter '{name}' of {_name(func)}",
                    service_key=annotation if annotation is not param.empty else name,
                )

        return kwargs

    def _available(self) -> list[str]:
        return [_name(key) for key in self._definitions]

    # Dict-like interface

    def __getitem__(self, key: Hashable) -> Any:
        return self.get(key)

    def __setitem__(self, key: Hashable, concrete: Any) -> None:
        self.add(key, concrete)

    def __contains__(self, key: Hashable) -> bool:
        return self.has(key)

    def __delitem__(self, key: Hashable) -> None:
        self.remove(key)

    def __len__(self) -> int:
        return len(self._definitions)


def _kind_of(concrete: Any) -> str:
    if inspect.isclass(concrete):
        return CLASS
    if (
        inspect.isfunction(concrete)
        or inspect.ismethod(concrete)
        or inspect.isbuiltin(concrete)
        or isinstance(concrete, functools.partial)
    ):
        return FACTORY
    return INSTANCE


def _is_autowirable(key: Any) -> bool:
    return (
        inspect.isclass(key)
        and not inspect.isabstract(key)
        and not getattr(key, "_is_protocol", False)
        and key.__module__ != "builtins"
    )


def _is_container_type(annotation: Any, container: Container) -> bool:
    # Compared by MRO: isinstance() rejects non runtime-checkable protocols
    return isinstance(annotation, type) and annotation in type(container).__mro__[:-1]


def _is_key(annotation: Any) -> bool:
    return isinstance(annotation, type)


def _unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) is Union:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _name(key: Any) -> str:
    return getattr(key, "__qualname__", None) or str(key)
