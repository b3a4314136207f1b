"""Configuration store with dotted-path access and directory loading."""

from __future__ import annotations

import copy
import dataclasses
import json
import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Callable, TypeVar, Union, get_args, get_origin, get_type_hints

import yaml
from loguru import logger

from .errors import ConfigurationError

T = TypeVar("T")

_MISSING = object()


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two configuration dictionaries.

    Args:
        base: Base configuration
        override: Override configuration, wins on conflicts

    Returns:
        Merged configuration
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def get_value_at_path(config: dict[str, Any] | Any, path: str) -> Any:
    """Get a value from a nested configuration using a dotted path.

    Args:
        config: Configuration object (dict or dataclass)
        path: Dotted path (e.g., "database.host")

    Returns:
        Value at path

    Raises:
        ConfigurationError: If path is invalid
    """
    if not path:
        return config

    parts = path.split(".")
    current = config

    for i, part in enumerate(parts):
        current_path = ".".join(parts[: i + 1])

        if dataclasses.is_dataclass(current) and not isinstance(current, type):
            if not hasattr(current, part):
                raise ConfigurationError(f"No attribute '{part}' at path '{current_path}'")
            current = getattr(current, part)
        elif isinstance(current, Mapping):
            if part not in current:
                raise ConfigurationError(f"No key '{part}' at path '{current_path}'")
            current = current[part]
        else:
            raise ConfigurationError(
                f"Cannot navigate into {type(current).__name__} at path '{current_path}'"
            )

    return current


def convert_value(value: Any, target_type: Any, path: str = "") -> Any:
    """Convert a value to the target type.

    Raises:
        ConfigurationError: If conversion fails
    """
    if value is None:
        return None

    origin = get_origin(target_type)

    if origin is None and isinstance(target_type, type) and isinstance(value, target_type):
        if not (target_type is int and isinstance(value, bool)):
            return value

    # Optional[X]
    if origin is Union:
        args = [arg for arg in get_args(target_type) if arg is not type(None)]
        if len(args) == 1:
            return convert_value(value, args[0], path)
        return value

    if dataclasses.is_dataclass(target_type):
        if isinstance(value, Mapping):
            return create_dataclass_from_dict(target_type, dict(value), path)
        raise ConfigurationError(
            f"Cannot convert {type(value).__name__} to dataclass {target_type.__name__} at {path}"
        )

    try:
        if target_type is bool:
            if isinstance(value, str):
                return value.strip().lower() in ("true", "yes", "1", "on")
            return bool(value)

        elif target_type in (int, float, str):
            return target_type(value)

        elif target_type is list or origin in (list, Sequence):
            if isinstance(value, str):
                value = [item.strip() for item in value.split(",")]
            if not isinstance(value, (list, tuple)):
                value = [value]
            args = get_args(target_type)
            if args:
                return [convert_value(item, args[0], f"{path}[{i}]") for i, item in enumerate(value)]
            return list(value)

        elif target_type is dict or origin in (dict, Mapping):
            if not isinstance(value, Mapping):
                raise ConfigurationError(f"Cannot convert {type(value).__name__} to dict at {path}")
            args = get_args(target_type)
            if len(args) == 2:
                key_type, value_type = args
                return {
                    convert_value(k, key_type, f"{path}.{k}"): convert_value(
                        v, value_type, f"{path}.{k}"
                    )
                    for k, v in value.items()
                }
            return dict(value)

        return target_type(value)

    except (ValueError, TypeError) as e:
        name = getattr(target_type, "__name__", str(target_type))
        raise ConfigurationError(f"Cannot convert {value!r} to {name} at {path}: {e}") from e


def create_dataclass_from_dict(dataclass_type: type[T], data: dict[str, Any], path: str = "") -> T:
    """Create a dataclass instance from a dictionary.

    Raises:
        ConfigurationError: If a required field is missing or conversion fails
    """
    type_hints = get_type_hints(dataclass_type)
    kwargs = {}

    for field in dataclasses.fields(dataclass_type):
        field_path = f"{path}.{field.name}" if path else field.name

        if field.name in data:
            field_type = type_hints.get(field.name, field.type)
            kwargs[field.name] = convert_value(data[field.name], field_type, field_path)
        elif field.default is dataclasses.MISSING and field.default_factory is dataclasses.MISSING:
            raise ConfigurationError(f"Required field '{field.name}' is missing at {path}")

    try:
        return dataclass_type(**kwargs)
    except Exception as e:
        raise ConfigurationError(
            f"Failed to create {dataclass_type.__name__} at {path}: {e}"
        ) from e


def load_file(path: str | Path) -> dict[str, Any]:
    """Parse a JSON, YAML or TOML configuration file.

    Raises:
        ConfigurationError: If the format is unknown or the content is invalid
    """
    path = Path(path)
    suffix = path.suffix.lower()

    try:
        content = path.read_text(encoding="utf-8")
        if suffix == ".json":
            data = json.loads(content)
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        elif suffix == ".toml":
            data = tomllib.loads(content)
        else:
            raise ConfigurationError(f"Unknown configuration format for {path}")
    except ConfigurationError:
        raise
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load configuration file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file {path} must contain a mapping, got {type(data).__name__}"
        )
    return data


class ConfigStore:
    """Ordered configuration mapping queried with dotted paths.

    Example:
        >>> config = ConfigStore({"database": {"host": "localhost"}})
        >>> config.get("database.host")
        'localhost'
        >>> config.set("database.port", 5432)
        >>> config.get("database")
        {'host': 'localhost', 'port': 5432}
    """

    SUPPORTED_SUFFIXES = (".json", ".yaml", ".yml", ".toml")

    def __init__(self, items: Mapping[str, Any] | None = None):
        self._data: dict[str, Any] = {}
        self._schema: dict[str, Any] = {}
        if items:
            self.merge(items)

    def add_schema(self, key: str, type_: Any) -> None:
        """Coerce the value stored at ``key`` to ``type_`` on every write."""
        self._schema[key] = type_
        if self.has(key):
            self._assign(key, self.get(key))

    def get(self, key: str | None = None, default: Any = None) -> Any:
        """Get the value at a dotted path, or everything when ``key`` is None."""
        if key is None:
            return copy.deepcopy(self._data)
        try:
            return get_value_at_path(self._data, key)
        except ConfigurationError:
            return default

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def set(self, key: str | Mapping[str, Any], value: Any = None) -> None:
        """Set a dotted path, or deep merge a mapping of values."""
        if isinstance(key, Mapping):
            self.merge(key)
        else:
            self._assign(key, value)

    def merge(self, items: Mapping[str, Any]) -> None:
        """Deep merge ``items``; later merges override earlier ones."""
        self._data = merge_configs(self._data, _expand(items))
        for key in self._schema:
            if self.has(key):
                self._assign(key, self.get(key))

    def all(self) -> dict[str, Any]:
        return self.get()

    def _assign(self, key: str, value: Any) -> None:
        if key in self._schema:
            value = convert_value(value, self._schema[key], key)

        parts = key.split(".")
        data = self._data
        for part in parts[:-1]:
            if not isinstance(data.get(part), dict):
                data[part] = {}
            data = data[part]
        data[parts[-1]] = value

    def load_directory(
        self, directory: str | Path, interpolate: Callable[[Any], Any] | None = None
    ) -> list[str]:
        """Load every configuration file of ``directory`` keyed by filename.

        ``config/database.yaml`` ends up under ``database``. Files are read
        in filename order; a missing directory is ignored.

        Returns:
            The keys that were loaded
        """
        directory = Path(directory)
        if not directory.is_dir():
            logger.debug(f"No configuration directory at {directory}")
            return []

        loaded = []
        for path in sorted(directory.iterdir()):
            if not path.is_file() or path.suffix.lower() not in self.SUPPORTED_SUFFIXES:
                continue
            data = load_file(path)
            if interpolate is not None:
                data = interpolate(data)
            self.merge({path.stem: data})
            loaded.append(path.stem)
            logger.debug(f"Loaded configuration file: {path.name}")

        return loaded

    def __getitem__(self, key: str) -> Any:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __repr__(self) -> str:
        return f"ConfigStore({list(self._data)})"


def _expand(items: Mapping[str, Any]) -> dict[str, Any]:
    """Turn dotted keys of a flat mapping into nested dicts."""
    result: dict[str, Any] = {}
    for key, value in items.items():
        if isinstance(value, Mapping):
            value = _expand(value)
        if isinstance(key, str) and "." in key:
            head, _, rest = key.partition(".")
            value = _expand({rest: value})
            key = head
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result
