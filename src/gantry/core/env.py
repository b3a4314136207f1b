"""Environment variables loaded from ``.env`` files."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Mapping

from dotenv import dotenv_values
from loguru import logger

from .config import get_value_at_path, merge_configs
from .errors import ConfigurationError

ENV_FILES = (".env", ".env.local")

_PLACEHOLDER = re.compile(r"\$\{\s*([A-Za-z0-9_.\-]+)\s*\}")

_CASTS = {
    "true": True,
    "(true)": True,
    "false": False,
    "(false)": False,
    "null": None,
    "(null)": None,
    "empty": "",
    "(empty)": "",
}


class Environment:
    """Process environment store with ``.env`` loading and merge variables.

    Values set with :meth:`set` win, then the process environment, then the
    loaded ``.env`` files. With global mode enabled, loaded values are also
    exported to ``os.environ`` without overwriting existing process
    variables, so both views agree.

    Example:
        >>> env = Environment()
        >>> env.load("/srv/app")
        >>> env.set_merge_vars({"app": {"base_dir": "/srv/app"}})
        >>> env.get("LOG_DIR")  # LOG_DIR=${app.base_dir}/var/log
        '/srv/app/var/log'
    """

    def __init__(self, use_global: bool = False):
        self._values: dict[str, str | None] = {}
        self._overrides: dict[str, str] = {}
        self._merge_vars: dict[str, Any] = {}
        self._global = bool(use_global)
        self.loaded_files: list[Path] = []

    def load(self, base_path: str | Path) -> None:
        """Load ``.env`` then ``.env.local`` from ``base_path``."""
        for filename in ENV_FILES:
            path = Path(base_path) / filename
            if not path.is_file():
                continue
            self._values.update(dotenv_values(path, interpolate=False))
            self.loaded_files.append(path)
            logger.debug(f"Loaded environment file: {path}")

        if self._global:
            self._export()

    def enable_global(self, enabled: bool = True) -> None:
        """Toggle exporting loaded values into ``os.environ``."""
        self._global = bool(enabled)
        if self._global:
            self._export()

    @property
    def is_global(self) -> bool:
        return self._global

    def _export(self) -> None:
        for key, value in self._values.items():
            if value is not None:
                os.environ.setdefault(key, value)

    def has(self, key: str) -> bool:
        return key in self._overrides or key in os.environ or key in self._values

    def get(self, key: str, default: Any = None) -> Any:
        """Get a variable, cast and interpolated, or ``default``.

        The process environment takes precedence over ``.env`` files, like
        ``load_dotenv(override=False)``.
        """
        if key in self._overrides:
            raw = self._overrides[key]
        elif key in os.environ:
            raw = os.environ[key]
        elif key in self._values:
            raw = self._values[key]
        else:
            return default

        if raw is None:
            return None
        return self._cast(self.interpolate(raw))

    def set(self, key: str, value: str) -> None:
        self._overrides[key] = value
        if self._global:
            os.environ[key] = value

    def set_merge_vars(self, merge_vars: Mapping[str, Any]) -> None:
        """Deep merge variables available to ``${dotted.key}`` placeholders."""
        self._merge_vars = merge_configs(self._merge_vars, dict(merge_vars))

    @property
    def merge_vars(self) -> dict[str, Any]:
        return dict(self._merge_vars)

    def interpolate(self, value: Any) -> Any:
        """Replace ``${dotted.key}`` placeholders using the merge variables.

        Lists and dicts are processed recursively. Unknown placeholders are
        left untouched.
        """
        if isinstance(value, str):
            return _PLACEHOLDER.sub(self._replace, value)
        if isinstance(value, list):
            return [self.interpolate(item) for item in value]
        if isinstance(value, dict):
            return {key: self.interpolate(item) for key, item in value.items()}
        return value

    def _replace(self, match: re.Match) -> str:
        try:
            found = get_value_at_path(self._merge_vars, match.group(1))
        except ConfigurationError:
            return match.group(0)
        return str(found)

    @staticmethod
    def _cast(value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _CASTS:
                return _CASTS[lowered]
        return value


def to_bool(value: Any) -> bool:
    """Interpret an environment value as a boolean flag."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)
