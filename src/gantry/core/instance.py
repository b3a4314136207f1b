"""Process-wide instance slots."""

from __future__ import annotations

import threading
from typing import Generic, TypeVar

from loguru import logger

from .errors import InstanceUnavailableError

T = TypeVar("T")


class InstanceCell(Generic[T]):
    """Holds the first object registered for a role and nothing else.

    Later ``set_once`` calls are ignored, so the first constructed
    Application (or Kernel) stays the global one for the process.
    """

    def __init__(self, owner: str):
        self.owner = owner
        self._value: T | None = None
        self._lock = threading.Lock()

    def set_once(self, value: T) -> T:
        """Store ``value`` unless the cell is already filled.

        Returns:
            The object held by the cell, which is ``value`` only for the
            first caller
        """
        with self._lock:
            if self._value is not None:
                return self._value
            self._value = value
        logger.debug(f"Registered global {self.owner} instance")
        return value

    def get(self) -> T:
        value = self._value
        if value is None:
            raise InstanceUnavailableError(self.owner)
        return value

    def is_set(self) -> bool:
        return self._value is not None

    def reset(self) -> None:
        """Empty the cell. Used between tests."""
        with self._lock:
            self._value = None
