"""Exception hierarchy for the Gantry application kernel.

Each exception type represents a specific failure mode of the bootstrap
sequence, the service container or the HTTP pipeline.

Exception Hierarchy:
    GantryError: Base exception for all Gantry errors
    ├── ContainerError: A binding exists but could not be produced
    │   └── ServiceNotFoundError: No binding for the requested identifier
    ├── ConfigurationError: Invalid configuration
    │   └── ProviderError: Service provider could not be loaded or booted
    ├── InstanceUnavailableError: Global instance requested too early
    ├── LifecycleError: Illegal kernel state transition
    └── HttpError: Request handling failure mapped to a status code
        ├── RouteNotFoundError: No route matches the request path
        └── MethodNotAllowedError: Route exists for another method

Usage Patterns:
    Optional services are looked up by catching only ServiceNotFoundError,
    so a misconfigured service (ContainerError) still surfaces:

    >>> try:
    ...     session = container.get("session")
    ... except ServiceNotFoundError:
    ...     session = None
"""

from __future__ import annotations

from typing import Any


class GantryError(Exception):
    """Base exception for all Gantry errors."""

    pass


class ContainerError(GantryError):
    """Raised when a registered service cannot be produced.

    This occurs when:
    - A factory or constructor raises
    - A required dependency of the service is missing
    """

    def __init__(
        self, message: str, service_key: Any = None, cause: Exception | None = None
    ):
        super().__init__(message)
        self.service_key = service_key
        self.cause = cause


class ServiceNotFoundError(ContainerError):
    """Raised when an identifier has no binding in the container."""

    def __init__(self, service_key: Any, available: list[str] | None = None):
        self.available = available or []
        message = f"Service '{_key_name(service_key)}' not found in container."
        if self.available:
            message += f"\nAvailable services: {', '.join(self.available[:5])}"
            if len(self.available) > 5:
                message += f" (and {len(self.available) - 5} more)"
        super().__init__(message, service_key=service_key)


class ConfigurationError(GantryError):
    """Raised when application configuration is invalid."""

    pass


class ProviderError(ConfigurationError):
    """Raised when a service provider cannot be loaded, registered or booted.

    Provider errors are fatal: startup aborts instead of degrading.
    """

    def __init__(self, message: str, provider: Any = None, cause: Exception | None = None):
        super().__init__(message)
        self.provider = provider
        self.cause = cause


class InstanceUnavailableError(GantryError):
    """Raised when a global instance is requested before it was created."""

    def __init__(self, owner: str):
        self.owner = owner
        super().__init__(f"Unavailable [{owner}] instance")


class LifecycleError(GantryError):
    """Raised when the HTTP kernel is driven out of order."""

    pass


class HttpError(GantryError):
    """Raised while handling a request; carries the HTTP status to answer with."""

    status_code = 500

    def __init__(
        self,
        message: str = "",
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers or {}


class RouteNotFoundError(HttpError):
    """Raised when no route matches the request path."""

    status_code = 404


class MethodNotAllowedError(HttpError):
    """Raised when the path matches a route registered for other methods."""

    status_code = 405

    def __init__(self, message: str = "", allowed: list[str] | None = None):
        self.allowed = allowed or []
        headers = {"Allow": ", ".join(self.allowed)} if self.allowed else None
        super().__init__(message, headers=headers)


def _key_name(key: Any) -> str:
    return getattr(key, "__qualname__", None) or str(key)
