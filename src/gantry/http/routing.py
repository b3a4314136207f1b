"""A small router that maps request paths to handlers."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from re import Pattern
from typing import Any

from loguru import logger

from gantry.core.errors import MethodNotAllowedError, RouteNotFoundError
from gantry.core.events import KernelRequestEvent

from .message import Request, Response

_PARAMETER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass
class Route:
    """A path pattern bound to a handler."""

    handler: Callable
    path: str
    methods: list[str]
    name: str | None = None
    pattern: Pattern[str] | None = None
    param_names: list[str] = field(default_factory=list)

    def __post_init__(self):
        self.methods = [method.upper() for method in self.methods]
        if self.pattern is None:
            self.pattern, self.param_names = self._path_to_pattern(self.path)

    def _path_to_pattern(self, path: str) -> tuple[Pattern[str], list[str]]:
        """Convert a path with ``{name}`` placeholders to a regex pattern.

        Placeholders follow the same syntax as :meth:`url`, so they may sit
        inside a segment (``/files/{name}.txt``).
        """
        param_names = []
        pattern_parts = []
        position = 0

        for match in _PARAMETER.finditer(path):
            pattern_parts.append(re.escape(path[position : match.start()]))
            pattern_parts.append(r"([^/]+)")
            param_names.append(match.group(1))
            position = match.end()
        pattern_parts.append(re.escape(path[position:]))

        return re.compile("^" + "".join(pattern_parts) + "$"), param_names

    def match_path(self, path: str) -> dict[str, str] | None:
        match = self.pattern.match(path)
        if not match:
            return None
        return {name: match.group(i + 1) for i, name in enumerate(self.param_names)}

    def match(self, path: str, method: str) -> dict[str, str] | None:
        """Return the path parameters if both path and method match."""
        if method.upper() not in self.methods:
            return None
        return self.match_path(path)

    def url(self, **params: Any) -> str:
        def replace(match: re.Match) -> str:
            name = match.group(1)
            if name not in params:
                raise KeyError(f"Missing parameter '{name}' for route '{self.name or self.path}'")
            return str(params[name])

        return _PARAMETER.sub(replace, self.path)


class Router:
    """Registers routes, attaches the matching one to requests and calls it.

    Example:
        >>> router = Router()
        >>> @router.get("/users/{id}", name="user")
        ... def show_user(request, id):
        ...     return {"id": id}
        >>> router.url_for("user", id=7)
        '/users/7'
    """

    def __init__(self):
        self._routes: list[Route] = []
        self._named: dict[str, Route] = {}

    @property
    def routes(self) -> list[Route]:
        return list(self._routes)

    def add(
        self,
        path: str,
        handler: Callable,
        methods: Iterable[str] = ("GET",),
        name: str | None = None,
    ) -> Route:
        route = Route(handler=handler, path=path, methods=list(methods), name=name)
        self._routes.append(route)
        if name:
            self._named[name] = route
        logger.debug(f"Registered route: {route.methods} {path}")
        return route

    def route(self, path: str, methods: Iterable[str] = ("GET",), name: str | None = None):
        def decorator(func: Callable) -> Callable:
            self.add(path, func, methods, name)
            return func

        return decorator

    def get(self, path: str, name: str | None = None):
        return self.route(path, ["GET"], name)

    def post(self, path: str, name: str | None = None):
        return self.route(path, ["POST"], name)

    def put(self, path: str, name: str | None = None):
        return self.route(path, ["PUT"], name)

    def delete(self, path: str, name: str | None = None):
        return self.route(path, ["DELETE"], name)

    def match(self, path: str, method: str) -> tuple[Route, dict[str, str]]:
        """Find the route for ``method`` and ``path``.

        Raises:
            RouteNotFoundError: If no route pattern matches the path
            MethodNotAllowedError: If only routes for other methods match
        """
        allowed: list[str] = []
        for route in self._routes:
            params = route.match_path(path)
            if params is None:
                continue
            if method.upper() in route.methods:
                return route, params
            allowed.extend(m for m in route.methods if m not in allowed)

        if allowed:
            raise MethodNotAllowedError(f"Method {method} not allowed for {path}", allowed=allowed)
        raise RouteNotFoundError(f"No route matches {path}")

    def url_for(self, name: str, **params: Any) -> str:
        try:
            route = self._named[name]
        except KeyError:
            raise RouteNotFoundError(f"No route named '{name}'") from None
        return route.url(**params)

    def on_kernel_request(self, event: KernelRequestEvent) -> None:
        """Attach the matching route to the request of a ``kernel.request`` event.

        Unmatched requests are left untouched; ``handle`` reports them.
        """
        request = event.request
        try:
            route, params = self.match(request.path, request.method)
        except (RouteNotFoundError, MethodNotAllowedError):
            return
        event.request = request.with_attribute("route", route).with_attribute("route_params", params)

    def handle(self, request: Request) -> Response:
        route = request.get_attribute("route")
        params = request.get_attribute("route_params")
        if route is None or params is None:
            route, params = self.match(request.path, request.method)

        result = route.handler(request, **params)
        return to_response(result)


def to_response(result: Any) -> Response:
    """Convert a handler return value into a Response."""
    status = 200
    if isinstance(result, tuple) and len(result) == 2:
        result, status = result

    if isinstance(result, Response):
        return result
    if result is None:
        return Response(status=204 if status == 200 else status)
    if isinstance(result, (dict, list)):
        return Response.json(result, status)
    if isinstance(result, bytes):
        return Response(
            body=result, status=status, headers={"Content-Type": "application/octet-stream"}
        )
    return Response.text(str(result), status, content_type="text/html")
