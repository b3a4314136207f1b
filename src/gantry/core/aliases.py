"""The short names under which the core services are reachable."""

from __future__ import annotations

from gantry import contracts
from gantry.http.kernel import HttpKernel
from gantry.http.message import Request
from gantry.http.routing import Router

from .application import Application
from .config import ConfigStore
from .events import EventDispatcher
from .kernel import Kernel

#: ``{canonical identifier: [alias, ...]}``
DEFAULT_ALIASES = {
    Application: ["app", "container"],
    ConfigStore: ["config"],
    EventDispatcher: ["event"],
    Kernel: ["kernel"],
    HttpKernel: ["http_kernel"],
    Request: ["request"],
    Router: ["router"],
    contracts.Asset: ["asset"],
    contracts.Console: ["console"],
    contracts.Cookie: ["cookie"],
    contracts.Crypt: ["crypt"],
    contracts.Database: ["db", "database"],
    contracts.Debug: ["debug"],
    contracts.Faker: ["faker"],
    contracts.Field: ["field"],
    contracts.Form: ["form"],
    contracts.Log: ["log"],
    contracts.Mail: ["mail"],
    contracts.Metabox: ["metabox"],
    contracts.Partial: ["partial"],
    contracts.Session: ["session"],
    contracts.Storage: ["storage"],
    contracts.Validator: ["validator"],
    contracts.View: ["view"],
}
