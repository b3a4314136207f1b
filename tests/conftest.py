"""Shared test fixtures and utilities."""

import io

import pytest

from gantry.core.application import Application
from gantry.core.kernel import Kernel
from gantry.core.proxy import ProxyResolver
from gantry.http.kernel import HttpKernel

ENV_VARS = (
    "APP_ENV",
    "APP_DEBUG",
    "APP_URL",
    "APP_TIMEZONE",
    "APP_PUBLIC_DIR",
    "APP_RUNNING_IN_CONSOLE",
    "USE_GLOBAL_ENV",
    "GATEWAY_INTERFACE",
)


@pytest.fixture(autouse=True)
def reset_instances(monkeypatch):
    """Forget the global instances and APP_* variables between tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    yield

    Application._instance.reset()
    Kernel._instance.reset()
    HttpKernel._instance.reset()
    ProxyResolver.reset()


@pytest.fixture
def base_dir(tmp_path):
    """An application directory with an empty config/ folder."""
    (tmp_path / "config").mkdir()
    return tmp_path


@pytest.fixture
def app(base_dir):
    """A pre-built application rooted in a temporary directory."""
    return Application(base_dir)


@pytest.fixture
def output():
    """Binary buffer standing in for stdout."""
    return io.BytesIO()


class Recorder:
    """Event listener that remembers what it saw."""

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    @property
    def names(self):
        return [event.event_name() for event in self.events]


@pytest.fixture
def recorder():
    return Recorder()
