"""Tests for service providers and the provider registry."""

import pytest

from gantry.core.container import Container
from gantry.core.errors import ProviderError
from gantry.core.providers import (
    Bootable,
    BootableServiceProvider,
    ProviderRegistry,
    ServiceProvider,
    make_provider,
)


class FakeApp:
    """Just enough of an application for providers."""

    def __init__(self):
        self.container = Container()


class GreetingProvider(ServiceProvider):
    provides = ("greeting",)

    def register(self):
        self.container.share("greeting", "hello")


class CountingProvider(BootableServiceProvider):
    def __init__(self, app):
        super().__init__(app)
        self.registered = 0
        self.booted = 0

    def register(self):
        self.registered += 1

    def boot(self):
        self.booted += 1


class OrderProvider(BootableServiceProvider):
    log = []

    def register(self):
        OrderProvider.log.append(f"register:{id(self)}")

    def boot(self):
        OrderProvider.log.append(f"boot:{id(self)}")


class ExplodingConstructor(ServiceProvider):
    def __init__(self, app):
        raise RuntimeError("no config")


class ExplodingRegister(ServiceProvider):
    def register(self):
        raise RuntimeError("register failed")


class ExplodingBoot(BootableServiceProvider):
    def boot(self):
        raise RuntimeError("boot failed")


class NotAProvider:
    def __init__(self, app):
        pass


class TestMakeProvider:
    @pytest.fixture
    def app(self):
        return FakeApp()

    @pytest.mark.unit
    def test_from_class(self, app):
        provider = make_provider(GreetingProvider, app)

        assert isinstance(provider, GreetingProvider)
        assert provider.app is app
        assert provider.container is app.container

    @pytest.mark.unit
    def test_from_instance(self, app):
        instance = GreetingProvider(app)
        assert make_provider(instance, app) is instance

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "reference",
        ["sample_providers:MailProvider", "sample_providers.MailProvider"],
    )
    def test_from_import_string(self, app, reference, tmp_path, monkeypatch):
        (tmp_path / "sample_providers.py").write_text(
            "from gantry.core.providers import ServiceProvider\n"
            "\n"
            "\n"
            "class MailProvider(ServiceProvider):\n"
            "    def register(self):\n"
            "        self.container.share('mail', 'mailer')\n"
        )
        monkeypatch.syspath_prepend(str(tmp_path))

        provider = make_provider(reference, app)

        assert type(provider).__name__ == "MailProvider"
        assert provider.container is app.container

    @pytest.mark.unit
    def test_from_packaged_import_string(self, app):
        provider = make_provider("gantry.http.provider:HttpServiceProvider", app)
        assert isinstance(provider, BootableServiceProvider)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "reference, message",
        [
            ("gantry.nowhere:Provider", "could not be loaded"),
            ("gantry.core.providers:Missing", "could not be loaded"),
            ("Provider", "Invalid service provider reference"),
            (NotAProvider, "must be a ServiceProvider subclass"),
            (42, "must be a ServiceProvider subclass"),
            (ExplodingConstructor, "could not be instantiated"),
        ],
    )
    def test_failures(self, app, reference, message):
        with pytest.raises(ProviderError, match=message):
            make_provider(reference, app)


class TestProviderRegistry:
    @pytest.fixture
    def app(self):
        return FakeApp()

    @pytest.mark.unit
    def test_register_binds_services(self, app):
        registry = ProviderRegistry()
        registry.add(GreetingProvider(app))
        registry.register_all(app.container)

        assert app.container.get("greeting") == "hello"

    @pytest.mark.unit
    def test_register_and_boot_exactly_once(self, app):
        registry = ProviderRegistry()
        provider = registry.add(CountingProvider(app))
        registry.add(provider)

        for _ in range(3):
            registry.register_all(app.container)
            registry.boot_all()

        assert len(registry) == 1
        assert provider.registered == 1
        assert provider.booted == 1
        assert registry.is_booted(provider)

    @pytest.mark.unit
    def test_all_registered_before_any_boot(self, app):
        OrderProvider.log.clear()
        registry = ProviderRegistry()
        first = registry.add(OrderProvider(app))
        second = registry.add(OrderProvider(app))

        registry.register_all(app.container)
        registry.boot_all()

        assert OrderProvider.log == [
            f"register:{id(first)}",
            f"register:{id(second)}",
            f"boot:{id(first)}",
            f"boot:{id(second)}",
        ]

    @pytest.mark.unit
    def test_only_bootables_are_booted(self, app):
        registry = ProviderRegistry()
        plain = registry.add(GreetingProvider(app))
        bootable = registry.add(CountingProvider(app))

        assert registry.bootables == [bootable]
        assert not isinstance(plain, Bootable)
        assert isinstance(bootable, Bootable)

    @pytest.mark.unit
    def test_register_failure(self, app):
        registry = ProviderRegistry()
        provider = registry.add(ExplodingRegister(app))

        with pytest.raises(ProviderError, match="failed to register") as exc_info:
            registry.register_all(app.container)

        assert exc_info.value.provider is provider
        assert isinstance(exc_info.value.cause, RuntimeError)

    @pytest.mark.unit
    def test_boot_failure(self, app):
        registry = ProviderRegistry()
        registry.add(ExplodingBoot(app))
        registry.register_all(app.container)

        with pytest.raises(ProviderError, match="failed to boot"):
            registry.boot_all()
