from __future__ import annotations

import pytest

from jpyusd.providers import BaseRateProvider, ExchangeRateHostProvider, OpenErApiProvider, ProviderError
from jpyusd.providers.mock import MockRateProvider
from jpyusd.providers.registry import (
    get_provider,
    init_provider,
    list_providers,
    register_provider,
    reset_registry,
)


@pytest.fixture(autouse=True)
def _reset_providers():
    reset_registry()
    yield
    reset_registry()


def test_default_provider_is_mock(monkeypatch):
    monkeypatch.delenv("FX_RATE_PROVIDER", raising=False)

    provider = get_provider()

    assert isinstance(provider, MockRateProvider)
    assert provider.get_rate("jpy", "usd") == 0.0067
    assert provider.get_rate("USD", "JPY") == 149.25


def test_mock_provider_rejects_unknown_base():
    with pytest.raises(ProviderError):
        MockRateProvider().get_latest("EUR")


def test_get_provider_respects_environment(monkeypatch):
    class AlternateProvider(MockRateProvider):
        name = "alternate"

    register_provider("alternate", AlternateProvider)
    monkeypatch.setenv("FX_RATE_PROVIDER", "alternate")

    assert isinstance(get_provider(), AlternateProvider)


def test_get_provider_unknown_name_raises():
    with pytest.raises(ProviderError) as exc_info:
        get_provider("does-not-exist")

    assert "open_er_api" in str(exc_info.value)


def test_http_providers_are_built_from_app_config(app):
    with app.app_context():
        primary = get_provider("open_er_api")
        backup = get_provider("exchangerate_host")

    assert isinstance(primary, OpenErApiProvider)
    assert isinstance(backup, ExchangeRateHostProvider)


def test_init_provider_attaches_to_app(app):
    original = app.extensions.get("rate_provider")
    try:
        provider = init_provider(app)
        assert isinstance(provider, BaseRateProvider)
        assert app.extensions["rate_provider"] is provider
    finally:
        app.extensions["rate_provider"] = original
    assert {"open_er_api", "exchangerate_host", "mock"} <= set(list_providers())


def test_register_provider_requires_name():
    with pytest.raises(ValueError):
        register_provider("  ", MockRateProvider)
