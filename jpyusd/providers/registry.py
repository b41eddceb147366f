"""Named rate provider factories, resolved from app config or the environment."""

from __future__ import annotations

import os
from typing import Callable, Dict, List, Mapping

from .base import BaseRateProvider, ProviderError

ProviderFactory = Callable[[], BaseRateProvider]

DEFAULT_PROVIDER = "mock"

_factories: Dict[str, ProviderFactory] = {}


def _builtin_factories() -> Dict[str, ProviderFactory]:
    from flask import current_app

    from .exchangerate_provider import ExchangeRateHostProvider
    from .mock import MockRateProvider
    from .open_er_api_provider import OpenErApiProvider

    def configured(provider_cls) -> ProviderFactory:
        # HTTP providers read base URLs and timeouts when built, not at import.
        return lambda: provider_cls.from_config(current_app.config)

    return {
        MockRateProvider.name: MockRateProvider,
        OpenErApiProvider.name: configured(OpenErApiProvider),
        ExchangeRateHostProvider.name: configured(ExchangeRateHostProvider),
    }


def _key(name: str) -> str:
    return name.strip().lower()


def register_provider(name: str, factory: ProviderFactory) -> None:
    key = _key(name or "")
    if not key:
        raise ValueError("A rate provider needs a non-empty name.")
    _factories[key] = factory


def list_providers() -> List[str]:
    return sorted(_factories)


def get_provider(name: str | None = None) -> BaseRateProvider:
    """Build the provider called `name`, falling back to `FX_RATE_PROVIDER`, then the mock."""

    key = _key(name or os.getenv("FX_RATE_PROVIDER") or DEFAULT_PROVIDER)
    factory = _factories.get(key)
    if factory is None:
        registered = ", ".join(list_providers()) or "none"
        raise ProviderError(f"No rate provider named '{key}' (registered: {registered})")
    return factory()


def init_provider(app) -> BaseRateProvider:
    """Build the primary provider named by `FX_RATE_PROVIDER` and keep it on the app."""

    with app.app_context():
        provider = get_provider(app.config.get("FX_RATE_PROVIDER"))
    app.extensions["rate_provider"] = provider
    return provider


def reset_registry(factories: Mapping[str, ProviderFactory] | None = None) -> None:
    """Replace every registration with `factories`, or the built-in providers."""

    _factories.clear()
    for name, factory in (factories if factories is not None else _builtin_factories()).items():
        register_provider(name, factory)


reset_registry()
