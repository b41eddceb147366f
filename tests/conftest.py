"""Shared pytest fixtures."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from jpyusd import create_app  # noqa: E402
from jpyusd.providers import BaseRateProvider  # noqa: E402
from jpyusd.services.history import ConversionHistory  # noqa: E402
from jpyusd.services.orchestrator import Orchestrator  # noqa: E402


@pytest.fixture(scope="session")
def app() -> Iterator:
    """Session-wide Flask application wired to the mock provider."""

    flask_app = create_app("testing")
    yield flask_app
    flask_app.extensions["fx_orchestrator"].shutdown()


@pytest.fixture()
def client(app):
    """Provide a Flask test client."""

    with app.test_client() as client:
        yield client


@pytest.fixture()
def history(app) -> Iterator[ConversionHistory]:
    """Conversion history cleared before and after each test."""

    store: ConversionHistory = app.extensions["conversion_history"]
    store.clear()
    yield store
    store.clear()


@pytest.fixture()
def orchestrator_stub(app) -> Iterator[Callable[..., Orchestrator]]:
    """Swap the application orchestrator for one backed by stub providers."""

    original = app.extensions["fx_orchestrator"]
    created: list[Orchestrator] = []

    def _factory(
        primary: BaseRateProvider,
        backup: BaseRateProvider | None = None,
        **kwargs,
    ) -> Orchestrator:
        orchestrator = Orchestrator(primary=primary, backup=backup, **kwargs)
        created.append(orchestrator)
        app.extensions["fx_orchestrator"] = orchestrator
        return orchestrator

    yield _factory

    app.extensions["fx_orchestrator"] = original
    for orchestrator in created:
        orchestrator.shutdown()
