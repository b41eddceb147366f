from __future__ import annotations

import threading
import time
from concurrent.futures import TimeoutError as FutureTimeoutError
from unittest.mock import patch

import pytest

from jpyusd.providers import MalformedResponseError, NetworkError, ProviderError
from jpyusd.services import orchestrator as orchestrator_module
from jpyusd.services.currencies import Direction
from jpyusd.services.orchestrator import FETCH_FAILED_MESSAGE, Orchestrator, RateSource
from tests.stubs import GatedProvider, SequencedProvider, StaticProvider, build_snapshot

JPY_BASE = {"JPY": {"USD": 0.0067}, "USD": {"JPY": 150.12}}


@pytest.fixture()
def make_orchestrator():
    created: list[Orchestrator] = []

    def _factory(primary, backup=None, **kwargs) -> Orchestrator:
        orchestrator = Orchestrator(primary=primary, backup=backup, **kwargs)
        created.append(orchestrator)
        return orchestrator

    yield _factory
    for orchestrator in created:
        orchestrator.shutdown()


def test_initial_state_is_empty(make_orchestrator):
    orchestrator = make_orchestrator(StaticProvider("primary", JPY_BASE))

    state = orchestrator.get_state()

    assert state.direction is Direction.JPY_TO_USD
    assert state.rate is None
    assert state.last_updated is None
    assert state.is_loading is False
    assert state.error is None


def test_primary_success_settles_state(make_orchestrator):
    primary = SequencedProvider("primary", [build_snapshot(rates={"USD": 0.0067})])
    backup = SequencedProvider("backup")
    orchestrator = make_orchestrator(primary, backup)

    state = orchestrator.refresh().result(timeout=5)

    assert state.rate == 0.0067
    assert state.source is RateSource.PRIMARY
    assert state.provider == "primary"
    assert state.error is None
    assert state.is_loading is False
    assert state.last_updated is not None
    assert primary.calls[0].base == "JPY"
    assert backup.calls == []


def test_backup_used_when_primary_fails(make_orchestrator):
    primary = SequencedProvider("primary", [NetworkError("primary down")])
    backup = SequencedProvider("backup", [build_snapshot(source="backup", rates={"USD": 0.0068})])
    orchestrator = make_orchestrator(primary, backup)

    state = orchestrator.refresh().result(timeout=5)

    assert state.rate == 0.0068
    assert state.source is RateSource.BACKUP
    assert state.is_backup
    assert state.error is None


def test_backup_used_when_primary_response_lacks_rate(make_orchestrator):
    primary = SequencedProvider("primary", [build_snapshot(rates={"EUR": 0.0057})])
    backup = SequencedProvider("backup", [build_snapshot(source="backup", rates={"USD": 0.0068})])
    orchestrator = make_orchestrator(primary, backup)

    state = orchestrator.refresh().result(timeout=5)

    assert state.rate == 0.0068
    assert state.source is RateSource.BACKUP


def test_zero_rate_counts_as_failure(make_orchestrator):
    primary = SequencedProvider("primary", [build_snapshot(rates={"USD": 0})])
    backup = SequencedProvider("backup", [MalformedResponseError("no rates")])
    orchestrator = make_orchestrator(primary, backup)

    state = orchestrator.refresh().result(timeout=5)

    assert state.rate is None
    assert state.error == FETCH_FAILED_MESSAGE


def test_both_failures_clear_rate_and_surface_error(make_orchestrator):
    primary = SequencedProvider(
        "primary", [build_snapshot(rates={"USD": 0.0067}), ProviderError("primary down")]
    )
    backup = SequencedProvider("backup", [ProviderError("backup down")])
    orchestrator = make_orchestrator(primary, backup)

    orchestrator.refresh().result(timeout=5)
    state = orchestrator.refresh().result(timeout=5)

    assert state.rate is None
    assert state.last_updated is None
    assert state.source is None
    assert state.error == "Failed to fetch exchange rate. Please try again later."
    assert state.is_loading is False


def test_refresh_after_total_failure_retries_from_primary(make_orchestrator):
    primary = SequencedProvider(
        "primary", [ProviderError("down"), build_snapshot(rates={"USD": 0.0067})]
    )
    backup = SequencedProvider("backup", [ProviderError("down")])
    orchestrator = make_orchestrator(primary, backup)

    failed = orchestrator.refresh().result(timeout=5)
    recovered = orchestrator.refresh().result(timeout=5)

    assert failed.error is not None
    assert recovered.rate == 0.0067
    assert recovered.source is RateSource.PRIMARY
    assert len(primary.calls) == 2


def test_missing_backup_fails_after_primary(make_orchestrator):
    orchestrator = make_orchestrator(SequencedProvider("primary", [ProviderError("down")]))

    state = orchestrator.refresh().result(timeout=5)

    assert state.error == FETCH_FAILED_MESSAGE


def test_refresh_is_idempotent_for_unchanged_data(make_orchestrator):
    orchestrator = make_orchestrator(StaticProvider("primary", JPY_BASE))

    first = orchestrator.refresh().result(timeout=5)
    second = orchestrator.refresh().result(timeout=5)

    assert first.rate == second.rate == 0.0067
    assert second.generation > first.generation


def test_get_rate_fetches_only_on_first_observation(make_orchestrator):
    primary = StaticProvider("primary", JPY_BASE)
    orchestrator = make_orchestrator(primary)

    orchestrator.get_rate(Direction.JPY_TO_USD)
    orchestrator.wait(timeout=5)
    state = orchestrator.get_rate("jpy_to_usd")

    assert state.rate == 0.0067
    assert len(primary.calls) == 1


def test_direction_change_always_refetches(make_orchestrator):
    primary = StaticProvider("primary", JPY_BASE)
    orchestrator = make_orchestrator(primary)

    orchestrator.get_rate(Direction.JPY_TO_USD)
    orchestrator.wait(timeout=5)
    orchestrator.get_rate(Direction.USD_TO_JPY)
    usd_state = orchestrator.wait(timeout=5)
    orchestrator.get_rate(Direction.JPY_TO_USD)
    jpy_state = orchestrator.wait(timeout=5)

    assert usd_state.direction is Direction.USD_TO_JPY
    assert usd_state.rate == 150.12
    assert jpy_state.rate == 0.0067
    assert [call.base for call in primary.calls] == ["JPY", "USD", "JPY"]


def test_loading_state_preserves_previous_rate(make_orchestrator):
    primary = GatedProvider(
        "primary",
        [build_snapshot(rates={"USD": 0.0067}), build_snapshot(rates={"USD": 0.0070})],
    )
    orchestrator = make_orchestrator(primary)
    orchestrator.refresh().result(timeout=5)

    gate = primary.add_gate()
    future = orchestrator.refresh()
    assert primary.started.acquire(timeout=5)
    assert primary.started.acquire(timeout=5)

    loading = orchestrator.get_state()
    assert loading.is_loading is True
    assert loading.error is None
    assert loading.rate == 0.0067
    assert loading.last_updated is not None

    gate.set()
    settled = future.result(timeout=5)
    assert settled.rate == 0.0070
    assert settled.is_loading is False


def test_superseded_result_is_discarded(make_orchestrator):
    primary = GatedProvider(
        "primary",
        [build_snapshot(rates={"USD": 0.0060}), build_snapshot(rates={"USD": 0.0067})],
    )
    orchestrator = make_orchestrator(primary)

    slow_gate = primary.add_gate()
    slow = orchestrator.refresh()
    assert primary.started.acquire(timeout=5)
    fast = orchestrator.refresh()

    fast_state = fast.result(timeout=5)
    slow_gate.set()
    slow_state = slow.result(timeout=5)

    assert fast_state.rate == 0.0067
    assert slow_state.rate == 0.0067
    assert orchestrator.get_state().rate == 0.0067
    assert orchestrator.get_state().generation == fast_state.generation


def test_wait_timeout_covers_fetches_issued_while_waiting(make_orchestrator):
    primary = GatedProvider(
        "primary",
        [build_snapshot(rates={"USD": 0.0060}), build_snapshot(rates={"USD": 0.0067})],
    )
    orchestrator = make_orchestrator(primary)
    first_gate = primary.add_gate()
    second_gate = primary.add_gate()
    orchestrator.refresh()
    assert primary.started.acquire(timeout=5)

    def supersede():
        orchestrator.refresh()
        first_gate.set()

    timer = threading.Timer(0.6, supersede)
    timer.start()
    started = time.monotonic()
    try:
        with pytest.raises(FutureTimeoutError):
            orchestrator.wait(timeout=1.0)
        elapsed = time.monotonic() - started
    finally:
        timer.join(timeout=5)
        first_gate.set()
        second_gate.set()

    assert elapsed < 1.4
    assert orchestrator.wait(timeout=5).rate == 0.0067


def test_wait_follows_latest_request(make_orchestrator):
    primary = GatedProvider(
        "primary",
        [build_snapshot(rates={"USD": 0.0060}), build_snapshot(rates={"USD": 0.0067})],
    )
    orchestrator = make_orchestrator(primary)

    gate = primary.add_gate()
    orchestrator.refresh()
    assert primary.started.acquire(timeout=5)
    orchestrator.refresh()
    gate.set()

    state = orchestrator.wait(timeout=5)

    assert state.is_loading is False
    assert state.rate == 0.0067


def test_subscribers_receive_loading_and_settled_snapshots(make_orchestrator):
    orchestrator = make_orchestrator(StaticProvider("primary", JPY_BASE))
    seen = []
    unsubscribe = orchestrator.subscribe(seen.append)

    orchestrator.refresh().result(timeout=5)
    unsubscribe()
    orchestrator.refresh().result(timeout=5)

    assert [state.is_loading for state in seen] == [True, False]
    assert seen[-1].rate == 0.0067


def test_subscribers_end_on_current_state_when_refreshes_overlap(make_orchestrator):
    orchestrator = make_orchestrator(StaticProvider("primary", JPY_BASE))
    entered = threading.Event()
    release = threading.Event()
    seen = []

    def slow_listener(state):
        seen.append(state)
        if not entered.is_set():
            entered.set()
            release.wait(timeout=5)

    orchestrator.subscribe(slow_listener)
    first = threading.Thread(target=orchestrator.refresh)
    second = threading.Thread(target=lambda: orchestrator.refresh().result(timeout=5))
    first.start()
    assert entered.wait(timeout=5)
    second.start()
    time.sleep(0.05)
    release.set()
    first.join(timeout=5)
    second.join(timeout=5)

    final = orchestrator.wait(timeout=5)

    assert final.is_loading is False
    assert final.rate == 0.0067
    assert seen[-1] == final
    generations = [state.generation for state in seen]
    assert generations == sorted(generations)


def test_failing_subscriber_does_not_break_fetch(make_orchestrator):
    orchestrator = make_orchestrator(StaticProvider("primary", JPY_BASE))

    def _boom(_state):
        raise RuntimeError("listener failure")

    orchestrator.subscribe(_boom)
    state = orchestrator.refresh().result(timeout=5)

    assert state.rate == 0.0067


def test_logs_provider_success(make_orchestrator):
    orchestrator = make_orchestrator(StaticProvider("primary", JPY_BASE))

    with patch.object(orchestrator_module.logger, "info") as mock_info:
        orchestrator.refresh().result(timeout=5)

    mock_info.assert_called()
    extra = mock_info.call_args.kwargs.get("extra")
    assert extra["event"] == "provider.fetch"
    assert extra["provider"] == "primary"
    assert extra["role"] == "primary"
    assert extra["status"] == "success"
    assert extra["base"] == "JPY"
    assert extra["target"] == "USD"
    assert extra["duration_ms"] >= 0


def test_logs_failures_and_exhaustion(make_orchestrator):
    primary = SequencedProvider("primary", [ProviderError("primary down")])
    backup = SequencedProvider("backup", [ProviderError("backup down")])
    orchestrator = make_orchestrator(primary, backup)

    with patch.object(orchestrator_module.logger, "warning") as mock_warning, patch.object(
        orchestrator_module.logger, "error"
    ) as mock_error:
        orchestrator.refresh().result(timeout=5)

    warning_extras = [call.kwargs.get("extra") for call in mock_warning.call_args_list]
    assert [extra["role"] for extra in warning_extras] == ["primary", "backup"]
    assert all(extra["status"] == "error" for extra in warning_extras)
    assert "primary down" in warning_extras[0]["error"]

    mock_error.assert_called_once()
    assert mock_error.call_args.kwargs["extra"]["event"] == "provider.exhausted"
