"""Orchestrator owning the current JPY/USD rate state.

The orchestrator is the only writer of `RateState`. Each fetch sequence asks
the primary provider first and the backup only after the primary fails; the
outcome replaces the state as a new immutable snapshot. Every sequence is
tagged with a monotonically increasing generation and only the most recently
issued one may write, so overlapping refreshes or direction toggles cannot
leave an older answer on screen.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from time import monotonic, perf_counter
from typing import Any

from jpyusd.logging import provider_log_extra
from jpyusd.providers.base import BaseRateProvider, ProviderError
from jpyusd.providers.registry import get_provider
from jpyusd.utils.datetime import utc_now

from .currencies import Direction, parse_direction

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch exchange rate. Please try again later."

StateListener = Callable[["RateState"], None]


class RateSource(str, Enum):
    PRIMARY = "primary"
    BACKUP = "backup"


@dataclass(frozen=True)
class RateState:
    """Immutable snapshot of the current rate for one direction."""

    direction: Direction
    rate: float | None = None
    is_loading: bool = False
    error: str | None = None
    source: RateSource | None = None
    provider: str | None = None
    last_updated: datetime | None = None
    generation: int = 0

    @property
    def has_rate(self) -> bool:
        return self.rate is not None

    @property
    def is_backup(self) -> bool:
        return self.source is RateSource.BACKUP

    def to_dict(self) -> dict[str, Any]:
        return {
            "direction": self.direction.value,
            "from_currency": self.direction.source.value,
            "to_currency": self.direction.target.value,
            "rate": self.rate,
            "is_loading": self.is_loading,
            "error": self.error,
            "source": self.source.value if self.source else None,
            "provider": self.provider,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }


@dataclass(frozen=True)
class _FetchOutcome:
    rate: float
    source: RateSource
    provider: str


class Orchestrator:
    """Coordinate primary and backup providers and publish rate snapshots."""

    def __init__(
        self,
        primary: BaseRateProvider,
        backup: BaseRateProvider | None = None,
        *,
        direction: Direction | str = Direction.JPY_TO_USD,
        executor: Executor | None = None,
    ) -> None:
        self._primary = primary
        self._backup = backup
        self._executor = executor or ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="rate-fetch"
        )
        self._owns_executor = executor is None
        self._lock = threading.Lock()
        self._state = RateState(direction=parse_direction(direction))
        self._generation = 0
        self._observed = False
        self._pending: Future[RateState] | None = None
        self._listeners: list[StateListener] = []
        self._publish_lock = threading.RLock()
        self._published: RateState | None = None

    @property
    def state(self) -> RateState:
        return self._state

    def get_state(self) -> RateState:
        return self._state

    def get_rate(self, direction: Direction | str) -> RateState:
        """Return the snapshot for `direction`, fetching on first use or on a change."""

        requested = parse_direction(direction)
        with self._lock:
            needs_fetch = not self._observed or requested is not self._state.direction
        if needs_fetch:
            self.set_direction(requested)
        return self._state

    def set_direction(self, direction: Direction | str) -> Future[RateState]:
        """Switch direction and re-fetch; an inverse rate is never derived locally."""

        return self._start_fetch(parse_direction(direction))

    def refresh(self) -> Future[RateState]:
        """Re-run the fetch sequence for the current direction."""

        return self._start_fetch(None)

    def wait(self, timeout: float | None = None) -> RateState:
        """Block until the most recently issued fetch has been applied.

        `timeout` bounds the whole call, including any fetches issued while waiting.
        Raises `concurrent.futures.TimeoutError` when it runs out.
        """

        deadline = None if timeout is None else monotonic() + timeout
        while True:
            with self._lock:
                pending = self._pending
            if pending is None:
                return self._state
            remaining = None if deadline is None else max(deadline - monotonic(), 0.0)
            pending.result(timeout=remaining)
            with self._lock:
                if self._pending is pending or not self._state.is_loading:
                    return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener for new snapshots; returns a callable that unsubscribes."""

        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def shutdown(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def _start_fetch(self, direction: Direction | None) -> Future[RateState]:
        with self._lock:
            self._generation += 1
            generation = self._generation
            target_direction = direction or self._state.direction
            self._observed = True
            loading = replace(
                self._state,
                direction=target_direction,
                is_loading=True,
                error=None,
                generation=generation,
            )
            self._state = loading

        self._publish()
        future = self._executor.submit(self._run_fetch, target_direction, generation)
        with self._lock:
            if self._generation == generation:
                self._pending = future
        return future

    def _run_fetch(self, direction: Direction, generation: int) -> RateState:
        outcome = self._fetch_sequence(direction, generation)
        if outcome is None:
            candidate = RateState(
                direction=direction,
                error=FETCH_FAILED_MESSAGE,
                generation=generation,
            )
        else:
            candidate = RateState(
                direction=direction,
                rate=outcome.rate,
                source=outcome.source,
                provider=outcome.provider,
                last_updated=utc_now(),
                generation=generation,
            )
        return self._apply(candidate)

    def _fetch_sequence(self, direction: Direction, generation: int) -> _FetchOutcome | None:
        attempts: list[tuple[RateSource, BaseRateProvider]] = [(RateSource.PRIMARY, self._primary)]
        if self._backup is not None:
            attempts.append((RateSource.BACKUP, self._backup))

        for role, provider in attempts:
            rate = self._attempt(provider, role, direction, generation)
            if rate is not None:
                return _FetchOutcome(rate=rate, source=role, provider=self._provider_name(provider))

        logger.error(
            "All rate providers failed for %s",
            direction.value,
            extra=provider_log_extra(
                provider=",".join(self._provider_name(p) for _, p in attempts),
                role="all",
                base=direction.source.value,
                target=direction.target.value,
                event="provider.exhausted",
                status="error",
                generation=generation,
                duration_ms=None,
                error=FETCH_FAILED_MESSAGE,
            ),
        )
        return None

    def _attempt(
        self,
        provider: BaseRateProvider,
        role: RateSource,
        direction: Direction,
        generation: int,
    ) -> float | None:
        name = self._provider_name(provider)
        start = perf_counter()
        try:
            rate = provider.get_rate(direction.source.value, direction.target.value)
        except ProviderError as exc:
            logger.warning(
                "%s provider %s failed: %s",
                role.value.capitalize(),
                name,
                exc,
                extra=provider_log_extra(
                    provider=name,
                    role=role.value,
                    base=direction.source.value,
                    target=direction.target.value,
                    event="provider.fetch",
                    status="error",
                    generation=generation,
                    duration_ms=(perf_counter() - start) * 1000,
                    error=str(exc),
                ),
            )
            return None

        logger.info(
            "%s provider %s returned %s rate",
            role.value.capitalize(),
            name,
            direction.value,
            extra=provider_log_extra(
                provider=name,
                role=role.value,
                base=direction.source.value,
                target=direction.target.value,
                event="provider.fetch",
                status="success",
                generation=generation,
                duration_ms=(perf_counter() - start) * 1000,
            ),
        )
        return rate

    def _apply(self, candidate: RateState) -> RateState:
        with self._lock:
            if candidate.generation != self._generation:
                current = self._state
                superseded = True
            else:
                self._state = candidate
                current = candidate
                superseded = False
                self._pending = None

        if superseded:
            logger.info(
                "Discarding superseded rate result (generation %s, latest %s)",
                candidate.generation,
                current.generation,
                extra={"event": "provider.discarded", "generation": candidate.generation},
            )
            return current

        self._publish()
        return candidate

    def _publish(self) -> None:
        """Deliver the current snapshot to listeners, one delivery at a time.

        Listeners always receive whatever is current when their turn comes, so
        they end on the same snapshot as `state` and never see generations go
        backwards. A snapshot already delivered is not sent again.
        """

        with self._publish_lock:
            with self._lock:
                current = self._state
                listeners = list(self._listeners)
            if current is self._published:
                return
            self._published = current
            for listener in listeners:
                if self._published is not current:
                    # A listener published something newer re-entrantly.
                    return
                try:
                    listener(current)
                except Exception:
                    logger.exception("Rate state listener %r failed", listener)

    @staticmethod
    def _provider_name(provider: BaseRateProvider | None) -> str:
        if provider is None:
            return "unknown"
        return getattr(provider, "name", provider.__class__.__name__)


def init_orchestrator(app) -> Orchestrator:
    """Create and store an orchestrator on the Flask app."""

    primary = app.extensions.get("rate_provider")
    if primary is None:
        with app.app_context():
            primary = get_provider(app.config.get("FX_RATE_PROVIDER"))

    backup_provider = None
    backup_name = app.config.get("FX_FALLBACK_PROVIDER")
    if backup_name:
        try:
            with app.app_context():
                backup_provider = get_provider(backup_name)
        except ProviderError as exc:
            logger.warning("Configured backup provider '%s' unavailable: %s", backup_name, exc)

    executor = ThreadPoolExecutor(
        max_workers=max(int(app.config.get("FX_FETCH_WORKERS", 4)), 1),
        thread_name_prefix="rate-fetch",
    )
    orchestrator = Orchestrator(
        primary=primary,
        backup=backup_provider,
        direction=app.config.get("FX_DEFAULT_DIRECTION", Direction.JPY_TO_USD),
        executor=executor,
    )
    app.extensions["fx_orchestrator"] = orchestrator
    return orchestrator
