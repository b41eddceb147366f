"""Mock provider implementation for testing and local development."""

from __future__ import annotations

from jpyusd.utils.datetime import utc_now

from .base import BaseRateProvider, ProviderError
from .schemas import RateSnapshot

MOCK_RATES: dict[str, dict[str, float]] = {
    "JPY": {"JPY": 1.0, "USD": 0.0067},
    "USD": {"USD": 1.0, "JPY": 149.25},
}


class MockRateProvider(BaseRateProvider):
    """Deterministic provider returning synthetic JPY/USD quotes."""

    name = "mock"

    def get_latest(self, base: str) -> RateSnapshot:
        base_currency = str(base).strip().upper()
        try:
            rates = MOCK_RATES[base_currency]
        except KeyError as exc:
            raise ProviderError(f"Mock provider has no rates for base '{base_currency}'") from exc
        return RateSnapshot(
            base_currency=base_currency,
            source=self.name,
            timestamp=utc_now(),
            rates=dict(rates),
        )
