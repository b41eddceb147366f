"""Dataclasses describing normalized FX provider payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from numbers import Real
from typing import Dict, Mapping

from jpyusd.utils.datetime import ensure_utc


def _normalize_code(code: str) -> str:
    normalized = code.strip().upper()
    if not normalized.isascii():
        raise ValueError(f"Currency code must be ASCII: {code!r}")
    return normalized


def _normalize_rate(code: str, value: object) -> float:
    if isinstance(value, bool):
        raise ValueError(f"Rate for {code} must be numeric, got {value!r}")
    if isinstance(value, Real):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError as exc:
            raise ValueError(f"Rate for {code} must be numeric, got {value!r}") from exc
    raise ValueError(f"Rate for {code} must be numeric, got {value!r}")


def _normalize_rates(rates: Mapping[str, object]) -> Dict[str, float]:
    normalized: Dict[str, float] = {}
    for code, value in rates.items():
        normalized_code = _normalize_code(code)
        normalized[normalized_code] = _normalize_rate(normalized_code, value)
    return normalized


@dataclass(frozen=True)
class RateSnapshot:
    """Normalized payload representing the latest FX rates for a base currency."""

    base_currency: str
    source: str
    timestamp: datetime
    rates: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_currency", _normalize_code(self.base_currency))
        object.__setattr__(self, "rates", _normalize_rates(self.rates))
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        if not self.source or not self.source.strip():
            raise ValueError("source must be provided for RateSnapshot")
