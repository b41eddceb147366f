"""Abstract interface for FX rate providers."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

from .schemas import RateSnapshot


class ProviderError(Exception):
    """Raised when an upstream provider cannot fulfill a request."""


class NetworkError(ProviderError):
    """The provider could not be reached or answered with an HTTP error."""


class MalformedResponseError(ProviderError):
    """The provider answered but the payload lacks a usable rate."""


class BaseRateProvider(ABC):
    """Defines the interface all FX rate providers must implement."""

    name: str

    @abstractmethod
    def get_latest(self, base: str) -> RateSnapshot:
        """Retrieve the most recent rates for the given base currency."""

    def get_rate(self, base: str, target: str) -> float:
        """Return units of `target` per one unit of `base` from the latest snapshot."""

        snapshot = self.get_latest(base)
        quote = target.strip().upper()
        value = snapshot.rates.get(quote)
        if value is None:
            raise MalformedResponseError(
                f"Rate for {quote} missing from {self.name} response for base {snapshot.base_currency}"
            )
        if not math.isfinite(value) or value <= 0:
            raise MalformedResponseError(f"Invalid {quote} rate {value!r} from {self.name}")
        return value
