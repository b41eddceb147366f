"""Provider interfaces and data structures for FX rate sources."""

from .base import BaseRateProvider, MalformedResponseError, NetworkError, ProviderError
from .exchangerate_client import (
    ExchangeRateHostClient,
    ExchangeRateHostClientConfig,
    ExchangeRateHostError,
)
from .exchangerate_provider import ExchangeRateHostProvider
from .open_er_api_client import OpenErApiClient, OpenErApiClientConfig, OpenErApiError
from .open_er_api_provider import OpenErApiProvider
from .schemas import RateSnapshot

__all__ = [
    "BaseRateProvider",
    "ProviderError",
    "NetworkError",
    "MalformedResponseError",
    "RateSnapshot",
    "ExchangeRateHostClient",
    "ExchangeRateHostClientConfig",
    "ExchangeRateHostError",
    "ExchangeRateHostProvider",
    "OpenErApiClient",
    "OpenErApiClientConfig",
    "OpenErApiError",
    "OpenErApiProvider",
]
