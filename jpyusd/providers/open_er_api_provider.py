"""open.er-api.com provider, used as the primary rate source."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from jpyusd.providers.base import BaseRateProvider, MalformedResponseError, NetworkError, ProviderError
from jpyusd.providers.schemas import RateSnapshot
from jpyusd.services.currencies import parse_currency
from jpyusd.utils.datetime import utc_now

from .open_er_api_client import OpenErApiClient, OpenErApiClientConfig, OpenErApiError

DEFAULT_BASE_URL = "https://open.er-api.com"


class OpenErApiProvider(BaseRateProvider):
    """Provider that fetches latest rates from open.er-api.com, keyed by base currency."""

    name = "open_er_api"

    def __init__(self, client: OpenErApiClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> OpenErApiProvider:
        base_url = str(config.get("OPEN_ER_API_BASE_URL") or DEFAULT_BASE_URL)
        client_config = OpenErApiClientConfig(
            base_url=base_url,
            timeout=float(config.get("REQUEST_TIMEOUT_SECONDS", 5)),
            max_retries=int(config.get("RATES_API_MAX_RETRIES", 1)),
            backoff_seconds=float(config.get("RATES_API_BACKOFF_SECONDS", 0.5)),
        )
        return cls(OpenErApiClient(client_config))

    def get_latest(self, base: str) -> RateSnapshot:
        try:
            base_currency = parse_currency(base).value
        except ValueError as exc:
            raise ProviderError(str(exc)) from exc

        try:
            payload = self._client.get(f"/v6/latest/{base_currency}")
        except OpenErApiError as exc:
            raise NetworkError(str(exc)) from exc

        rates = payload.get("rates")
        if not isinstance(rates, dict):
            raise MalformedResponseError("open.er-api response missing 'rates' mapping")

        try:
            return RateSnapshot(
                base_currency=base_currency,
                source=self.name,
                timestamp=self._parse_timestamp(payload.get("time_last_update_unix")),
                rates=rates,
            )
        except ValueError as exc:
            raise MalformedResponseError(f"open.er-api payload rejected: {exc}") from exc

    @staticmethod
    def _parse_timestamp(value: Any) -> datetime:
        if isinstance(value, bool) or not isinstance(value, int | float):
            return utc_now()
        return datetime.fromtimestamp(value, tz=UTC)
