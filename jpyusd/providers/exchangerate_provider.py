"""ExchangeRate.host provider, used as the backup rate source."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from jpyusd.providers.base import BaseRateProvider, MalformedResponseError, NetworkError, ProviderError
from jpyusd.providers.schemas import RateSnapshot
from jpyusd.services.currencies import parse_currency
from jpyusd.utils.datetime import utc_now

from .exchangerate_client import (
    ExchangeRateHostClient,
    ExchangeRateHostClientConfig,
    ExchangeRateHostError,
)

DEFAULT_BASE_URL = "https://api.exchangerate.host"


class ExchangeRateHostProvider(BaseRateProvider):
    """Provider that fetches latest rates from ExchangeRate.host."""

    name = "exchangerate_host"

    def __init__(self, client: ExchangeRateHostClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> ExchangeRateHostProvider:
        base_url_value = config.get("EXCHANGERATE_HOST_BASE_URL")
        if not isinstance(base_url_value, str) or not base_url_value.strip():
            base_url = DEFAULT_BASE_URL
        else:
            base_url = base_url_value
        client_config = ExchangeRateHostClientConfig(
            base_url=base_url,
            timeout=float(config.get("REQUEST_TIMEOUT_SECONDS", 5)),
            max_retries=int(config.get("RATES_API_MAX_RETRIES", 1)),
            backoff_seconds=float(config.get("RATES_API_BACKOFF_SECONDS", 0.5)),
        )
        return cls(ExchangeRateHostClient(client_config))

    def get_latest(self, base: str) -> RateSnapshot:
        base_currency = _normalize_base(base)
        try:
            payload = self._client.get("/latest", params={"base": base_currency})
        except ExchangeRateHostError as exc:
            raise NetworkError(str(exc)) from exc

        rates = payload.get("rates")
        if not isinstance(rates, dict):
            raise MalformedResponseError("Unexpected response payload from ExchangeRate.host")

        try:
            return RateSnapshot(
                base_currency=base_currency,
                source=self.name,
                timestamp=self._parse_date(payload.get("date")),
                rates=rates,
            )
        except ValueError as exc:
            raise MalformedResponseError(f"ExchangeRate.host payload rejected: {exc}") from exc

    @staticmethod
    def _parse_date(value: Any) -> datetime:
        if not isinstance(value, str) or not value:
            return utc_now()
        try:
            dt = datetime.fromisoformat(value)
        except ValueError:
            return utc_now()
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt


def _normalize_base(value: str) -> str:
    try:
        return parse_currency(value).value
    except ValueError as exc:
        raise ProviderError(str(exc)) from exc
