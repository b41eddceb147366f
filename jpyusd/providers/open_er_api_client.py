from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from jpyusd.providers.http_client import HTTPClient, HTTPClientConfig, HTTPClientError


class OpenErApiError(RuntimeError):
    """Raised when the open.er-api.com endpoint returns an error response."""


class OpenErApiClientConfig:
    """Configuration parameters for the open.er-api.com client."""

    def __init__(
        self,
        base_url: str,
        timeout: float,
        max_retries: int = 1,
        backoff_seconds: float = 0.5,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds


class OpenErApiClient:
    """HTTP client for open.er-api.com built on the shared wrapper."""

    def __init__(
        self,
        config: OpenErApiClientConfig,
        client: HTTPClient | None = None,
    ) -> None:
        self._config = config
        self._client = client or HTTPClient(
            HTTPClientConfig(
                base_url=config.base_url,
                timeout=config.timeout,
                max_retries=config.max_retries,
                backoff_seconds=config.backoff_seconds,
            )
        )

    def get(self, path: str, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        try:
            payload = self._client.get(path, params=params)
        except HTTPClientError as exc:
            raise OpenErApiError(f"open.er-api request failed: {exc}") from exc

        if payload.get("result") == "error":
            error_type = payload.get("error-type") or "unknown"
            raise OpenErApiError(f"open.er-api error payload: {error_type}")

        return payload
