"""Application configuration classes."""

from __future__ import annotations

import os

SUPPORTED_RATE_PROVIDERS = {"open_er_api", "exchangerate_host", "mock"}
PROVIDER_ALIASES = {
    "er_api": "open_er_api",
    "open.er-api": "open_er_api",
    "exchange": "exchangerate_host",
    "exchangerate.host": "exchangerate_host",
}
SUPPORTED_DIRECTIONS = {"JPY_TO_USD", "USD_TO_JPY"}


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "jpyusd-converter"
    SECRET_KEY = _get_env("SECRET_KEY", "change-me")

    FX_RATE_PROVIDER = _get_env("FX_RATE_PROVIDER", "open_er_api")
    FX_FALLBACK_PROVIDER: str | None = _get_env("FX_FALLBACK_PROVIDER", "exchangerate_host")
    OPEN_ER_API_BASE_URL = _get_env("OPEN_ER_API_BASE_URL", "https://open.er-api.com")
    EXCHANGERATE_HOST_BASE_URL = _get_env(
        "EXCHANGERATE_HOST_BASE_URL", "https://api.exchangerate.host"
    )
    REQUEST_TIMEOUT_SECONDS = float(_get_env("REQUEST_TIMEOUT_SECONDS", "5"))
    RATES_API_MAX_RETRIES = int(_get_env("RATES_API_MAX_RETRIES", "1"))
    RATES_API_BACKOFF_SECONDS = float(_get_env("RATES_API_BACKOFF_SECONDS", "0.5"))
    FX_DEFAULT_DIRECTION = _get_env("FX_DEFAULT_DIRECTION", "JPY_TO_USD")
    FX_FETCH_WORKERS = int(_get_env("FX_FETCH_WORKERS", "4"))
    RATES_WAIT_TIMEOUT_SECONDS = float(_get_env("RATES_WAIT_TIMEOUT_SECONDS", "15"))
    HISTORY_MAX_ENTRIES = int(_get_env("HISTORY_MAX_ENTRIES", "10"))

    SCHEDULER_ENABLED = _get_env("SCHEDULER_ENABLED", "false").lower() == "true"
    RATES_REFRESH_CRON = _get_env("RATES_REFRESH_CRON", "0 */1 * * *")
    SCHEDULER_TIMEZONE = _get_env("SCHEDULER_TIMEZONE", "UTC")

    LOG_LEVEL = _get_env("LOG_LEVEL", "INFO")
    LOG_JSON_ENABLED = _get_env("LOG_JSON_ENABLED", "false").lower() == "true"
    LOG_FORMAT = _get_env("LOG_FORMAT", "%(asctime)s %(levelname)s [%(name)s] %(message)s")
    CORS_ALLOWED_ORIGINS = _get_env("CORS_ALLOWED_ORIGINS", "http://localhost:5173")
    CORS_ALLOWED_HEADERS = _get_env("CORS_ALLOWED_HEADERS", "Content-Type,X-Request-ID")
    CORS_ALLOWED_METHODS = _get_env("CORS_ALLOWED_METHODS", "GET,POST,PUT,DELETE,OPTIONS")
    CORS_MAX_AGE = int(_get_env("CORS_MAX_AGE", "600"))


class DevelopmentConfig(BaseConfig):
    """Configuration for local development."""

    DEBUG = True
    TESTING = False


class ProductionConfig(BaseConfig):
    """Configuration for production deployments."""

    DEBUG = False
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration for the test suite; never touches the network."""

    DEBUG = False
    TESTING = True
    FX_RATE_PROVIDER = "mock"
    FX_FALLBACK_PROVIDER = None
    SCHEDULER_ENABLED = False
    RATES_WAIT_TIMEOUT_SECONDS = 5.0


CONFIG_BY_ENV = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def get_config(config_name: str | None = None) -> type[BaseConfig]:
    """Return the config class for the requested environment.

    Args:
        config_name: Optional explicit config identifier. If omitted, the
            APP_ENV environment variable is consulted.

    Raises:
        KeyError: If the requested configuration is not defined.
        ValueError: If a provider or direction setting is not supported.
    """

    env_candidate = config_name if config_name is not None else os.getenv("APP_ENV", "development")
    env_name = (env_candidate or "development").lower()
    try:
        config_cls = CONFIG_BY_ENV[env_name]
    except KeyError as exc:
        raise KeyError(f"Unknown APP_ENV '{env_name}'") from exc

    _validate_providers(config_cls)
    _validate_direction(config_cls)
    return config_cls


def _validate_providers(config_cls: type[BaseConfig]) -> None:
    primary_normalized = _normalize_provider(config_cls.FX_RATE_PROVIDER)
    if primary_normalized not in SUPPORTED_RATE_PROVIDERS:
        raise ValueError(
            f"Unsupported FX_RATE_PROVIDER '{config_cls.FX_RATE_PROVIDER}'. "
            f"Allowed values: {sorted(SUPPORTED_RATE_PROVIDERS)}"
        )
    config_cls.FX_RATE_PROVIDER = primary_normalized

    fallback_raw = config_cls.FX_FALLBACK_PROVIDER
    if fallback_raw:
        fallback_normalized = _normalize_provider(fallback_raw)
        if fallback_normalized not in SUPPORTED_RATE_PROVIDERS:
            raise ValueError(
                f"Unsupported FX_FALLBACK_PROVIDER '{fallback_raw}'. Allowed values: "
                f"{sorted(SUPPORTED_RATE_PROVIDERS)}"
            )
        config_cls.FX_FALLBACK_PROVIDER = fallback_normalized
    else:
        config_cls.FX_FALLBACK_PROVIDER = None


def _validate_direction(config_cls: type[BaseConfig]) -> None:
    direction = (config_cls.FX_DEFAULT_DIRECTION or "").strip().upper()
    if direction not in SUPPORTED_DIRECTIONS:
        raise ValueError(
            f"Unsupported FX_DEFAULT_DIRECTION '{config_cls.FX_DEFAULT_DIRECTION}'. "
            f"Allowed values: {sorted(SUPPORTED_DIRECTIONS)}"
        )
    config_cls.FX_DEFAULT_DIRECTION = direction


def _normalize_provider(value: str | None) -> str:
    if not value:
        return ""
    normalized = value.strip().lower()
    return PROVIDER_ALIASES.get(normalized, normalized)
