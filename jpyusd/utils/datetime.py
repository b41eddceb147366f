"""Shared datetime helpers for enforcing UTC awareness."""

from __future__ import annotations

from datetime import UTC, datetime

DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


def ensure_utc(value: datetime) -> datetime:
    """Return a timezone-aware datetime in UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    """Return the current UTC datetime."""

    return datetime.now(UTC)


def to_display(value: datetime) -> str:
    """Render a datetime in the human readable form used by rate displays."""

    return ensure_utc(value).strftime(DISPLAY_FORMAT)
