"""Currency and conversion-direction model for the JPY/USD pair."""

from __future__ import annotations

from enum import Enum


class Currency(str, Enum):
    """The two currencies the converter supports."""

    JPY = "JPY"
    USD = "USD"

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]

    @property
    def decimals(self) -> int:
        """Number of minor-unit digits shown when rendering amounts."""

        return _DECIMALS[self]


_SYMBOLS = {Currency.JPY: "¥", Currency.USD: "$"}
_DECIMALS = {Currency.JPY: 0, Currency.USD: 2}


class Direction(str, Enum):
    """Which currency is converted into which."""

    JPY_TO_USD = "JPY_TO_USD"
    USD_TO_JPY = "USD_TO_JPY"

    @property
    def source(self) -> Currency:
        return Currency.JPY if self is Direction.JPY_TO_USD else Currency.USD

    @property
    def target(self) -> Currency:
        return Currency.USD if self is Direction.JPY_TO_USD else Currency.JPY

    def reversed(self) -> Direction:
        if self is Direction.JPY_TO_USD:
            return Direction.USD_TO_JPY
        return Direction.JPY_TO_USD


def parse_currency(value: Currency | str | None) -> Currency:
    """Normalize a currency code into a `Currency` member."""

    if isinstance(value, Currency):
        return value
    if value is None or not str(value).strip():
        raise ValueError("Currency code cannot be blank.")
    normalized = str(value).strip().upper()
    try:
        return Currency(normalized)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in Currency)
        raise ValueError(f"Unsupported currency '{normalized}'. Allowed: {allowed}.") from exc


def parse_direction(value: Direction | str | None) -> Direction:
    """Normalize a direction name (case-insensitive) into a `Direction` member."""

    if isinstance(value, Direction):
        return value
    if value is None or not str(value).strip():
        raise ValueError("Direction cannot be blank.")
    normalized = str(value).strip().upper()
    try:
        return Direction(normalized)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in Direction)
        raise ValueError(f"Unsupported direction '{normalized}'. Allowed: {allowed}.") from exc
