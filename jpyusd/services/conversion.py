"""Pure conversion and formatting helpers for JPY/USD amounts."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, localcontext

from jpyusd.utils.datetime import to_display

from .currencies import Currency, Direction, parse_currency, parse_direction

BACKUP_ANNOTATION = " (backup)"
PARSE_FAILURE_MESSAGE = "Please enter a valid number"

_JPY_INPUT = re.compile(r"[0-9]+", re.ASCII)
_DECIMAL_INPUT = re.compile(r"[0-9]+(\.[0-9]{0,2})?", re.ASCII)
_THOUSANDS = re.compile(r"\B(?=(\d{3})+(?!\d))", re.ASCII)


class InvalidAmountError(ValueError):
    """Raised when a non-finite amount reaches the conversion step."""


class ConversionParseError(ValueError):
    """Raised when amount text cannot be parsed into a number."""

    def __init__(self, text: str, message: str = PARSE_FAILURE_MESSAGE) -> None:
        super().__init__(message)
        self.text = text
        self.message = message


@dataclass(frozen=True)
class ConversionResult:
    amount: float
    converted: float
    rate: float
    direction: Direction

    @property
    def formatted_amount(self) -> str:
        return format_amount(self.amount, self.direction.source)

    @property
    def formatted_converted(self) -> str:
        return format_amount(self.converted, self.direction.target)


def convert(amount: float, rate: float, direction: Direction | str) -> float:
    """Convert `amount` of the direction's source currency into its target.

    The rate is already expressed per unit of the source currency, so both
    directions multiply.
    """

    if not math.isfinite(amount):
        raise InvalidAmountError(f"Amount must be a finite number, got {amount!r}")
    parse_direction(direction)
    return amount * rate


def parse_amount(text: str) -> float:
    """Parse user-entered amount text, rejecting anything that is not a finite number."""

    cleaned = (text or "").replace(",", "").strip()
    if "_" in cleaned:
        raise ConversionParseError(text)
    try:
        value = float(cleaned)
    except ValueError as exc:
        raise ConversionParseError(text) from exc
    if not math.isfinite(value):
        raise ConversionParseError(text)
    return value


def convert_text(text: str, rate: float, direction: Direction) -> ConversionResult:
    """Parse amount text and convert it with the given rate."""

    amount = parse_amount(text)
    return ConversionResult(
        amount=amount,
        converted=convert(amount, rate, direction),
        rate=rate,
        direction=direction,
    )


def _round_half_up(value: float, places: int) -> Decimal:
    exact = Decimal(repr(value))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, exact.adjusted() + places + 2)
        return exact.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def _coerce_number(value: float | int | str | None) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.replace(",", ""))
        except ValueError:
            return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def format_amount(value: float | int | str | None, currency: Currency | str) -> str:
    """Render an amount with the currency's symbol and precision.

    JPY rounds to whole yen with thousands separators; USD always shows two
    decimals without grouping. Rounding is half-up on the shortest decimal
    representation of the value.
    """

    number = _coerce_number(value)
    if number is None:
        return ""

    code = parse_currency(currency)
    rounded = _round_half_up(number, code.decimals)
    if code is Currency.JPY:
        return f"{code.symbol}{int(rounded):,}"
    return f"{code.symbol}{rounded:.2f}"


def format_for_clipboard(value: float | None, currency: Currency | str) -> str:
    """Text copied to the clipboard for a converted amount."""

    return format_amount(value, currency)


def is_valid_amount_input(text: str, currency: Currency | str | None = None) -> bool:
    """Gate a keystroke: return True if `text` is an acceptable partial amount."""

    if text == "":
        return True
    if currency is not None and parse_currency(currency) is Currency.JPY:
        return _JPY_INPUT.fullmatch(text) is not None
    return _DECIMAL_INPUT.fullmatch(text) is not None


def format_with_thousand_separators(text: str) -> str:
    """Insert thousands separators into the integer part of typed input."""

    cleaned = re.sub(r"[^\d.]", "", text, flags=re.ASCII)
    parts = cleaned.split(".")
    parts[0] = _THOUSANDS.sub(",", parts[0])
    return ".".join(parts)


def format_date(value: datetime | str | None) -> str:
    """Render a last-updated value for display, dropping any backup annotation."""

    if not value:
        return ""
    if isinstance(value, datetime):
        return to_display(value)
    return value.replace(BACKUP_ANNOTATION, "")
