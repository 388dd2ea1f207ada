"""Decimal helpers for money, rates and quantities."""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
RATE_PLACES = Decimal("0.000001")
QUANTITY_PLACES = Decimal("0.001")

ZERO = Decimal("0.00")
ONE = Decimal("1")


def to_decimal(value: Any) -> Decimal:
    """Coerce ints, strings and floats to Decimal.

    Floats go through ``str`` so 0.1 becomes Decimal("0.1") rather than its
    binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Not a decimal value: {value!r}") from e


def to_money(value: Any) -> Decimal:
    """Quantize to cents."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_rate(value: Any) -> Decimal:
    """Quantize an exchange rate to six fraction digits."""
    return to_decimal(value).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def to_quantity(value: Any) -> Decimal:
    return to_decimal(value).quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


def convert(amount: Any, rate: Any) -> Decimal:
    """Return ``amount * rate`` rounded to cents."""
    return to_money(to_decimal(amount) * to_decimal(rate))
