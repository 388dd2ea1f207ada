"""Amount and rate parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

# Symbols stripped before parsing, including the Afghani sign
CURRENCY_SYMBOLS = r"[$€£¥؋]"


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45" / "؋123.45"
    - "-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount, unrounded

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(CURRENCY_SYMBOLS, "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Amount must be a finite number, got '{amount_str}'")
    return -amount if is_negative else amount


def parse_positive(value: str, label: str = "Amount") -> Decimal:
    """Parse an amount that must be strictly positive (prices, quantities, rates)."""
    amount = parse_amount(value)
    if amount <= 0:
        raise ValueError(f"{label} must be positive, got {amount}")
    return amount
