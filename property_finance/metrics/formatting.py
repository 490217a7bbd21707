"""
Display formatting for amounts and percentages.

Rounding happens here and only here. Stored values and metrics keep
full Decimal precision.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CURRENCY_SYMBOLS = {
    "GHS": "GH₵",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}

_CENTS = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def format_currency(amount: Number, currency_code: str = "GHS") -> str:
    """
    Format an amount for display, e.g. GH₵1,234.50.

    Unknown currency codes are used as a prefix ("XOF 12.00").
    """
    value = Decimal(str(amount)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    code = currency_code.upper()
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_change(percentage: Number, places: int = 1) -> str:
    """Format a change percentage with an explicit sign, e.g. +12.5%."""
    quantum = Decimal(1).scaleb(-places)
    value = Decimal(str(percentage)).quantize(quantum, rounding=ROUND_HALF_UP)
    sign = "+" if value > 0 else ""
    return f"{sign}{value}%"
