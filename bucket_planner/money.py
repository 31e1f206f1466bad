"""Rounding and formatting utilities for currency amounts."""

from __future__ import annotations

import math
import sys
from typing import Union

Number = Union[float, int]

EPSILON = sys.float_info.epsilon

_SYMBOLS = {
    'EUR': '€',
    'USD': '$',
    'GBP': '£',
}


def round2(value: Number) -> float:
    """Round to the cent, halves going up.

    Computes ``floor((value + EPSILON) * 100 + 0.5) / 100`` so that repeated
    application is a no-op.

    Example:
        >>> round2(83.3325)
        83.33
        >>> round2(0.125)
        0.13
    """
    return math.floor((float(value) + EPSILON) * 100 + 0.5) / 100


def safe_ratio(numerator: Number, denominator: Number) -> float:
    """Return ``numerator / denominator``, or 0.0 for a non-positive denominator."""
    if denominator is None or denominator <= 0:
        return 0.0
    return float(numerator) / float(denominator)


def format_currency(amount: Number, currency: str = 'EUR', include_symbol: bool = True) -> str:
    """Format a currency amount for display.

    Args:
        amount: The amount to format
        currency: ISO currency code used to pick the symbol
        include_symbol: Whether to include the currency symbol

    Returns:
        Formatted currency string (e.g., "€1,234.56" or "1,234.56")

    Example:
        >>> format_currency(1234.56)
        '€1,234.56'
        >>> format_currency(-12, include_symbol=False)
        '-12.00'
    """
    value = round2(amount)
    formatted = f"{abs(value):,.2f}"
    sign = '-' if value < 0 else ''
    if not include_symbol:
        return f"{sign}{formatted}"
    symbol = _SYMBOLS.get(currency, f"{currency} ")
    return f"{sign}{symbol}{formatted}"
