"""Formatting utilities for currency and text display."""

from __future__ import annotations

from typing import Optional, Union

CURRENCY_SYMBOLS = {
    'USD': '$',
    'EUR': '€',
    'GBP': '£',
    'INR': '₹',
    'JPY': '¥',
}


def escape_dollar_for_markdown(text: str) -> str:
    """Escape dollar signs so Streamlit markdown does not read them as LaTeX.

    Example:
        >>> escape_dollar_for_markdown('$1,234.56')
        '\\\\$1,234.56'
    """
    return text.replace("$", "\\$")


def format_currency(amount: Union[float, int], currency: Optional[str] = 'USD') -> str:
    """Format an amount with the currency's symbol, or its code when unknown.

    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
        >>> format_currency(1234.56, 'CHF')
        'CHF 1,234.56'
        >>> format_currency(1234.56, None)
        '1,234.56'
    """
    formatted = f"{amount:,.2f}"
    if not currency:
        return formatted
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    if symbol:
        return f"{symbol}{formatted}"
    return f"{currency.upper()} {formatted}"


def format_months(months: float) -> str:
    """Human readable horizon, e.g. ``'2y 3m'`` or ``'5m'``."""
    whole = int(round(months))
    years, rem = divmod(whole, 12)
    if years and rem:
        return f"{years}y {rem}m"
    if years:
        return f"{years}y"
    return f"{rem}m"
