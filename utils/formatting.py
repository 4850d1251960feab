"""
Formatting utilities.

This is the presentation boundary: the only place where "no value"
(None) is turned into a placeholder string. A real zero is always
rendered as a number.
"""

from typing import Optional

NO_DATA = "--"


def format_currency(
    amount: Optional[float],
    currency: str = "USD",
    placeholder: str = NO_DATA,
) -> str:
    """
    Format an amount as currency, rounded to whole units.

    Args:
        amount: The amount in whole units, or None for no data.
        currency: Currency code (default USD).
        placeholder: Text shown when amount is None.

    Returns:
        Formatted currency string.
    """
    if amount is None:
        return placeholder
    symbols = {
        "GBP": "£",
        "USD": "$",
        "EUR": "€",
    }
    symbol = symbols.get(currency, currency + " ")
    rounded = int(round(amount))
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,}"


def format_price_short(amount: Optional[float], placeholder: str = NO_DATA) -> str:
    """
    Compact price for map pins and photo captions: $1.2M, $450K.
    """
    if amount is None:
        return placeholder
    if round(amount / 1_000) >= 1_000:
        return f"${amount / 1_000_000:.1f}M"
    if round(amount) >= 1_000:
        return f"${round(amount / 1_000)}K"
    return format_currency(amount)


def format_percent(
    value: Optional[float],
    decimals: int = 1,
    placeholder: str = NO_DATA,
) -> str:
    """
    Format a number as a percentage.

    Args:
        value: The percentage value, or None for no data.
        decimals: Number of decimal places.

    Returns:
        Formatted percentage string.
    """
    if value is None:
        return placeholder
    return f"{value:.{decimals}f}%"


def format_per_sqft(value: Optional[float], placeholder: str = NO_DATA) -> str:
    if value is None:
        return placeholder
    return f"${int(round(value)):,}/sqft"


def format_days(value: Optional[float], placeholder: str = NO_DATA) -> str:
    if value is None:
        return placeholder
    days = int(round(value))
    return f"{days} day" if days == 1 else f"{days} days"
