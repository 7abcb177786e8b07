"""
Formatting utilities.
"""

from typing import Callable, Optional

NO_DATA = "No data"


def format_currency(amount: float, currency: str = "USD") -> str:
    """
    Format an amount as currency, rounded to whole units.

    Args:
        amount: The amount in whole units (e.g., dollars, not cents).
        currency: Currency code (default USD).

    Returns:
        Formatted currency string.
    """
    symbols = {
        "USD": "$",
        "GBP": "£",
        "EUR": "€",
    }
    symbol = symbols.get(currency, currency + " ")
    return f"{symbol}{round(amount):,}"


def format_percent(value: float, decimals: int = 1) -> str:
    """
    Format a number as a percentage.

    Args:
        value: The percentage value.
        decimals: Number of decimal places.

    Returns:
        Formatted percentage string.
    """
    return f"{value:.{decimals}f}%"


def format_rate(rate: float, decimals: int = 1) -> str:
    """Format a 0-1 fraction (occupancy, prelease) as a percentage."""
    return format_percent(rate * 100, decimals)


def format_count(value: int) -> str:
    return f"{value:,}"


def format_metric(
    value: Optional[float],
    formatter: Callable[[float], str],
    placeholder: str = NO_DATA,
) -> str:
    """
    Format an aggregate value, substituting a placeholder for missing data.

    Aggregates use None as their no-data sentinel; NaN is treated the same.
    """
    if value is None or value != value:
        return placeholder
    return formatter(value)
