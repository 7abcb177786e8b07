"""
Utility modules for the portfolio engine.
"""

from .formatting import (
    NO_DATA,
    format_count,
    format_currency,
    format_metric,
    format_percent,
    format_rate,
)
from .config import Config

__all__ = [
    "NO_DATA",
    "format_count",
    "format_currency",
    "format_metric",
    "format_percent",
    "format_rate",
    "Config",
]
