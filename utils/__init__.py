"""
Utility modules for the CMA pricing engine.
"""

from .formatting import (
    format_currency,
    format_days,
    format_per_sqft,
    format_percent,
    format_price_short,
)
from .config import Config
from .logging import configure_logging, get_logger

__all__ = [
    "format_currency",
    "format_days",
    "format_per_sqft",
    "format_percent",
    "format_price_short",
    "Config",
    "configure_logging",
    "get_logger",
]
