"""
Configuration management.
"""

import logging
import os
from dataclasses import dataclass, field

from pricing.comp_engine.models import AdjustmentRates, DEFAULT_ADJUSTMENT_RATES

from .logging import configure_logging


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults. The ADJ_*
    variables replace the process-wide default adjustment rates; a CMA
    can still carry its own rates.
    """

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Comparison
    indicator_threshold_pct: float = field(
        default_factory=lambda: _env_float("INDICATOR_THRESHOLD_PCT", 0.5)
    )

    # Presentation
    currency: str = field(default_factory=lambda: os.getenv("CURRENCY", "USD"))
    no_data_placeholder: str = field(
        default_factory=lambda: os.getenv("NO_DATA_PLACEHOLDER", "--")
    )

    # Adjustment rate defaults
    sqft_per_unit: float = field(
        default_factory=lambda: _env_float("ADJ_SQFT_PER_UNIT", DEFAULT_ADJUSTMENT_RATES.sqft_per_unit)
    )
    bedroom_value: float = field(
        default_factory=lambda: _env_float("ADJ_BEDROOM_VALUE", DEFAULT_ADJUSTMENT_RATES.bedroom_value)
    )
    bathroom_value: float = field(
        default_factory=lambda: _env_float("ADJ_BATHROOM_VALUE", DEFAULT_ADJUSTMENT_RATES.bathroom_value)
    )
    pool_value: float = field(
        default_factory=lambda: _env_float("ADJ_POOL_VALUE", DEFAULT_ADJUSTMENT_RATES.pool_value)
    )
    garage_per_space: float = field(
        default_factory=lambda: _env_float(
            "ADJ_GARAGE_PER_SPACE", DEFAULT_ADJUSTMENT_RATES.garage_per_space
        )
    )
    year_built_per_year: float = field(
        default_factory=lambda: _env_float(
            "ADJ_YEAR_BUILT_PER_YEAR", DEFAULT_ADJUSTMENT_RATES.year_built_per_year
        )
    )
    lot_size_per_sqft: float = field(
        default_factory=lambda: _env_float(
            "ADJ_LOT_SIZE_PER_SQFT", DEFAULT_ADJUSTMENT_RATES.lot_size_per_sqft
        )
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def configure_logging(self) -> logging.Logger:
        """Apply log_level to the engine's logger namespace."""
        return configure_logging(self.log_level)

    def adjustment_rates(self) -> AdjustmentRates:
        """Default adjustment rates for new CMAs."""
        return AdjustmentRates(
            sqft_per_unit=self.sqft_per_unit,
            bedroom_value=self.bedroom_value,
            bathroom_value=self.bathroom_value,
            pool_value=self.pool_value,
            garage_per_space=self.garage_per_space,
            year_built_per_year=self.year_built_per_year,
            lot_size_per_sqft=self.lot_size_per_sqft,
        )

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "log_level": self.log_level,
            "indicator_threshold_pct": self.indicator_threshold_pct,
            "currency": self.currency,
            "no_data_placeholder": self.no_data_placeholder,
            "adjustment_rates": self.adjustment_rates().to_dict(),
        }
