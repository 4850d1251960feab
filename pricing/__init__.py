"""
CMA Pricing - Core Business Logic

The comp engine is the single place where comparable listings are
turned into statistics, adjustments and a suggested list price. Dashboards,
comparison grids and presentation widgets consume its output only.
"""

from .comp_engine import (
    AdjustmentOverrides,
    AdjustmentRates,
    CompValuationEngine,
    DEFAULT_ADJUSTMENT_RATES,
    PropertyRecord,
    StatusCategory,
    SubjectProperty,
    SuggestedPrice,
    SuggestedPriceState,
    ValuationResult,
)

__all__ = [
    "AdjustmentOverrides",
    "AdjustmentRates",
    "CompValuationEngine",
    "DEFAULT_ADJUSTMENT_RATES",
    "PropertyRecord",
    "StatusCategory",
    "SubjectProperty",
    "SuggestedPrice",
    "SuggestedPriceState",
    "ValuationResult",
]
