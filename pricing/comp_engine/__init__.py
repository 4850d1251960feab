"""
CMA Comp Engine

Comparable property valuation for Comparative Market Analysis: resolves
inconsistent MLS listing fields, aggregates comparable statistics,
computes feature adjustments and derives a suggested list price with
user override and undo.
"""

from .models import (
    ALL_STATUSES,
    AdjustmentOverrides,
    AdjustmentRates,
    ComparableAdjustments,
    ComparableOverrides,
    ComparisonIndicator,
    CustomAdjustment,
    DEFAULT_ADJUSTMENT_RATES,
    Direction,
    Feature,
    FeatureAdjustment,
    FeatureKind,
    MarketDelta,
    MarketDeltas,
    MarketStatistics,
    PropertyRecord,
    StatMetric,
    StatusCategory,
    SubjectProperty,
    SuggestedPriceState,
    ValuationResult,
    ValueRange,
)
from .fields import (
    resolve_days_on_market,
    resolve_living_area,
    resolve_price,
    resolve_price_per_sqft,
)
from .statistics import compute_market_statistics, compute_metric
from .filters import SortKey, classify_status, filter_by_status, sort_comparables
from .adjustments import (
    compute_comparable_adjustments,
    compute_comparison_indicator,
    compute_feature_adjustment,
    list_custom_adjustments,
)
from .suggested_price import SuggestedPrice
from .valuation import CompValuationEngine, compute_market_deltas, derive_computed_price

__all__ = [
    # Models
    "ALL_STATUSES",
    "AdjustmentOverrides",
    "AdjustmentRates",
    "ComparableAdjustments",
    "ComparableOverrides",
    "ComparisonIndicator",
    "CustomAdjustment",
    "DEFAULT_ADJUSTMENT_RATES",
    "Direction",
    "Feature",
    "FeatureAdjustment",
    "FeatureKind",
    "MarketDelta",
    "MarketDeltas",
    "MarketStatistics",
    "PropertyRecord",
    "StatMetric",
    "StatusCategory",
    "SubjectProperty",
    "SuggestedPriceState",
    "ValuationResult",
    "ValueRange",
    # Field Resolver
    "resolve_days_on_market",
    "resolve_living_area",
    "resolve_price",
    "resolve_price_per_sqft",
    # Statistics
    "compute_market_statistics",
    "compute_metric",
    # Filters
    "SortKey",
    "classify_status",
    "filter_by_status",
    "sort_comparables",
    # Adjustments
    "compute_comparable_adjustments",
    "compute_comparison_indicator",
    "compute_feature_adjustment",
    "list_custom_adjustments",
    # Engine
    "CompValuationEngine",
    "SuggestedPrice",
    "compute_market_deltas",
    "derive_computed_price",
]

__version__ = "1.0"
