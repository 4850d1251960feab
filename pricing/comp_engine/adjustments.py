"""
Adjustment Calculator for the CMA Comp Engine

Expresses the difference between a comparable and the subject feature by
feature, both as a neutral up/down indicator and as a dollar adjustment.

Sign convention: an adjustment is the amount ADDED to the comparable's
price to make it comparable to the subject,

    adjustment = (subject value - comparable value) * rate

so a comparable that is larger, newer or better equipped than the
subject is adjusted down.
"""

import logging
import math
from typing import Any, Callable, Dict, List, Optional, Union

from .fields import (
    resolve_baths,
    resolve_beds,
    resolve_garage_spaces,
    resolve_id,
    resolve_living_area,
    resolve_lot_size_sqft,
    resolve_pool,
    resolve_price,
    resolve_year_built,
    to_number,
)
from .models import (
    AdjustmentOverrides,
    AdjustmentRates,
    ComparableAdjustments,
    ComparisonIndicator,
    CustomAdjustment,
    DEFAULT_ADJUSTMENT_RATES,
    Direction,
    Feature,
    FeatureAdjustment,
    FeatureKind,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

# Continuous differences smaller than this percentage are not shown
INDICATOR_THRESHOLD_PCT = 0.5

FEATURE_RESOLVERS: Dict[Feature, Callable[[Any], Any]] = {
    Feature.SQFT: resolve_living_area,
    Feature.BEDROOMS: resolve_beds,
    Feature.BATHROOMS: resolve_baths,
    Feature.POOL: resolve_pool,
    Feature.GARAGE: resolve_garage_spaces,
    Feature.YEAR_BUILT: resolve_year_built,
    Feature.LOT_SIZE: resolve_lot_size_sqft,
}

# Display order of adjustment lines
ADJUSTED_FEATURES = (
    Feature.SQFT,
    Feature.BEDROOMS,
    Feature.BATHROOMS,
    Feature.POOL,
    Feature.GARAGE,
    Feature.YEAR_BUILT,
    Feature.LOT_SIZE,
)


def _feature_kind(feature: Union[Feature, FeatureKind, str]) -> Optional[FeatureKind]:
    if isinstance(feature, FeatureKind):
        return feature
    if isinstance(feature, Feature):
        return feature.kind
    if isinstance(feature, str):
        for kind in FeatureKind:
            if kind.value == feature.strip().lower():
                return kind
        named = Feature.from_string(feature)
        if named is not None:
            return named.kind
    return None


def _as_whole(value: float) -> Union[int, float]:
    return int(value) if float(value).is_integer() else value


# =============================================================================
# Comparison Indicators
# =============================================================================

def compute_comparison_indicator(
    comparable_value: Any,
    subject_value: Any,
    feature: Union[Feature, FeatureKind, str],
    threshold_pct: float = INDICATOR_THRESHOLD_PCT,
) -> Optional[ComparisonIndicator]:
    """
    Direction and size of a comparable-vs-subject difference.

    Args:
        comparable_value: The comparable's value for the feature
        subject_value: The subject's value for the feature
        feature: A Feature, a FeatureKind, or either one's string value
            ("sqft", "beds", "count", "continuous", ...)
        threshold_pct: Continuous differences below this are suppressed

    Returns:
        ComparisonIndicator, or None when there is nothing to show:
        - count: missing value, zero subject, or no difference
        - continuous: missing value, non-positive subject, or a
          percentage difference below threshold_pct
        - presence: unknown on either side, or equal
    """
    kind = _feature_kind(feature)
    if kind is None:
        logger.debug("No indicator for unknown feature %r", feature)
        return None

    if kind == FeatureKind.PRESENCE:
        if not isinstance(comparable_value, bool) or not isinstance(subject_value, bool):
            return None
        if comparable_value == subject_value:
            return None
        return ComparisonIndicator(
            direction=Direction.UP if comparable_value else Direction.DOWN,
            magnitude=1,
        )

    comp = to_number(comparable_value)
    subject = to_number(subject_value)
    if comp is None or subject is None:
        return None

    if kind == FeatureKind.COUNT:
        if subject == 0:
            return None
        diff = comp - subject
        if diff == 0:
            return None
        return ComparisonIndicator(
            direction=Direction.UP if diff > 0 else Direction.DOWN,
            magnitude=_as_whole(abs(diff)),
        )

    if subject <= 0:
        return None
    pct = (comp - subject) / subject * 100
    if abs(pct) < threshold_pct:
        return None
    return ComparisonIndicator(
        direction=Direction.UP if pct > 0 else Direction.DOWN,
        magnitude=abs(pct),
    )


def compare_features(
    subject: Any,
    comparable: Any,
    threshold_pct: float = INDICATOR_THRESHOLD_PCT,
) -> Dict[str, Optional[ComparisonIndicator]]:
    """Indicators for every adjusted feature, keyed by feature value."""
    return {
        feature.value: compute_comparison_indicator(
            FEATURE_RESOLVERS[feature](comparable),
            FEATURE_RESOLVERS[feature](subject),
            feature,
            threshold_pct=threshold_pct,
        )
        for feature in ADJUSTED_FEATURES
    }


# =============================================================================
# Dollar Adjustments
# =============================================================================

def compute_feature_adjustment(
    subject: Any,
    comparable: Any,
    feature: Union[Feature, str],
    rates: AdjustmentRates = DEFAULT_ADJUSTMENT_RATES,
    overrides: Optional[AdjustmentOverrides] = None,
) -> Optional[FeatureAdjustment]:
    """
    Dollar adjustment for one feature of one comparable.

    A non-None override for (comparable id, feature) is returned
    verbatim. Otherwise the adjustment follows the module sign
    convention; pool is a flat amount gated on presence. The value is
    None when either side lacks the feature.

    feature may be a Feature or its name ("sqft", "bedrooms", ...).
    Unknown names give None.
    """
    if not isinstance(feature, Feature):
        named = Feature.from_string(feature)
        if named is None:
            logger.debug("No adjustment for unknown feature %r", feature)
            return None
        feature = named

    if overrides is not None:
        override = overrides.get(resolve_id(comparable), feature)
        if override is not None:
            return FeatureAdjustment(feature=feature, value=override, overridden=True)

    resolver = FEATURE_RESOLVERS[feature]
    subject_value = resolver(subject)
    comp_value = resolver(comparable)
    if subject_value is None or comp_value is None:
        return FeatureAdjustment(feature=feature, value=None)

    rate = rates.rate_for(feature)
    if feature == Feature.POOL:
        difference = int(subject_value) - int(comp_value)
    else:
        difference = subject_value - comp_value

    value = difference * rate
    if not math.isfinite(value):
        return FeatureAdjustment(feature=feature, value=None)
    return FeatureAdjustment(feature=feature, value=value)


def list_custom_adjustments(
    comparable_id: Optional[str],
    overrides: Optional[AdjustmentOverrides],
) -> List[CustomAdjustment]:
    """Custom adjustment lines for a comparable, or an empty list."""
    if overrides is None:
        return []
    return overrides.custom_for(comparable_id)


def compute_comparable_adjustments(
    subject: Any,
    comparable: Any,
    rates: AdjustmentRates = DEFAULT_ADJUSTMENT_RATES,
    overrides: Optional[AdjustmentOverrides] = None,
) -> ComparableAdjustments:
    """
    Every adjustment line for one comparable.

    Returns:
        ComparableAdjustments with feature lines in display order, custom
        lines, and the comparable's resolved price as the base for the
        informational adjusted price.
    """
    comparable_id = resolve_id(comparable)
    return ComparableAdjustments(
        comparable_id=comparable_id,
        features=[
            compute_feature_adjustment(subject, comparable, feature, rates, overrides)
            for feature in ADJUSTED_FEATURES
        ],
        custom=list_custom_adjustments(comparable_id, overrides),
        base_price=resolve_price(comparable),
    )
