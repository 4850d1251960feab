"""
Valuation Engine for the CMA Comp Engine

Implements:
- Per-metric statistics over a status-filtered comparable set
- Subject vs market deltas
- Suggested list price derivation
- Per-comparable adjustments and comparison indicators

Feature adjustments are informational. They are reported next to each
comparable but do not feed the suggested price.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Sequence, Union

from .adjustments import (
    INDICATOR_THRESHOLD_PCT,
    compare_features,
    compute_comparable_adjustments,
)
from .fields import (
    resolve_id,
    resolve_living_area,
    resolve_price,
    resolve_price_per_sqft,
    to_number,
)
from .filters import classify_record, filter_by_status
from .models import (
    ALL_STATUSES,
    AdjustmentOverrides,
    AdjustmentRates,
    ComparableAdjustments,
    ComparisonIndicator,
    DEFAULT_ADJUSTMENT_RATES,
    MarketDelta,
    MarketDeltas,
    MarketStatistics,
    StatMetric,
    StatusCategory,
    ValuationResult,
)
from .statistics import compute_market_statistics, mean
from .suggested_price import SuggestedPrice


logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return int(math.floor(value + 0.5))


def _whole_dollars(value: float) -> Optional[int]:
    if not math.isfinite(value):
        logger.warning("Derived price %s is out of range, no suggested price", value)
        return None
    return round_half_up(value)


# =============================================================================
# Suggested Price
# =============================================================================

def derive_computed_price(
    subject: Any,
    comparables: Sequence[Any],
    authoritative_price: Any = None,
) -> Optional[int]:
    """
    Derive the suggested list price from the comparables.

    Order:
    1. A valid authoritative price from an upstream valuation wins as is.
    2. No comparables: None.
    3. Subject has a living area and closed comparables have a price per
       sqft: mean closed price per sqft x subject area.
    4. Otherwise the mean resolved price of every comparable.
    5. No valid prices at all: None.

    Args:
        subject: The property being priced
        comparables: Every comparable on the CMA, regardless of status
        authoritative_price: Optional externally supplied price

    Returns:
        Price rounded to the nearest dollar, or None
    """
    upstream = to_number(authoritative_price)
    if upstream is not None and upstream > 0:
        return int(upstream) if upstream.is_integer() else upstream

    if not comparables:
        return None

    subject_area = resolve_living_area(subject)
    if subject_area is not None:
        closed_ppsf = [
            ppsf
            for ppsf in (
                resolve_price_per_sqft(c)
                for c in comparables
                if classify_record(c) == StatusCategory.CLOSED
            )
            if ppsf is not None
        ]
        if closed_ppsf:
            average_ppsf = mean(closed_ppsf)
            logger.debug(
                "Suggested price from %d closed comps at %.2f per sqft",
                len(closed_ppsf),
                average_ppsf,
            )
            return _whole_dollars(average_ppsf * subject_area)

    prices = [p for p in (resolve_price(c) for c in comparables) if p is not None]
    if not prices:
        return None

    logger.debug("Suggested price from mean of %d comparable prices", len(prices))
    return _whole_dollars(mean(prices))


# =============================================================================
# Market Deltas
# =============================================================================

def _market_delta(subject_value: Optional[float], metric: StatMetric) -> Optional[MarketDelta]:
    if subject_value is None or metric.is_empty or metric.average == 0:
        return None
    absolute = subject_value - metric.average
    percent = absolute / metric.average * 100
    if not math.isfinite(percent):
        return None
    return MarketDelta(
        subject_value=subject_value,
        market_average=metric.average,
        absolute=absolute,
        percent=percent,
    )


def compute_market_deltas(subject: Any, statistics: MarketStatistics) -> MarketDeltas:
    """
    How the subject's price and price per sqft compare to the comp-set
    averages. Each delta is None when either side has no data.
    """
    return MarketDeltas(
        price=_market_delta(resolve_price(subject), statistics.price),
        price_per_sqft=_market_delta(resolve_price_per_sqft(subject), statistics.price_per_sqft),
    )


# =============================================================================
# Engine
# =============================================================================

class CompValuationEngine:
    """
    CMA valuation pipeline.

    Pipeline order:
    1. FILTER - Restrict comparables to the requested status
    2. AGGREGATE - Price, price per sqft and DOM statistics
    3. COMPARE - Subject vs market deltas, per-comp indicators
    4. ADJUST - Per-comp feature adjustments (informational)
    5. PRICE - Suggested list price, honouring any user edit
    """

    def __init__(
        self,
        rates: Optional[AdjustmentRates] = None,
        overrides: Optional[AdjustmentOverrides] = None,
        indicator_threshold: float = INDICATOR_THRESHOLD_PCT,
    ):
        """
        Initialize valuation engine.

        Args:
            rates: Adjustment rates for this CMA (default: process defaults)
            overrides: Per-comparable adjustment overrides
            indicator_threshold: Minimum percentage difference shown for
                continuous features
        """
        self._rates = rates or DEFAULT_ADJUSTMENT_RATES
        self._overrides = overrides if overrides is not None else AdjustmentOverrides()
        self._indicator_threshold = indicator_threshold

    @classmethod
    def from_config(
        cls,
        config: Any,
        rates: Optional[AdjustmentRates] = None,
        overrides: Optional[AdjustmentOverrides] = None,
    ) -> "CompValuationEngine":
        """
        Build an engine from application config (utils.config.Config).

        Rates stored on the CMA take precedence over the config defaults.
        """
        return cls(
            rates=rates or config.adjustment_rates(),
            overrides=overrides,
            indicator_threshold=config.indicator_threshold_pct,
        )

    @property
    def rates(self) -> AdjustmentRates:
        return self._rates

    @property
    def overrides(self) -> AdjustmentOverrides:
        return self._overrides

    def compute_statistics(
        self,
        comparables: Sequence[Any],
        status_filter: Union[str, StatusCategory, None] = ALL_STATUSES,
    ) -> MarketStatistics:
        """Statistics over the comparables matching status_filter."""
        return compute_market_statistics(filter_by_status(comparables, status_filter))

    def compare(self, subject: Any, comparable: Any) -> Dict[str, Optional[ComparisonIndicator]]:
        """Feature indicators for one comparable."""
        return compare_features(subject, comparable, threshold_pct=self._indicator_threshold)

    def compute_adjustments(self, subject: Any, comparable: Any) -> ComparableAdjustments:
        """Dollar adjustments for one comparable using this CMA's rates and overrides."""
        return compute_comparable_adjustments(subject, comparable, self._rates, self._overrides)

    def derive_price(
        self,
        subject: Any,
        comparables: Sequence[Any],
        authoritative_price: Any = None,
    ) -> Optional[int]:
        return derive_computed_price(subject, comparables, authoritative_price)

    def valuate(
        self,
        subject: Any,
        comparables: Sequence[Any],
        status_filter: Union[str, StatusCategory, None] = ALL_STATUSES,
        authoritative_price: Any = None,
        price_state: Optional[SuggestedPrice] = None,
    ) -> ValuationResult:
        """
        Perform complete CMA valuation for a subject property.

        Args:
            subject: The property being priced
            comparables: Every comparable on the CMA
            status_filter: Status category for statistics, adjustments
                and indicators ("all" for everything)
            authoritative_price: Optional upstream suggested price
            price_state: The CMA's SuggestedPrice session. It receives
                the recomputed price and keeps any user edit.

        Returns:
            ValuationResult
        """
        comps = list(comparables)
        filtered = filter_by_status(comps, status_filter)

        # Step 1: Statistics over the filtered set
        statistics = compute_market_statistics(filtered)

        # Step 2: Subject vs market
        deltas = compute_market_deltas(subject, statistics)

        # Step 3: Suggested price from the full comparable set
        computed = derive_computed_price(subject, comps, authoritative_price)
        if price_state is None:
            price_state = SuggestedPrice(computed)
        else:
            price_state.recompute(computed)

        # Step 4: Per-comparable adjustments and indicators
        adjustments: List[ComparableAdjustments] = []
        indicators: Dict[str, Dict[str, Optional[ComparisonIndicator]]] = {}
        for index, comp in enumerate(filtered):
            adjustments.append(self.compute_adjustments(subject, comp))
            key = resolve_id(comp)
            if key is None or key in indicators:
                key = f"comp-{index}"
            indicators[key] = self.compare(subject, comp)

        logger.debug(
            "Valuated %d of %d comparables (filter=%s), computed price %s, state %s",
            len(filtered),
            len(comps),
            status_filter,
            computed,
            price_state.state.value,
        )

        return ValuationResult(
            statistics=statistics,
            deltas=deltas,
            computed_price=computed,
            status_filter=_filter_id(status_filter),
            suggested_price=price_state.value,
            price_state=price_state.state,
            original_price=price_state.original_price,
            adjustments=adjustments,
            indicators=indicators,
        )


def _filter_id(status_filter: Union[str, StatusCategory, None]) -> str:
    if status_filter is None:
        return ALL_STATUSES
    if isinstance(status_filter, StatusCategory):
        return status_filter.value
    return status_filter
