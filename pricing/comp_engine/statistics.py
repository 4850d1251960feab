"""
Statistics Aggregator for the CMA Comp Engine

Reduces per-comparable observations to range, average and median after
dropping invalid values.
"""

import math
from typing import Any, Iterable, List, Optional, Sequence

from .fields import (
    resolve_days_on_market,
    resolve_list_price,
    resolve_price,
    resolve_price_per_sqft,
    resolve_sold_price,
    to_number,
)
from .filters import classify_record
from .models import MarketStatistics, StatMetric, StatusCategory, ValueRange


def valid_observations(values: Iterable[Any], allow_zero: bool = False) -> List[float]:
    """
    Keep only usable observations.

    Price and area metrics need values strictly above zero; day counts
    (allow_zero=True) accept zero.
    """
    result = []
    for value in values:
        number = to_number(value)
        if number is None:
            continue
        if number > 0 or (allow_zero and number == 0):
            result.append(number)
    return result


def median(sorted_values: Sequence[float]) -> float:
    """Median of an already sorted, non-empty sequence."""
    n = len(sorted_values)
    mid = n // 2
    if n % 2 == 1:
        return sorted_values[mid]
    low, high = sorted_values[mid - 1], sorted_values[mid]
    total = low + high
    if math.isfinite(total):
        return total / 2
    return low + (high - low) / 2


def mean(values: Sequence[float]) -> float:
    """
    Arithmetic mean of a non-empty sequence of finite values.

    Values near the float limit are scaled before summing when the
    plain sum overflows; the result never exceeds the largest value.
    """
    n = len(values)
    total = sum(values)
    if math.isfinite(total):
        return total / n
    return min(sum(v / n for v in values), max(values))


def compute_metric(values: Iterable[Any], allow_zero: bool = False) -> StatMetric:
    """
    Compute range, average and median for one metric.

    Args:
        values: One observation per comparable; None/NaN are allowed
        allow_zero: True for day-count metrics

    Returns:
        StatMetric. With no valid observations every field is 0 and
        count is 0, which callers must read as "insufficient data".
    """
    observations = sorted(valid_observations(values, allow_zero=allow_zero))
    if not observations:
        return StatMetric()

    return StatMetric(
        range=ValueRange(min=observations[0], max=observations[-1]),
        average=mean(observations),
        median=median(observations),
        count=len(observations),
    )


def compute_list_to_sale_ratio(comparables: Iterable[Any]) -> Optional[float]:
    """
    Average sold-to-list ratio across closed comparables.

    Only comparables with both a valid sold price and a valid list price
    contribute. Returns None when none qualify.
    """
    ratios = []
    for comp in comparables:
        if classify_record(comp) != StatusCategory.CLOSED:
            continue
        sold = resolve_sold_price(comp)
        listed = resolve_list_price(comp)
        if sold is None or listed is None:
            continue
        ratio = sold / listed
        if math.isfinite(ratio):
            ratios.append(ratio)

    if not ratios:
        return None
    return mean(ratios)


def compute_market_statistics(comparables: Sequence[Any]) -> MarketStatistics:
    """
    Statistics for price, price per sqft and days on market.

    Every metric is computed over the same comparable list so the
    numbers stay consistent with each other for a given status filter.
    """
    comps = list(comparables)
    return MarketStatistics(
        price=compute_metric(resolve_price(c) for c in comps),
        price_per_sqft=compute_metric(resolve_price_per_sqft(c) for c in comps),
        days_on_market=compute_metric(
            (resolve_days_on_market(c) for c in comps), allow_zero=True
        ),
        comp_count=len(comps),
        list_to_sale_ratio=compute_list_to_sale_ratio(comps),
    )
