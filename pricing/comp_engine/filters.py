"""
Comparable Status Filters for the CMA Comp Engine

Implements:
- Status classification (free-text MLS status -> StatusCategory)
- Status filtering for the comps grid
- Ordering of comparables by price, days on market or price per sqft
"""

import logging
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Union

from .fields import (
    resolve_days_on_market,
    resolve_price,
    resolve_price_per_sqft,
    resolve_status,
)
from .models import ALL_STATUSES, StatusCategory


logger = logging.getLogger(__name__)


# =============================================================================
# Classification Keywords
# =============================================================================

# Checked in this order; the first matching group wins.
# Leasing goes first because MLS lease codes ("lsd") and rental statuses
# would otherwise be caught by the closed/active checks.
LEASING_EXACT = ("lsd", "leased", "lease")
LEASING_TERMS = ("leasing", "for rent", "rental")
CLOSED_TERMS = ("closed", "sold")
UNDER_CONTRACT_TERMS = ("active under", "under contract")
PENDING_TERMS = ("pending",)
ACTIVE_TERMS = ("active",)


def classify_status(status: Any) -> StatusCategory:
    """
    Map a free-text status to a StatusCategory.

    Precedence: leasing, closed/sold, under contract, pending, active,
    otherwise unknown. "Active Under Contract" is therefore under
    contract, never active. Non-string input is unknown.
    """
    if not isinstance(status, str):
        return StatusCategory.UNKNOWN

    s = status.strip().lower()
    if not s:
        return StatusCategory.UNKNOWN

    if s in LEASING_EXACT or any(term in s for term in LEASING_TERMS):
        return StatusCategory.LEASING
    if any(term in s for term in CLOSED_TERMS):
        return StatusCategory.CLOSED
    if any(term in s for term in UNDER_CONTRACT_TERMS):
        return StatusCategory.ACTIVE_UNDER_CONTRACT
    if any(term in s for term in PENDING_TERMS):
        return StatusCategory.PENDING
    if any(term in s for term in ACTIVE_TERMS):
        return StatusCategory.ACTIVE
    return StatusCategory.UNKNOWN


def classify_record(record: Any) -> StatusCategory:
    """Classify the status carried by a listing record."""
    return classify_status(resolve_status(record))


def status_label(status: Any) -> str:
    """Display name for a raw status, e.g. "Active Under Contract" -> "Under Contract"."""
    category = classify_status(status)
    if category == StatusCategory.UNKNOWN and isinstance(status, str) and status.strip():
        return status.strip()
    return category.label


def filter_by_status(
    comparables: Sequence[Any],
    status_filter: Union[str, StatusCategory, None] = ALL_STATUSES,
) -> List[Any]:
    """
    Return the comparables whose status falls in the requested category.

    Args:
        comparables: Listing records
        status_filter: A StatusCategory, its id ("closed",
            "activeUnderContract", ...) or "all"

    Returns:
        The matching subset, or every comparable for "all"/None. An
        unrecognised filter matches nothing.
    """
    if status_filter is None or status_filter == ALL_STATUSES:
        return list(comparables)

    if isinstance(status_filter, StatusCategory):
        category: Optional[StatusCategory] = status_filter
    else:
        category = StatusCategory.from_string(status_filter)

    if category is None:
        logger.warning("Unrecognised status filter %r, no comparables match", status_filter)
        return []

    return [c for c in comparables if classify_record(c) == category]


# =============================================================================
# Ordering
# =============================================================================

class SortKey(Enum):
    """Orderings offered by the comps grid."""
    PRICE = "price"
    DAYS_ON_MARKET = "daysOnMarket"
    PRICE_PER_SQFT = "pricePerSqft"


_SORT_RESOLVERS: dict = {
    SortKey.PRICE: resolve_price,
    SortKey.DAYS_ON_MARKET: resolve_days_on_market,
    SortKey.PRICE_PER_SQFT: resolve_price_per_sqft,
}


def sort_comparables(
    comparables: Sequence[Any],
    key: SortKey = SortKey.PRICE,
    descending: bool = True,
) -> List[Any]:
    """
    Order comparables by a resolved metric.

    Records with no value for the metric always come last, in their
    original order, whichever direction is requested.
    """
    resolver: Callable[[Any], Optional[float]] = _SORT_RESOLVERS[key]
    with_value = []
    without_value = []
    for comp in comparables:
        value = resolver(comp)
        if value is None:
            without_value.append(comp)
        else:
            with_value.append((value, comp))

    with_value.sort(key=lambda pair: pair[0], reverse=descending)
    return [comp for _, comp in with_value] + without_value
