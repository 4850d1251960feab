"""
Field Resolver for the CMA Comp Engine

MLS feeds disagree on field names and leave fields blank, zero or NaN.
Every "try field A, then B, then C" rule lives here so that all callers
resolve the same price, size and market values for a listing.

All resolvers are total: they return a valid number or None, and never
raise. None means "no value" and is never substituted with 0.
"""

import math
import re
from datetime import date
from typing import Any, Iterable, Mapping, Optional

SQFT_PER_ACRE = 43_560

# Canonical price precedence, used everywhere a comparable's price is read:
# sold > list > current asking > original
PRICE_FIELDS = ("soldPrice", "closePrice", "listPrice", "price", "originalPrice")
SOLD_PRICE_FIELDS = ("soldPrice", "closePrice")
LIST_PRICE_FIELDS = ("listPrice", "price", "originalPrice")
LIVING_AREA_FIELDS = ("sqft", "livingArea", "squareFeet", "buildingAreaTotal")
DAYS_ON_MARKET_FIELDS = ("daysOnMarket", "dom", "cumulativeDaysOnMarket")
PRICE_PER_SQFT_FIELDS = ("pricePerSqft", "pricePerSqFt")
LOT_SIZE_SQFT_FIELDS = ("lotSize", "lotSizeSqft", "lotSizeSquareFeet")
LOT_SIZE_ACRES_FIELDS = ("lotSizeAcres", "lotAcres")
BEDS_FIELDS = ("beds", "bedrooms", "bedroomsTotal")
BATHS_FIELDS = ("baths", "bathrooms", "bathroomsTotal")
GARAGE_FIELDS = ("garageSpaces", "garage", "parkingSpaces")
YEAR_BUILT_FIELDS = ("yearBuilt",)
POOL_FIELDS = ("pool", "hasPool", "poolPrivate")
ID_FIELDS = ("id", "mlsNumber", "listingId")

_FALSE_STRINGS = frozenset({"", "no", "n", "none", "false", "0", "off"})
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _lookup(record: Any, name: str) -> Any:
    """Read one candidate field from a mapping or an object."""
    if record is None:
        return None
    if isinstance(record, Mapping):
        value = record.get(name)
        if value is None:
            value = record.get(_snake(name))
        return value
    value = getattr(record, _snake(name), None)
    if value is None:
        value = getattr(record, name, None)
    if value is None:
        extra = getattr(record, "extra", None)
        if isinstance(extra, Mapping):
            value = extra.get(name)
    return value


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a raw field value to a finite float.

    Accepts numbers and numeric strings ("$425,000"). Booleans, NaN,
    infinities and anything unparseable give None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        cleaned = value.strip().replace(",", "").replace("$", "")
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            return None
    if not math.isfinite(number):
        return None
    return number


def _finite(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def is_valid_positive(value: Any) -> bool:
    """Valid price/area observation: a finite number strictly above zero."""
    number = to_number(value)
    return number is not None and number > 0


def is_valid_non_negative(value: Any) -> bool:
    """Valid day-count observation: a finite number at or above zero."""
    number = to_number(value)
    return number is not None and number >= 0


def _first_positive(record: Any, candidates: Iterable[str]) -> Optional[float]:
    for name in candidates:
        number = to_number(_lookup(record, name))
        if number is not None and number > 0:
            return number
    return None


def _first_non_negative(record: Any, candidates: Iterable[str]) -> Optional[float]:
    for name in candidates:
        number = to_number(_lookup(record, name))
        if number is not None and number >= 0:
            return number
    return None


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


# =============================================================================
# Core resolvers
# =============================================================================

def resolve_price(record: Any) -> Optional[float]:
    """Most meaningful current price: sold, then list, then asking, then original."""
    return _first_positive(record, PRICE_FIELDS)


def resolve_sold_price(record: Any) -> Optional[float]:
    """Closing price only, or None for listings that have not sold."""
    return _first_positive(record, SOLD_PRICE_FIELDS)


def resolve_list_price(record: Any) -> Optional[float]:
    """Price the listing was offered at, ignoring any sold price."""
    return _first_positive(record, LIST_PRICE_FIELDS)


def resolve_living_area(record: Any) -> Optional[float]:
    """Living area in square feet."""
    return _first_positive(record, LIVING_AREA_FIELDS)


def resolve_days_on_market(record: Any) -> Optional[float]:
    """
    Days on market.

    Falls back to the span between list date and sold date when the feed
    carries no usable day count.
    """
    days = _first_non_negative(record, DAYS_ON_MARKET_FIELDS)
    if days is not None:
        return days

    listed = _parse_date(_lookup(record, "listDate"))
    sold = _parse_date(_lookup(record, "soldDate"))
    if listed is None or sold is None or sold < listed:
        return None
    return float((sold - listed).days)


def resolve_price_per_sqft(record: Any) -> Optional[float]:
    """
    Price per square foot.

    A valid precomputed value from the source wins; otherwise it is
    derived from the resolved price and living area.
    """
    precomputed = _first_positive(record, PRICE_PER_SQFT_FIELDS)
    if precomputed is not None:
        return precomputed

    price = resolve_price(record)
    area = resolve_living_area(record)
    if price is None or area is None:
        return None
    return _finite(price / area)


# =============================================================================
# Physical features
# =============================================================================

def resolve_beds(record: Any) -> Optional[float]:
    return _first_non_negative(record, BEDS_FIELDS)


def resolve_baths(record: Any) -> Optional[float]:
    return _first_non_negative(record, BATHS_FIELDS)


def resolve_garage_spaces(record: Any) -> Optional[float]:
    return _first_non_negative(record, GARAGE_FIELDS)


def resolve_year_built(record: Any) -> Optional[float]:
    return _first_positive(record, YEAR_BUILT_FIELDS)


def resolve_pool(record: Any) -> Optional[bool]:
    """
    Whether the listing has a pool, or None when the feed does not say.

    Feeds send booleans, counts, or free text such as "Yes", "In Ground"
    or "None".
    """
    for name in POOL_FIELDS:
        value = _lookup(record, name)
        if value is None:
            continue
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() not in _FALSE_STRINGS
        number = to_number(value)
        if number is not None:
            return number > 0
    return None


def resolve_lot_size_sqft(record: Any) -> Optional[float]:
    """Lot size in square feet, converting from acres when needed."""
    sqft = _first_positive(record, LOT_SIZE_SQFT_FIELDS)
    if sqft is not None:
        return sqft
    acres = _first_positive(record, LOT_SIZE_ACRES_FIELDS)
    if acres is None:
        return None
    return _finite(acres * SQFT_PER_ACRE)


def resolve_lot_acres(record: Any) -> Optional[float]:
    """Lot size in acres, converting from square feet when needed."""
    acres = _first_positive(record, LOT_SIZE_ACRES_FIELDS)
    if acres is not None:
        return acres
    sqft = _first_positive(record, LOT_SIZE_SQFT_FIELDS)
    if sqft is None:
        return None
    return sqft / SQFT_PER_ACRE


def resolve_price_per_acre(record: Any) -> Optional[float]:
    price = resolve_price(record)
    acres = resolve_lot_acres(record)
    if price is None or acres is None:
        return None
    return _finite(price / acres)


def resolve_id(record: Any) -> Optional[str]:
    for name in ID_FIELDS:
        value = _lookup(record, name)
        if value is not None and value != "":
            return str(value)
    return None


def resolve_status(record: Any) -> Optional[str]:
    for name in ("status", "standardStatus"):
        value = _lookup(record, name)
        if isinstance(value, str):
            return value
    return None
