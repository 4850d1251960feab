"""
Data models for the CMA Comp Engine

Defines the loosely-typed listing record pulled from MLS feeds, the
adjustment configuration persisted per CMA, and the result structures
handed to the presentation layer.
"""

from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Optional


class StatusCategory(Enum):
    """
    Canonical listing status.

    Source status strings are free text; see filters.classify_status
    for the keyword precedence that maps them here.
    """
    CLOSED = "closed"
    ACTIVE = "active"
    ACTIVE_UNDER_CONTRACT = "activeUnderContract"
    PENDING = "pending"
    LEASING = "leasing"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        """Display name for status badges."""
        return _STATUS_LABELS[self]

    @classmethod
    def from_string(cls, value: str) -> Optional["StatusCategory"]:
        """Convert a category id to StatusCategory, case-insensitive."""
        if not isinstance(value, str):
            return None
        normalised = value.strip().lower()
        for member in cls:
            if member.value.lower() == normalised:
                return member
        return None


_STATUS_LABELS = {
    StatusCategory.CLOSED: "Closed",
    StatusCategory.ACTIVE: "Active",
    StatusCategory.ACTIVE_UNDER_CONTRACT: "Under Contract",
    StatusCategory.PENDING: "Pending",
    StatusCategory.LEASING: "Leasing",
    StatusCategory.UNKNOWN: "Unknown",
}

# Filter id meaning "no status filtering"
ALL_STATUSES = "all"


class FeatureKind(Enum):
    """How a feature difference is measured."""
    COUNT = "count"
    CONTINUOUS = "continuous"
    PRESENCE = "presence"


class Feature(Enum):
    """
    Adjustable property features.

    Values double as the keys used in persisted overrides.
    """
    SQFT = "sqft"
    BEDROOMS = "beds"
    BATHROOMS = "baths"
    POOL = "pool"
    GARAGE = "garage"
    YEAR_BUILT = "yearBuilt"
    LOT_SIZE = "lotSize"

    @property
    def kind(self) -> FeatureKind:
        return _FEATURE_KINDS[self]

    @classmethod
    def from_string(cls, value: str) -> Optional["Feature"]:
        """Convert string to Feature, accepting common aliases."""
        if not isinstance(value, str):
            return None
        normalised = value.strip().lower().replace("_", "").replace(" ", "")
        return _FEATURE_ALIASES.get(normalised)


_FEATURE_KINDS = {
    Feature.SQFT: FeatureKind.CONTINUOUS,
    Feature.BEDROOMS: FeatureKind.COUNT,
    Feature.BATHROOMS: FeatureKind.COUNT,
    Feature.POOL: FeatureKind.PRESENCE,
    Feature.GARAGE: FeatureKind.COUNT,
    Feature.YEAR_BUILT: FeatureKind.COUNT,
    Feature.LOT_SIZE: FeatureKind.CONTINUOUS,
}

_FEATURE_ALIASES = {
    "sqft": Feature.SQFT,
    "livingarea": Feature.SQFT,
    "area": Feature.SQFT,
    "beds": Feature.BEDROOMS,
    "bedrooms": Feature.BEDROOMS,
    "baths": Feature.BATHROOMS,
    "bathrooms": Feature.BATHROOMS,
    "pool": Feature.POOL,
    "garage": Feature.GARAGE,
    "garagespaces": Feature.GARAGE,
    "yearbuilt": Feature.YEAR_BUILT,
    "lotsize": Feature.LOT_SIZE,
    "lot": Feature.LOT_SIZE,
}


class Direction(Enum):
    """Neutral direction of a difference. Colour policy is the caller's."""
    UP = "up"
    DOWN = "down"


class SuggestedPriceState(Enum):
    """Lifecycle of the suggested list price."""
    COMPUTED = "computed"
    EDITED = "edited"
    REVERTED = "reverted"


# Map of camelCase MLS keys to PropertyRecord attributes
_RECORD_KEY_MAP = {
    "id": "id",
    "mlsNumber": "id",
    "address": "address",
    "price": "price",
    "listPrice": "list_price",
    "originalPrice": "original_price",
    "soldPrice": "sold_price",
    "sqft": "sqft",
    "livingArea": "living_area",
    "lotSize": "lot_size",
    "lotSizeAcres": "lot_size_acres",
    "beds": "beds",
    "baths": "baths",
    "garageSpaces": "garage_spaces",
    "garage": "garage",
    "yearBuilt": "year_built",
    "pool": "pool",
    "status": "status",
    "daysOnMarket": "days_on_market",
    "listDate": "list_date",
    "soldDate": "sold_date",
    "pricePerSqft": "price_per_sqft",
}


@dataclass
class PropertyRecord:
    """
    One listing as delivered by the MLS feed.

    Every field is optional because source data is inconsistent. Values
    are kept as received; the field resolver decides what is usable.
    A subject property has the same shape and differs only by role.
    """
    id: Optional[str] = None
    address: Optional[str] = None

    # Pricing
    price: Any = None
    list_price: Any = None
    original_price: Any = None
    sold_price: Any = None

    # Size
    sqft: Any = None
    living_area: Any = None
    lot_size: Any = None  # square feet
    lot_size_acres: Any = None

    # Physical
    beds: Any = None
    baths: Any = None
    garage_spaces: Any = None
    garage: Any = None
    year_built: Any = None
    pool: Any = None

    # Market
    status: Optional[str] = None
    days_on_market: Any = None
    list_date: Optional[str] = None
    sold_date: Optional[str] = None

    # Precomputed by the source, may be stale
    price_per_sqft: Any = None

    # Source keys with no canonical attribute
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PropertyRecord":
        """Build a record from an MLS payload, camelCase or snake_case."""
        known = {f.name for f in fields(cls)} - {"extra"}
        values: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in data.items():
            attr = _RECORD_KEY_MAP.get(key, key)
            if attr in known and attr not in values:
                values[attr] = value
            else:
                extra[key] = value
        if values.get("id") is not None:
            values["id"] = str(values["id"])
        return cls(extra=extra, **values)


# Role alias; the subject is shaped like any other listing
SubjectProperty = PropertyRecord


@dataclass(frozen=True)
class AdjustmentRates:
    """
    Per-unit dollar values used to adjust comparables.

    Created with defaults, edited by the agent and persisted per CMA.
    Any supplied rate is treated as authoritative.
    """
    sqft_per_unit: float = 50.0
    bedroom_value: float = 10_000.0
    bathroom_value: float = 7_500.0
    pool_value: float = 25_000.0
    garage_per_space: float = 5_000.0
    year_built_per_year: float = 1_000.0
    lot_size_per_sqft: float = 2.0

    def rate_for(self, feature: Feature) -> float:
        """Per-unit rate applied to a feature difference."""
        return getattr(self, _RATE_FIELDS[feature])

    def with_updates(self, **changes: float) -> "AdjustmentRates":
        """Return a copy with some rates replaced."""
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdjustmentRates":
        """
        Load persisted rates. Missing keys keep their defaults.

        Raises:
            ValueError: If a supplied rate is not numeric.
        """
        values = {}
        for key, attr in _RATE_KEYS.items():
            raw = data.get(key, data.get(attr))
            if raw is None:
                continue
            try:
                values[attr] = float(raw)
            except (TypeError, ValueError):
                raise ValueError(f"Adjustment rate {key} must be numeric: {raw!r}")
        return cls(**values)

    def to_dict(self) -> dict:
        """Convert to the camelCase dict persisted with a CMA."""
        return {key: getattr(self, attr) for key, attr in _RATE_KEYS.items()}


_RATE_KEYS = {
    "sqftPerUnit": "sqft_per_unit",
    "bedroomValue": "bedroom_value",
    "bathroomValue": "bathroom_value",
    "poolValue": "pool_value",
    "garagePerSpace": "garage_per_space",
    "yearBuiltPerYear": "year_built_per_year",
    "lotSizePerSqft": "lot_size_per_sqft",
}

_RATE_FIELDS = {
    Feature.SQFT: "sqft_per_unit",
    Feature.BEDROOMS: "bedroom_value",
    Feature.BATHROOMS: "bathroom_value",
    Feature.POOL: "pool_value",
    Feature.GARAGE: "garage_per_space",
    Feature.YEAR_BUILT: "year_built_per_year",
    Feature.LOT_SIZE: "lot_size_per_sqft",
}

DEFAULT_ADJUSTMENT_RATES = AdjustmentRates()


@dataclass(frozen=True)
class CustomAdjustment:
    """A free-form adjustment line, e.g. ("Updated kitchen", 15000)."""
    name: str
    value: float

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value}


@dataclass
class ComparableOverrides:
    """Overrides for a single comparable. None means use the computed value."""
    values: Dict[Feature, Optional[float]] = field(default_factory=dict)
    custom: List[CustomAdjustment] = field(default_factory=list)

    def get(self, feature: Feature) -> Optional[float]:
        return self.values.get(feature)

    @property
    def is_empty(self) -> bool:
        return not self.custom and all(v is None for v in self.values.values())


class AdjustmentOverrides:
    """
    Per-comparable adjustment overrides, keyed by comparable id.

    A non-None override fully replaces the computed adjustment for that
    feature on that comparable.
    """

    def __init__(self, entries: Optional[Dict[str, ComparableOverrides]] = None):
        self._entries: Dict[str, ComparableOverrides] = dict(entries or {})

    def for_comparable(self, comparable_id: Optional[str]) -> Optional[ComparableOverrides]:
        if comparable_id is None:
            return None
        return self._entries.get(str(comparable_id))

    def get(self, comparable_id: Optional[str], feature: Feature) -> Optional[float]:
        entry = self.for_comparable(comparable_id)
        if entry is None:
            return None
        return entry.get(feature)

    def set_override(self, comparable_id: str, feature: Feature, value: Optional[float]) -> None:
        """Set (or with None, clear) the override for one feature."""
        entry = self._entries.setdefault(str(comparable_id), ComparableOverrides())
        entry.values[feature] = value

    def clear_override(self, comparable_id: str, feature: Feature) -> None:
        self.set_override(comparable_id, feature, None)

    def add_custom(self, comparable_id: str, name: str, value: float) -> CustomAdjustment:
        adjustment = CustomAdjustment(name=name, value=value)
        entry = self._entries.setdefault(str(comparable_id), ComparableOverrides())
        entry.custom.append(adjustment)
        return adjustment

    def remove_custom(self, comparable_id: str, name: str) -> bool:
        """Remove custom lines by name. Returns whether anything was removed."""
        entry = self.for_comparable(comparable_id)
        if entry is None:
            return False
        kept = [c for c in entry.custom if c.name != name]
        removed = len(kept) != len(entry.custom)
        entry.custom = kept
        return removed

    def custom_for(self, comparable_id: Optional[str]) -> List[CustomAdjustment]:
        entry = self.for_comparable(comparable_id)
        if entry is None:
            return []
        return list(entry.custom)

    def __contains__(self, comparable_id: object) -> bool:
        return str(comparable_id) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdjustmentOverrides":
        """
        Load persisted overrides.

        Expected shape: {comp_id: {"sqft": -5000, "beds": None,
        "custom": [{"name": "...", "value": 1000}]}}

        Raises:
            ValueError: If an override or custom value is not numeric.
        """
        entries: Dict[str, ComparableOverrides] = {}
        for comparable_id, raw in (data or {}).items():
            entry = ComparableOverrides()
            for key, value in (raw or {}).items():
                if key == "custom":
                    for item in value or []:
                        entry.custom.append(
                            CustomAdjustment(
                                name=str(item.get("name", "")),
                                value=_to_number(item.get("value"), key),
                            )
                        )
                    continue
                feature = Feature.from_string(key)
                if feature is None:
                    continue
                entry.values[feature] = None if value is None else _to_number(value, key)
            entries[str(comparable_id)] = entry
        return cls(entries)

    def to_dict(self) -> dict:
        """Convert to the dict persisted with a CMA."""
        result = {}
        for comparable_id, entry in self._entries.items():
            item: Dict[str, Any] = {f.value: v for f, v in entry.values.items()}
            item["custom"] = [c.to_dict() for c in entry.custom]
            result[comparable_id] = item
        return result


def _to_number(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Override {key} must be numeric: {value!r}")


@dataclass(frozen=True)
class ValueRange:
    min: float = 0
    max: float = 0


@dataclass(frozen=True)
class StatMetric:
    """
    Range, average and median of one metric across a comparable set.

    An all-zero metric with count 0 means "no data", not a real zero.
    """
    range: ValueRange = field(default_factory=ValueRange)
    average: float = 0
    median: float = 0
    count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    def to_dict(self) -> dict:
        return {
            "range": {"min": self.range.min, "max": self.range.max},
            "average": self.average,
            "median": self.median,
            "count": self.count,
        }


@dataclass(frozen=True)
class MarketStatistics:
    """Per-metric statistics over one filtered comparable set."""
    price: StatMetric
    price_per_sqft: StatMetric
    days_on_market: StatMetric
    comp_count: int = 0
    list_to_sale_ratio: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "price": self.price.to_dict(),
            "price_per_sqft": self.price_per_sqft.to_dict(),
            "days_on_market": self.days_on_market.to_dict(),
            "comp_count": self.comp_count,
            "list_to_sale_ratio": self.list_to_sale_ratio,
        }


@dataclass(frozen=True)
class ComparisonIndicator:
    """Direction and size of a comparable-vs-subject difference."""
    direction: Direction
    magnitude: float

    def to_dict(self) -> dict:
        return {"direction": self.direction.value, "magnitude": self.magnitude}


@dataclass(frozen=True)
class MarketDelta:
    """How the subject compares to the comp-set average for one metric."""
    subject_value: float
    market_average: float
    absolute: float
    percent: float

    @property
    def direction(self) -> Optional[Direction]:
        if self.absolute > 0:
            return Direction.UP
        if self.absolute < 0:
            return Direction.DOWN
        return None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class MarketDeltas:
    price: Optional[MarketDelta] = None
    price_per_sqft: Optional[MarketDelta] = None

    def to_dict(self) -> dict:
        return {
            "price": self.price.to_dict() if self.price else None,
            "price_per_sqft": self.price_per_sqft.to_dict() if self.price_per_sqft else None,
        }


@dataclass(frozen=True)
class FeatureAdjustment:
    """
    Dollar adjustment for one feature on one comparable.

    value is None when the feature is missing on either side.
    """
    feature: Feature
    value: Optional[float]
    overridden: bool = False

    def to_dict(self) -> dict:
        return {
            "feature": self.feature.value,
            "value": self.value,
            "overridden": self.overridden,
        }


@dataclass
class ComparableAdjustments:
    """All adjustment lines for one comparable."""
    comparable_id: Optional[str]
    features: List[FeatureAdjustment] = field(default_factory=list)
    custom: List[CustomAdjustment] = field(default_factory=list)
    base_price: Optional[float] = None

    @property
    def total(self) -> float:
        """Sum of every known feature line and custom line."""
        total = sum(a.value for a in self.features if a.value is not None)
        return total + sum(c.value for c in self.custom)

    @property
    def adjusted_price(self) -> Optional[float]:
        """Comparable price after adjustments. Informational only."""
        if self.base_price is None:
            return None
        return self.base_price + self.total

    def get(self, feature: Feature) -> Optional[FeatureAdjustment]:
        for adjustment in self.features:
            if adjustment.feature == feature:
                return adjustment
        return None

    def to_dict(self) -> dict:
        return {
            "comparable_id": self.comparable_id,
            "features": [a.to_dict() for a in self.features],
            "custom": [c.to_dict() for c in self.custom],
            "total": self.total,
            "base_price": self.base_price,
            "adjusted_price": self.adjusted_price,
        }


@dataclass
class ValuationResult:
    """
    Everything the presentation layer needs for a CMA.

    suggested_price is None when there is no data to price from.
    """
    statistics: MarketStatistics
    deltas: MarketDeltas
    computed_price: Optional[int]
    status_filter: str = ALL_STATUSES

    # Suggested price as shown, after any user edit
    suggested_price: Optional[int] = None
    price_state: SuggestedPriceState = SuggestedPriceState.COMPUTED
    original_price: Optional[int] = None

    adjustments: List[ComparableAdjustments] = field(default_factory=list)
    indicators: Dict[str, Dict[str, Optional[ComparisonIndicator]]] = field(default_factory=dict)

    @property
    def comps_used(self) -> int:
        return self.statistics.comp_count

    @property
    def adjustment_factor(self) -> Optional[float]:
        """Suggested price relative to the average comparable price."""
        average = self.statistics.price.average
        if self.suggested_price is None or self.statistics.price.is_empty or average <= 0:
            return None
        return self.suggested_price / average

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "statistics": self.statistics.to_dict(),
            "deltas": self.deltas.to_dict(),
            "computed_price": self.computed_price,
            "suggested_price": self.suggested_price,
            "price_state": self.price_state.value,
            "original_price": self.original_price,
            "status_filter": self.status_filter,
            "comps_used": self.comps_used,
            "adjustment_factor": self.adjustment_factor,
            "adjustments": [a.to_dict() for a in self.adjustments],
            "indicators": {
                comp_id: {
                    name: (ind.to_dict() if ind else None)
                    for name, ind in features.items()
                }
                for comp_id, features in self.indicators.items()
            },
        }
