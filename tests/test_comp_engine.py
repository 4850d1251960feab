"""
Tests for Comp Engine v1.0

Comprehensive tests verifying:
- Suggested price from closed price per sqft x subject area
- Fallback to the mean comparable price when nothing has closed
- Authoritative upstream price wins
- No comps gives no price, never zero
- Subject vs market deltas
- Status filter scopes statistics, adjustments and indicators
- User edits survive recomputation
- Deterministic results for same input
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pricing.comp_engine import (
    AdjustmentOverrides,
    CompValuationEngine,
    Direction,
    Feature,
    MarketStatistics,
    PropertyRecord,
    StatusCategory,
    SuggestedPrice,
    SuggestedPriceState,
    compute_market_deltas,
    compute_metric,
    derive_computed_price,
)
from pricing.comp_engine.valuation import round_half_up
from utils.config import Config


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def subject_property():
    """Standard subject property for testing."""
    return PropertyRecord(
        id="subject",
        address="12 Oak Lane",
        sqft=2000,
        beds=3,
        baths=2,
        pool=False,
        garage_spaces=2,
        year_built=2001,
    )


@pytest.fixture
def comparables():
    """Two closed sales at $200/sqft and one active listing."""
    return [
        {"id": "c1", "status": "Closed", "soldPrice": 400000, "listPrice": 410000,
         "sqft": 2000, "beds": 3, "baths": 2, "daysOnMarket": 21},
        {"id": "c2", "status": "Closed", "soldPrice": 420000, "listPrice": 425000,
         "sqft": 2100, "beds": 4, "baths": 2, "daysOnMarket": 9},
        {"id": "c3", "status": "Active", "price": 450000,
         "sqft": 2200, "beds": 4, "baths": 3, "daysOnMarket": 3},
    ]


@pytest.fixture
def engine():
    return CompValuationEngine()


# =============================================================================
# Test: Suggested Price Derivation
# =============================================================================

class TestDeriveComputedPrice:
    """Tests for suggested list price derivation."""

    def test_closed_price_per_sqft_times_area(self, subject_property, comparables):
        """Closed comps average $200/sqft, subject is 2000 sqft."""
        assert derive_computed_price(subject_property, comparables) == 400000

    def test_active_comps_ignored_when_closed_exist(self, subject_property, comparables):
        comparables[2]["price"] = 9_000_000

        assert derive_computed_price(subject_property, comparables) == 400000

    def test_fallback_to_mean_price_without_closed(self, subject_property):
        comps = [
            {"status": "Active", "price": 400000, "sqft": 2000},
            {"status": "Pending", "price": 420000, "sqft": 2100},
            {"status": "Active", "price": 450000, "sqft": 2200},
        ]

        assert derive_computed_price(subject_property, comps) == 423333

    def test_fallback_when_subject_has_no_area(self, comparables):
        assert derive_computed_price({"beds": 3}, comparables) == 423333

    def test_precomputed_price_per_sqft_used(self, subject_property):
        comps = [{"status": "Sold", "pricePerSqft": 250, "soldPrice": 400000, "sqft": 2000}]

        assert derive_computed_price(subject_property, comps) == 500000

    def test_rounds_half_up(self):
        subject = {"sqft": 1001}
        comps = [{"status": "Closed", "soldPrice": 401000, "sqft": 2000}]

        # 200.5 * 1001 = 200700.5
        assert derive_computed_price(subject, comps) == 200701

    def test_round_half_up_helper(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2

    def test_authoritative_price_wins(self, subject_property, comparables):
        assert derive_computed_price(subject_property, comparables, "$455,000") == 455000

    def test_invalid_authoritative_price_ignored(self, subject_property, comparables):
        assert derive_computed_price(subject_property, comparables, 0) == 400000
        assert derive_computed_price(subject_property, comparables, "tbd") == 400000

    def test_authoritative_price_without_comps(self, subject_property):
        assert derive_computed_price(subject_property, [], 455000) == 455000

    def test_no_comps_is_none(self, subject_property):
        assert derive_computed_price(subject_property, []) is None

    def test_comps_without_prices_is_none(self, subject_property):
        comps = [{"status": "Active", "sqft": 2000}, {"status": "Closed"}]

        assert derive_computed_price(subject_property, comps) is None

    def test_mean_near_float_limit_does_not_overflow(self):
        comps = [{"status": "Active", "price": 1.7e308}] * 2

        assert derive_computed_price({}, comps) == int(1.7e308)

    def test_price_beyond_float_range_is_none(self):
        subject = {"sqft": 1e300}
        comps = [{"status": "Closed", "soldPrice": 1e300, "sqft": 1}]

        assert derive_computed_price(subject, comps) is None

    def test_leased_comps_not_treated_as_closed(self, subject_property):
        comps = [
            {"status": "Leased", "price": 3000, "sqft": 2000},
            {"status": "Active", "price": 450000, "sqft": 2000},
        ]

        assert derive_computed_price(subject_property, comps) == 226500


# =============================================================================
# Test: Market Deltas
# =============================================================================

class TestMarketDeltas:
    """Tests for subject vs comp-set comparison."""

    @pytest.fixture
    def statistics(self):
        return MarketStatistics(
            price=compute_metric([400000, 600000]),
            price_per_sqft=compute_metric([200, 300]),
            days_on_market=compute_metric([]),
            comp_count=2,
        )

    def test_subject_above_market(self, statistics):
        deltas = compute_market_deltas({"price": 550000, "sqft": 2000}, statistics)

        assert deltas.price.absolute == 50000
        assert deltas.price.percent == pytest.approx(10.0)
        assert deltas.price.direction == Direction.UP
        assert deltas.price_per_sqft.subject_value == 275
        assert deltas.price_per_sqft.percent == pytest.approx(10.0)

    def test_subject_below_market(self, statistics):
        deltas = compute_market_deltas({"price": 450000}, statistics)

        assert deltas.price.direction == Direction.DOWN
        assert deltas.price.percent == pytest.approx(-10.0)
        assert deltas.price_per_sqft is None

    def test_subject_without_price(self, statistics):
        deltas = compute_market_deltas({"sqft": 2000}, statistics)

        assert deltas.price is None
        assert deltas.price_per_sqft is None

    def test_empty_market(self):
        empty = MarketStatistics(
            price=compute_metric([]),
            price_per_sqft=compute_metric([]),
            days_on_market=compute_metric([]),
        )

        deltas = compute_market_deltas({"price": 500000, "sqft": 2000}, empty)

        assert deltas.price is None
        assert deltas.to_dict() == {"price": None, "price_per_sqft": None}


# =============================================================================
# Test: Full Valuation
# =============================================================================

class TestValuate:
    """Tests for the complete valuation pipeline."""

    def test_all_statuses(self, engine, subject_property, comparables):
        result = engine.valuate(subject_property, comparables)

        assert result.comps_used == 3
        assert result.computed_price == 400000
        assert result.suggested_price == 400000
        assert result.price_state == SuggestedPriceState.COMPUTED
        assert result.original_price is None
        assert result.status_filter == "all"
        assert len(result.adjustments) == 3
        assert set(result.indicators) == {"c1", "c2", "c3"}

    def test_status_filter_scopes_statistics(self, engine, subject_property, comparables):
        result = engine.valuate(subject_property, comparables, status_filter="closed")

        assert result.comps_used == 2
        assert result.statistics.price.average == 410000
        assert result.statistics.list_to_sale_ratio == pytest.approx(
            (400000 / 410000 + 420000 / 425000) / 2
        )
        assert [a.comparable_id for a in result.adjustments] == ["c1", "c2"]
        assert result.status_filter == "closed"

    def test_status_filter_does_not_change_price(self, engine, subject_property, comparables):
        result = engine.valuate(subject_property, comparables, status_filter=StatusCategory.ACTIVE)

        assert result.comps_used == 1
        assert result.computed_price == 400000
        assert result.status_filter == "active"

    def test_unknown_filter_gives_empty_statistics(self, engine, subject_property, comparables):
        result = engine.valuate(subject_property, comparables, status_filter="foreclosure")

        assert result.comps_used == 0
        assert result.statistics.price.is_empty
        assert result.adjustments == []
        assert result.adjustment_factor is None

    def test_no_comparables(self, engine, subject_property):
        result = engine.valuate(subject_property, [])

        assert result.suggested_price is None
        assert result.computed_price is None
        assert result.statistics.price.is_empty
        assert result.deltas.price is None

    def test_indicators(self, engine, subject_property, comparables):
        result = engine.valuate(subject_property, comparables)

        assert result.indicators["c1"]["sqft"] is None
        assert result.indicators["c2"]["beds"].direction == Direction.UP
        assert result.indicators["c3"]["sqft"].magnitude == pytest.approx(10.0)

    def test_comparables_without_id_get_positional_keys(self, engine, subject_property):
        comps = [{"status": "Active", "price": 400000, "sqft": 1900}]

        result = engine.valuate(subject_property, comps)

        assert list(result.indicators) == ["comp-0"]

    def test_duplicate_ids_keep_every_comparable(self, engine, subject_property):
        comps = [
            {"id": "dup", "status": "Active", "price": 400000, "sqft": 1900},
            {"id": "dup", "status": "Active", "price": 410000, "sqft": 2300},
        ]

        result = engine.valuate(subject_property, comps)

        assert list(result.indicators) == ["dup", "comp-1"]
        assert len(result.indicators) == len(result.adjustments)
        assert result.indicators["comp-1"]["sqft"].direction == Direction.UP

    def test_adjustments_use_engine_overrides(self, subject_property, comparables):
        overrides = AdjustmentOverrides()
        overrides.set_override("c2", Feature.BEDROOMS, -4000)
        engine = CompValuationEngine(overrides=overrides)

        result = engine.valuate(subject_property, comparables)

        c2 = result.adjustments[1]
        assert c2.get(Feature.BEDROOMS).value == -4000
        assert c2.get(Feature.BEDROOMS).overridden
        # 100 sqft larger at $50
        assert c2.get(Feature.SQFT).value == -5000

    def test_adjustments_do_not_move_suggested_price(self, subject_property, comparables):
        overrides = AdjustmentOverrides()
        overrides.add_custom("c1", "Ocean view", 90000)
        engine = CompValuationEngine(overrides=overrides)

        assert engine.valuate(subject_property, comparables).suggested_price == 400000

    def test_adjustment_factor(self, engine, subject_property, comparables):
        result = engine.valuate(subject_property, comparables)

        assert result.adjustment_factor == pytest.approx(400000 / ((400000 + 420000 + 450000) / 3))

    def test_deterministic(self, engine, subject_property, comparables):
        first = engine.valuate(subject_property, comparables).to_dict()
        second = engine.valuate(subject_property, list(reversed(comparables))).to_dict()

        assert first["statistics"] == second["statistics"]
        assert first["suggested_price"] == second["suggested_price"]

    def test_to_dict(self, engine, subject_property, comparables):
        data = engine.valuate(subject_property, comparables).to_dict()

        assert data["suggested_price"] == 400000
        assert data["price_state"] == "computed"
        assert data["comps_used"] == 3
        assert data["indicators"]["c1"]["sqft"] is None
        assert data["indicators"]["c3"]["baths"] == {"direction": "up", "magnitude": 1}


class TestValuateWithEdits:
    """Tests for user edits across recomputation."""

    def test_edit_survives_recompute(self, engine, subject_property, comparables):
        price = SuggestedPrice()
        engine.valuate(subject_property, comparables, price_state=price)
        price.edit(415000)

        comparables.append({"id": "c4", "status": "Sold", "soldPrice": 500000, "sqft": 2000})
        result = engine.valuate(subject_property, comparables, price_state=price)

        assert result.suggested_price == 415000
        assert result.price_state == SuggestedPriceState.EDITED
        assert result.original_price == 400000
        assert price.computed == result.computed_price

    def test_undo_then_recompute(self, engine, subject_property, comparables):
        price = SuggestedPrice()
        engine.valuate(subject_property, comparables, price_state=price)
        price.edit(415000)
        price.undo()

        result = engine.valuate(subject_property, comparables, price_state=price)

        assert result.suggested_price == 400000
        assert result.price_state == SuggestedPriceState.COMPUTED


# =============================================================================
# Test: Configuration
# =============================================================================

class TestFromConfig:
    """Tests for building an engine from Config."""

    def test_config_rates(self):
        engine = CompValuationEngine.from_config(Config(pool_value=30000.0))

        assert engine.rates.pool_value == 30000
        assert engine.rates.bedroom_value == 10000

    def test_cma_rates_take_precedence(self):
        from pricing.comp_engine import AdjustmentRates

        rates = AdjustmentRates(pool_value=12000)
        engine = CompValuationEngine.from_config(Config(pool_value=30000.0), rates=rates)

        assert engine.rates.pool_value == 12000

    def test_config_threshold(self, subject_property):
        engine = CompValuationEngine.from_config(Config(indicator_threshold_pct=2.0))

        # 1% larger
        indicators = engine.compare(subject_property, {"sqft": 2020})

        assert indicators["sqft"] is None
