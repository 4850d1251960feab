"""
Tests for the Statistics Aggregator

Verifies:
- Median for odd and even counts
- Empty and all-invalid input give the all-zero "no data" metric
- Result does not depend on input order
- Day counts keep zero, price metrics drop it
- Market statistics use one comparable set for every metric
- List-to-sale ratio over closed comparables only
"""

from itertools import permutations
import math

import pytest

from pricing.comp_engine import StatMetric, compute_market_statistics, compute_metric
from pricing.comp_engine.statistics import compute_list_to_sale_ratio, valid_observations


# =============================================================================
# Test: compute_metric
# =============================================================================

class TestComputeMetric:
    """Tests for range/average/median of a single metric."""

    def test_median_odd_count(self):
        result = compute_metric([100, 200, 300])

        assert result.median == 200
        assert result.average == 200
        assert result.range.min == 100
        assert result.range.max == 300
        assert result.count == 3

    def test_median_even_count(self):
        result = compute_metric([100, 200, 300, 400])

        assert result.median == 250
        assert result.average == 250

    def test_median_differs_from_mean_with_skew(self):
        result = compute_metric([500000, 520000, 700000])

        assert result.median == 520000
        assert result.average == pytest.approx(573333.33, abs=0.01)

    def test_empty_input_is_all_zero(self):
        result = compute_metric([])

        assert result.range.min == 0
        assert result.range.max == 0
        assert result.average == 0
        assert result.median == 0
        assert result.is_empty

    def test_all_invalid_input_is_all_zero(self):
        result = compute_metric([None, float("nan")])

        assert result == StatMetric()
        assert result.is_empty

    def test_invalid_values_filtered(self):
        result = compute_metric([None, 0, -10, float("nan"), float("inf"), 300, 100])

        assert result.count == 2
        assert result.range.min == 100
        assert result.range.max == 300
        assert result.median == 200

    def test_ties_are_not_special(self):
        result = compute_metric([200, 200, 200, 100])

        assert result.median == 200
        assert result.range.min == 100

    def test_permutation_invariance(self):
        values = [310, 120, None, 450, 120, 275]
        expected = compute_metric(values)

        for ordering in permutations(values):
            assert compute_metric(list(ordering)) == expected

    def test_zero_kept_for_day_counts(self):
        result = compute_metric([0, 10, 20], allow_zero=True)

        assert result.count == 3
        assert result.range.min == 0
        assert result.median == 10

    def test_zero_dropped_for_prices(self):
        assert compute_metric([0, 10, 20]).count == 2

    def test_negative_dropped_for_day_counts(self):
        assert valid_observations([-1, 0, 5], allow_zero=True) == [0, 5]

    @pytest.mark.parametrize("values", [
        [1.7e308, 1.7e308],
        [1.7e308, 1.7e308, 1.7e308],
        [1e308, 1.7e308, 5, 1.5e308],
    ])
    def test_values_near_float_limit_stay_finite(self, values):
        result = compute_metric(values)

        assert math.isfinite(result.average)
        assert math.isfinite(result.median)
        assert result.range.min <= result.average <= result.range.max
        assert result.range.min <= result.median <= result.range.max


# =============================================================================
# Test: Market Statistics
# =============================================================================

@pytest.fixture
def mixed_comparables():
    """Comparables with the usual MLS gaps."""
    return [
        {"id": "c1", "status": "Closed", "soldPrice": 400000, "listPrice": 410000,
         "sqft": 2000, "daysOnMarket": 12},
        {"id": "c2", "status": "Sold", "soldPrice": 420000, "listPrice": 420000,
         "sqft": 2100, "daysOnMarket": 0},
        {"id": "c3", "status": "Active", "price": 450000, "sqft": 2200},
        {"id": "c4", "status": "Pending", "sqft": 1800, "daysOnMarket": 30},
    ]


class TestMarketStatistics:
    """Tests for per-metric statistics over one comparable set."""

    def test_each_metric_filters_independently(self, mixed_comparables):
        stats = compute_market_statistics(mixed_comparables)

        assert stats.comp_count == 4
        assert stats.price.count == 3
        assert stats.price.range.min == 400000
        assert stats.price.range.max == 450000
        assert stats.price_per_sqft.count == 3
        assert stats.days_on_market.count == 3
        assert stats.days_on_market.range.min == 0

    def test_price_per_sqft_values(self, mixed_comparables):
        stats = compute_market_statistics(mixed_comparables)

        # 200, 200, 204.5454...
        assert stats.price_per_sqft.median == 200
        assert stats.price_per_sqft.range.max == pytest.approx(450000 / 2200)

    def test_empty_set(self):
        stats = compute_market_statistics([])

        assert stats.comp_count == 0
        assert stats.price.is_empty
        assert stats.price_per_sqft.is_empty
        assert stats.days_on_market.is_empty
        assert stats.list_to_sale_ratio is None

    def test_to_dict(self, mixed_comparables):
        data = compute_market_statistics(mixed_comparables).to_dict()

        assert data["price"]["range"] == {"min": 400000, "max": 450000}
        assert data["comp_count"] == 4


class TestListToSaleRatio:
    """Tests for the sold-to-list ratio."""

    def test_closed_comps_only(self, mixed_comparables):
        ratio = compute_list_to_sale_ratio(mixed_comparables)

        assert ratio == pytest.approx((400000 / 410000 + 1.0) / 2)

    def test_none_without_sold_comps(self):
        comps = [{"status": "Active", "price": 450000}]

        assert compute_list_to_sale_ratio(comps) is None

    def test_closed_without_list_price_skipped(self):
        comps = [{"status": "Closed", "soldPrice": 400000}]

        assert compute_list_to_sale_ratio(comps) is None

    def test_overflowing_ratio_skipped(self):
        comps = [{"status": "Closed", "soldPrice": 1e308, "listPrice": 1e-5}]

        assert compute_list_to_sale_ratio(comps) is None
