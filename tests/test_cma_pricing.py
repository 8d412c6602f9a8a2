"""
Tests for the Price Recommendation Aggregator

Verifies:
- Empty input returns the zero recommendation
- Weighted average and standard deviation
- Band capped at +/- 5% of the weighted average
- Confidence from comp count and agreement
- External estimate passed through untouched
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.cma import (
    ComparableAnalysis,
    PropertyRecord,
    calculate_price_recommendation,
)
from core.cma.pricing import calculate_confidence


@pytest.fixture
def create_analysis():
    """Factory fixture for analysed comps with a given price and weight."""
    def _create(adjusted_price: float, weight: float = 1.0) -> ComparableAnalysis:
        return ComparableAnalysis(
            property=PropertyRecord(sold_price=adjusted_price),
            distance_km=0.0,
            adjustments=[],
            total_adjustment=0,
            adjusted_price=adjusted_price,
            weight=weight,
        )
    return _create


class TestEmptyInput:
    """Tests for the degenerate no-comp case."""

    def test_zero_recommendation(self):
        result = calculate_price_recommendation([])

        assert (result.low, result.mid, result.high) == (0, 0, 0)
        assert result.weighted_avg == 0
        assert result.std_dev == 0
        assert result.confidence == 0

    def test_estimate_still_passed_through(self):
        result = calculate_price_recommendation([], estimate_value=800000, estimate_confidence=0.7)

        assert result.estimate_value == 800000
        assert result.estimate_confidence == 0.7

    def test_zero_priced_comps_fall_back(self, create_analysis):
        result = calculate_price_recommendation([create_analysis(0), create_analysis(0)])

        assert result.mid == 0
        assert result.confidence == 0


class TestWeightedStatistics:
    """Tests for weighted average, deviation and band."""

    def test_single_comp_has_no_spread(self, create_analysis):
        result = calculate_price_recommendation([create_analysis(717255, 0.4668)])

        assert result.low == result.mid == result.high == 717255
        assert result.std_dev == 0

    def test_equal_weights(self, create_analysis):
        result = calculate_price_recommendation([
            create_analysis(100000),
            create_analysis(110000),
        ])

        assert result.weighted_avg == 105000
        assert result.std_dev == 5000
        assert result.low == 100000
        assert result.mid == 105000
        assert result.high == 110000

    def test_weights_pull_average(self, create_analysis):
        result = calculate_price_recommendation([
            create_analysis(100000, weight=3.0),
            create_analysis(200000, weight=1.0),
        ])

        assert result.weighted_avg == 125000
        assert result.std_dev == 43301

    def test_spread_capped_at_five_percent(self, create_analysis):
        result = calculate_price_recommendation([
            create_analysis(500000),
            create_analysis(900000),
        ])

        assert result.mid == 700000
        assert result.low == 665000
        assert result.high == 735000
        assert result.std_dev == 200000

    @pytest.mark.parametrize("prices", [
        [400000, 1200000, 650000],
        [701000, 699000],
        [1000, 1000000],
    ])
    def test_spread_cap_property(self, create_analysis, prices):
        result = calculate_price_recommendation([create_analysis(p) for p in prices])

        assert result.mid > 0
        assert result.high - result.mid <= result.mid * 0.05 + 1
        assert result.mid - result.low <= result.mid * 0.05 + 1

    def test_estimate_does_not_change_band(self, create_analysis):
        comps = [create_analysis(100000), create_analysis(110000)]
        without = calculate_price_recommendation(comps)
        with_estimate = calculate_price_recommendation(comps, 250000, 0.9)

        assert (with_estimate.low, with_estimate.mid, with_estimate.high) == (
            without.low, without.mid, without.high
        )
        assert with_estimate.confidence == without.confidence
        assert with_estimate.estimate_value == 250000


class TestConfidence:
    """Tests for the confidence heuristic."""

    def test_single_tight_comp(self):
        # 0.5 + 0.25 * 1/6 + 0.25
        assert calculate_confidence(1, 0.0) == 0.79

    def test_saturates_at_six_comps(self):
        assert calculate_confidence(6, 0.0) == 1.0
        assert calculate_confidence(12, 0.0) == 1.0

    def test_wide_disagreement_removes_dispersion_term(self):
        assert calculate_confidence(6, 0.2) == 0.75
        assert calculate_confidence(6, 0.9) == 0.75

    def test_two_comps(self, create_analysis):
        result = calculate_price_recommendation([
            create_analysis(100000),
            create_analysis(110000),
        ])

        assert result.confidence == 0.77

    def test_bounded(self, create_analysis):
        result = calculate_price_recommendation(
            [create_analysis(p) for p in (1000, 900000, 50000, 2000000)]
        )

        assert 0 <= result.confidence <= 1
