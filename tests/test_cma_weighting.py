"""
Tests for comp reliability weighting

Verifies:
- Weight stays within [0.01, 1.0]
- Recency, proximity and adjustment-size decay
- Missing inputs skip their factor instead of penalising
- Injected reference date makes results deterministic
"""

import math
import pytest
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.cma import calculate_comp_weight
from core.cma.weighting import (
    MIN_WEIGHT,
    MAX_WEIGHT,
    days_between,
)


@pytest.fixture
def reference_date():
    """Fixed reference date for deterministic tests."""
    return date(2024, 6, 1)


def weight(reference_date, days_ago=None, distance_km=0.0, total_adjustment=0, price=None):
    sold_date = reference_date - timedelta(days=days_ago) if days_ago is not None else None
    return calculate_comp_weight(
        sold_date=sold_date,
        distance_km=distance_km,
        total_adjustment=total_adjustment,
        sale_price=price,
        reference_date=reference_date,
    )


class TestNeutralInputs:
    """No information means no penalty."""

    def test_no_date_no_distance_no_price(self, reference_date):
        assert weight(reference_date) == 1.0

    def test_sold_today(self, reference_date):
        assert weight(reference_date, days_ago=0) == 1.0

    def test_sold_after_reference_not_rewarded(self, reference_date):
        assert weight(reference_date, days_ago=-30) == 1.0

    def test_zero_price_skips_adjustment_factor(self, reference_date):
        assert weight(reference_date, total_adjustment=500000, price=0) == 1.0


class TestDecayFactors:
    """Tests for each multiplicative factor."""

    def test_recency_half_life_about_90_days(self, reference_date):
        assert weight(reference_date, days_ago=90) == pytest.approx(0.5, abs=0.01)

    def test_proximity_half_life_about_2_km(self, reference_date):
        assert weight(reference_date, distance_km=2.0) == pytest.approx(0.5, abs=0.01)

    def test_adjustment_penalty(self, reference_date):
        # 10% adjustment -> 1 - 0.2
        assert weight(reference_date, total_adjustment=50000, price=500000) == pytest.approx(0.8)

    def test_negative_adjustment_penalised_by_magnitude(self, reference_date):
        assert weight(reference_date, total_adjustment=-50000, price=500000) == pytest.approx(0.8)

    def test_adjustment_penalty_floor(self, reference_date):
        assert weight(reference_date, total_adjustment=400000, price=500000) == pytest.approx(0.1)

    def test_factors_multiply(self, reference_date):
        expected = (
            math.exp(-0.0077 * 30)
            * math.exp(-0.35 * 1.5)
            * (1 - 2 * 0.05)
        )
        result = weight(
            reference_date, days_ago=30, distance_km=1.5, total_adjustment=25000, price=500000
        )
        assert result == pytest.approx(expected)


class TestBounds:
    """Weight is always in [0.01, 1.0]."""

    @pytest.mark.parametrize("days_ago,distance_km,adjustment,price", [
        (None, 0.0, 0, None),
        (3650, 0.0, 0, None),
        (0, 100.0, 0, None),
        (5000, 50.0, 900000, 100000),
        (1, 0.1, 1, 1000000),
    ])
    def test_within_bounds(self, reference_date, days_ago, distance_km, adjustment, price):
        result = weight(reference_date, days_ago, distance_km, adjustment, price)
        assert MIN_WEIGHT <= result <= MAX_WEIGHT

    def test_clamped_at_minimum(self, reference_date):
        assert weight(reference_date, days_ago=1000, distance_km=20) == MIN_WEIGHT


class TestMonotonicDecay:
    """More distance or older sales always lower the weight."""

    def test_distance(self, reference_date):
        weights = [weight(reference_date, distance_km=d) for d in (0.5, 1.0, 2.0, 4.0)]
        assert weights == sorted(weights, reverse=True)
        assert len(set(weights)) == len(weights)

    def test_days_since_sold(self, reference_date):
        weights = [weight(reference_date, days_ago=d) for d in (10, 30, 90, 180)]
        assert weights == sorted(weights, reverse=True)
        assert len(set(weights)) == len(weights)


class TestReferenceDate:
    """Tests for recency measurement."""

    def test_deterministic(self, reference_date):
        first = weight(reference_date, days_ago=45, distance_km=0.8)
        second = weight(reference_date, days_ago=45, distance_km=0.8)
        assert first == second

    def test_days_between_dates(self):
        assert days_between(date(2024, 5, 2), date(2024, 6, 1)) == 30.0

    def test_days_between_mixed_date_and_datetime(self):
        end = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        assert days_between(date(2024, 5, 31), end) == pytest.approx(1.5)

    def test_days_between_clamped(self):
        assert days_between(date(2024, 6, 2), date(2024, 6, 1)) == 0.0

    def test_defaults_to_now(self):
        yesterday = datetime.now(timezone.utc) - timedelta(days=1)
        result = calculate_comp_weight(yesterday, 0.0, 0, None)
        assert result == pytest.approx(math.exp(-0.0077), abs=1e-4)
