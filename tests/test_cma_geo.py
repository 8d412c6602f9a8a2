"""
Tests for great-circle distance between properties.
"""

import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.cma import PropertyRecord, haversine_distance_km, distance_between, has_coordinates


TORONTO = (43.70, -79.40)
NEARBY = (43.71, -79.41)


class TestHaversine:
    """Tests for the raw haversine formula."""

    def test_same_point_is_zero(self):
        assert haversine_distance_km(*TORONTO, *TORONTO) == 0.0

    def test_symmetric(self):
        forward = haversine_distance_km(*TORONTO, *NEARBY)
        backward = haversine_distance_km(*NEARBY, *TORONTO)
        assert forward == pytest.approx(backward)

    def test_known_short_distance(self):
        """0.01 degree step in each axis near Toronto is about 1.37 km."""
        assert haversine_distance_km(*TORONTO, *NEARBY) == pytest.approx(1.372, abs=0.01)

    def test_one_degree_latitude(self):
        """One degree of latitude on a 6371 km sphere is ~111.19 km."""
        assert haversine_distance_km(0, 0, 1, 0) == pytest.approx(111.195, abs=0.01)

    def test_non_negative(self):
        assert haversine_distance_km(-33.86, 151.21, 51.50, -0.14) > 0


class TestDistanceBetween:
    """Tests for record-level distance with missing coordinates."""

    def test_both_geocoded(self):
        subject = PropertyRecord(latitude=TORONTO[0], longitude=TORONTO[1])
        comp = PropertyRecord(latitude=NEARBY[0], longitude=NEARBY[1])

        assert distance_between(subject, comp) == pytest.approx(
            haversine_distance_km(*TORONTO, *NEARBY)
        )

    def test_comp_without_coordinates_is_colocated(self):
        subject = PropertyRecord(latitude=TORONTO[0], longitude=TORONTO[1])
        comp = PropertyRecord()

        assert distance_between(subject, comp) == 0.0

    def test_subject_without_coordinates_is_colocated(self):
        subject = PropertyRecord()
        comp = PropertyRecord(latitude=NEARBY[0], longitude=NEARBY[1])

        assert distance_between(subject, comp) == 0.0

    def test_partial_coordinates_count_as_missing(self):
        subject = PropertyRecord(latitude=TORONTO[0], longitude=TORONTO[1])
        comp = PropertyRecord(latitude=NEARBY[0])

        assert not has_coordinates(comp)
        assert distance_between(subject, comp) == 0.0
