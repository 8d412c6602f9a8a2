"""
Great-circle distance between properties.
"""

import math

from .models import PropertyRecord


# Earth radius in km
EARTH_RADIUS_KM = 6371.0


def haversine_distance_km(
    lat1: float, lng1: float,
    lat2: float, lng2: float,
) -> float:
    """
    Calculate distance between two points in km using the Haversine formula.

    Args:
        lat1, lng1: First point coordinates (degrees)
        lat2, lng2: Second point coordinates (degrees)

    Returns:
        Distance in kilometres
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def has_coordinates(record: PropertyRecord) -> bool:
    """Whether a record can be placed on a map."""
    return record.latitude is not None and record.longitude is not None


def distance_between(subject: PropertyRecord, comp: PropertyRecord) -> float:
    """
    Distance in km between subject and comp.

    A record without coordinates is treated as colocated with the other
    (distance 0), which also removes its location adjustment and
    proximity penalty.
    """
    if not (has_coordinates(subject) and has_coordinates(comp)):
        return 0.0
    return haversine_distance_km(
        subject.latitude, subject.longitude,
        comp.latitude, comp.longitude,
    )
