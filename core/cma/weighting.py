"""
Comp reliability weighting.

A comp starts at full weight (1.0) and is decayed multiplicatively for
age of sale, distance from the subject, and the size of the adjustments it
needed. The result never drops below MIN_WEIGHT so no comp is fully zeroed.
"""

import math
from datetime import date, datetime, time, timezone
from typing import Optional, Union


# =============================================================================
# Configuration Constants
# =============================================================================

# Exponential decay of roughly 90 days half-life
RECENCY_DECAY_PER_DAY = 0.0077

# Exponential decay of roughly 2 km half-life
PROXIMITY_DECAY_PER_KM = 0.35

# Multiplier is 1 - 2 x (|adjustment| / price), floored
ADJUSTMENT_PENALTY_SLOPE = 2.0
ADJUSTMENT_PENALTY_FLOOR = 0.1

MIN_WEIGHT = 0.01
MAX_WEIGHT = 1.0

SECONDS_PER_DAY = 86400.0

DateLike = Union[date, datetime]


def _as_datetime(value: DateLike) -> datetime:
    """Promote a date to midnight UTC; give naive datetimes UTC."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def days_between(start: DateLike, end: DateLike) -> float:
    """Fractional days from start to end, clamped at 0."""
    elapsed = _as_datetime(end) - _as_datetime(start)
    return max(0.0, elapsed.total_seconds() / SECONDS_PER_DAY)


def recency_factor(days_since_sold: float) -> float:
    return math.exp(-RECENCY_DECAY_PER_DAY * days_since_sold)


def proximity_factor(distance_km: float) -> float:
    return math.exp(-PROXIMITY_DECAY_PER_KM * distance_km)


def adjustment_factor(total_adjustment: float, price: float) -> float:
    """Penalty for comps that need large corrections relative to their price."""
    adj_percent = abs(total_adjustment) / price
    return max(ADJUSTMENT_PENALTY_FLOOR, 1 - adj_percent * ADJUSTMENT_PENALTY_SLOPE)


def calculate_comp_weight(
    sold_date: Optional[DateLike],
    distance_km: float,
    total_adjustment: float,
    sale_price: Optional[float],
    reference_date: Optional[DateLike] = None,
) -> float:
    """
    Score how much a comp should count towards the price recommendation.

    Args:
        sold_date: When the comp sold (no recency penalty if None)
        distance_km: Distance from the subject (no penalty if 0)
        total_adjustment: Sum of the comp's adjustments
        sale_price: Sold or list price (no adjustment penalty if not > 0)
        reference_date: Instant to measure recency against (default: now)

    Returns:
        Weight in [MIN_WEIGHT, MAX_WEIGHT]
    """
    weight = MAX_WEIGHT

    if sold_date is not None:
        reference = reference_date or datetime.now(timezone.utc)
        weight *= recency_factor(days_between(sold_date, reference))

    if distance_km > 0:
        weight *= proximity_factor(distance_km)

    if sale_price and sale_price > 0:
        weight *= adjustment_factor(total_adjustment, sale_price)

    return max(MIN_WEIGHT, weight)
