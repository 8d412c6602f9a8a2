"""
Price Recommendation Aggregator for the CMA engine.

Combines adjusted comp prices into a weighted price band:
- Weighted average and weighted standard deviation of adjusted prices
- Band of +/- one standard deviation, capped at +/- 5% of the average
- Confidence from comp count and agreement between comps
"""

import math
from typing import Optional, Sequence

from .adjustments import round_amount
from .models import ComparableAnalysis, PriceRecommendation


# =============================================================================
# Configuration Constants
# =============================================================================

# Band never wider than +/- 5% of the weighted average
MAX_SPREAD_RATIO = 0.05

BASE_CONFIDENCE = 0.5

# Comp-count term saturates at this many comps
CONFIDENCE_FULL_COMP_COUNT = 6
COMP_COUNT_CONFIDENCE = 0.25

# Agreement term reaches 0 once the coefficient of variation hits 20%
DISPERSION_CONFIDENCE = 0.25
DISPERSION_SENSITIVITY = 5


def empty_recommendation(
    estimate_value: Optional[float] = None,
    estimate_confidence: Optional[float] = None,
) -> PriceRecommendation:
    """Recommendation for a run with nothing usable to price from."""
    return PriceRecommendation(
        low=0,
        mid=0,
        high=0,
        weighted_avg=0,
        std_dev=0,
        confidence=0.0,
        estimate_value=estimate_value,
        estimate_confidence=estimate_confidence,
    )


def calculate_confidence(comp_count: int, coefficient_of_variation: float) -> float:
    """
    Heuristic confidence in [0, 1], two decimal places.

    Starts at 0.5, then adds up to 0.25 for comp count and up to 0.25 for
    tight agreement between comps.
    """
    confidence = BASE_CONFIDENCE
    confidence += min(comp_count / CONFIDENCE_FULL_COMP_COUNT, 1) * COMP_COUNT_CONFIDENCE
    confidence += max(0.0, 1 - coefficient_of_variation * DISPERSION_SENSITIVITY) * DISPERSION_CONFIDENCE
    confidence = min(1.0, max(0.0, confidence))
    return round(confidence, 2)


def calculate_price_recommendation(
    comparables: Sequence[ComparableAnalysis],
    estimate_value: Optional[float] = None,
    estimate_confidence: Optional[float] = None,
) -> PriceRecommendation:
    """
    Calculate the recommended price range from analysed comps.

    Args:
        comparables: Analysed comps (adjusted price and weight each)
        estimate_value: External automated-valuation estimate, display only
        estimate_confidence: Confidence of that estimate, display only

    Returns:
        PriceRecommendation (all zeros with confidence 0 if no comps)
    """
    if not comparables:
        return empty_recommendation(estimate_value, estimate_confidence)

    total_weight = sum(c.weight for c in comparables)
    if total_weight <= 0:
        return empty_recommendation(estimate_value, estimate_confidence)

    weighted_avg = sum(c.adjusted_price * c.weight for c in comparables) / total_weight
    if weighted_avg <= 0:
        return empty_recommendation(estimate_value, estimate_confidence)

    weighted_variance = sum(
        c.weight * (c.adjusted_price - weighted_avg) ** 2 for c in comparables
    ) / total_weight
    std_dev = math.sqrt(weighted_variance)

    # Price range: +/- 1 stddev, capped
    spread = min(std_dev, weighted_avg * MAX_SPREAD_RATIO)

    coefficient_of_variation = std_dev / weighted_avg

    return PriceRecommendation(
        low=round_amount(weighted_avg - spread),
        mid=round_amount(weighted_avg),
        high=round_amount(weighted_avg + spread),
        weighted_avg=round_amount(weighted_avg),
        std_dev=round_amount(std_dev),
        confidence=calculate_confidence(len(comparables), coefficient_of_variation),
        estimate_value=estimate_value,
        estimate_confidence=estimate_confidence,
    )
