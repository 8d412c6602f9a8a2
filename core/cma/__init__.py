"""
CMA Engine

Comparative market analysis for pricing a subject property against a
small set of comparable sold properties: distance, feature adjustments,
reliability weighting and a weighted price band with confidence.

Pure computation: no data fetching, persistence or rendering.
"""

from .models import (
    AdjustmentCategory,
    AdjustmentOutcome,
    AdjustmentRatePreset,
    CmaResult,
    ComparableAnalysis,
    DEFAULT_ADJUSTMENT_PRESETS,
    MarketTrendPoint,
    MissingCoordinatesPolicy,
    PriceRecommendation,
    PropertyRecord,
    ValuationEstimate,
    presets_with_overrides,
)
from .geo import haversine_distance_km, distance_between, has_coordinates
from .adjustments import (
    calculate_adjustments,
    total_adjustment,
    adjusted_price,
    is_basement_finished,
    has_pool,
)
from .weighting import calculate_comp_weight
from .pricing import calculate_price_recommendation
from .engine import CmaEngine, run_cma_analysis

__all__ = [
    # Models
    "AdjustmentCategory",
    "AdjustmentOutcome",
    "AdjustmentRatePreset",
    "CmaResult",
    "ComparableAnalysis",
    "DEFAULT_ADJUSTMENT_PRESETS",
    "MarketTrendPoint",
    "MissingCoordinatesPolicy",
    "PriceRecommendation",
    "PropertyRecord",
    "ValuationEstimate",
    "presets_with_overrides",
    # Distance
    "haversine_distance_km",
    "distance_between",
    "has_coordinates",
    # Adjustments
    "calculate_adjustments",
    "total_adjustment",
    "adjusted_price",
    "is_basement_finished",
    "has_pool",
    # Weighting and pricing
    "calculate_comp_weight",
    "calculate_price_recommendation",
    # Engine
    "CmaEngine",
    "run_cma_analysis",
]

__version__ = "1.0"
