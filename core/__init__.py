"""
CMA Engine - Core Business Logic

Comparative market analysis pipeline:
1. Distance (haversine, subject to each comp)
2. Adjustments (feature-by-feature dollar corrections)
3. Weighting (recency, proximity, adjustment size)
4. Ranking (most reliable comp first)
5. Price Recommendation (weighted band and confidence)
"""

from .cma import (
    AdjustmentCategory,
    AdjustmentOutcome,
    AdjustmentRatePreset,
    CmaEngine,
    CmaResult,
    ComparableAnalysis,
    DEFAULT_ADJUSTMENT_PRESETS,
    MarketTrendPoint,
    MissingCoordinatesPolicy,
    PriceRecommendation,
    PropertyRecord,
    ValuationEstimate,
    presets_with_overrides,
    run_cma_analysis,
)

__all__ = [
    "AdjustmentCategory",
    "AdjustmentOutcome",
    "AdjustmentRatePreset",
    "CmaEngine",
    "CmaResult",
    "ComparableAnalysis",
    "DEFAULT_ADJUSTMENT_PRESETS",
    "MarketTrendPoint",
    "MissingCoordinatesPolicy",
    "PriceRecommendation",
    "PropertyRecord",
    "ValuationEstimate",
    "presets_with_overrides",
    "run_cma_analysis",
]
