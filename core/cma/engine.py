"""
CMA Orchestrator

Runs the full comparative market analysis for a subject property:
1. DISTANCE - Great-circle distance from subject to each comp
2. ADJUST - Feature-by-feature dollar adjustments per comp
3. WEIGHT - Reliability score per comp
4. RANK - Most reliable comp first (stable on ties)
5. PRICE - Weighted low/mid/high band and confidence
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Union

from utils.formatting import format_percent

from .adjustments import (
    adjusted_price,
    calculate_adjustments,
    round_amount,
    total_adjustment,
)
from .geo import distance_between, has_coordinates
from .models import (
    AdjustmentCategory,
    AdjustmentRatePreset,
    CmaResult,
    ComparableAnalysis,
    DEFAULT_ADJUSTMENT_PRESETS,
    MarketTrendPoint,
    MissingCoordinatesPolicy,
    PropertyRecord,
    ValuationEstimate,
)
from .pricing import calculate_price_recommendation
from .weighting import calculate_comp_weight


logger = logging.getLogger(__name__)

# Output precision
DISTANCE_DECIMALS = 2
WEIGHT_DECIMALS = 4


class CmaEngine:
    """
    Comparative market analysis pipeline.

    The engine holds configuration only (rate table, reference date,
    missing-coordinates policy). Each run builds fresh results and never
    modifies the records passed in.
    """

    def __init__(
        self,
        presets: Iterable[AdjustmentRatePreset] = DEFAULT_ADJUSTMENT_PRESETS,
        reference_date: Optional[Union[date, datetime]] = None,
        missing_coordinates: MissingCoordinatesPolicy = MissingCoordinatesPolicy.ASSUME_COLOCATED,
    ):
        """
        Initialize the engine.

        Args:
            presets: Adjustment rate table (default: DEFAULT_ADJUSTMENT_PRESETS)
            reference_date: Instant recency is measured against (default: now,
                evaluated per run)
            missing_coordinates: Policy for comps that cannot be geocoded
        """
        self._presets = tuple(presets)
        self._reference_date = reference_date
        self._missing_coordinates = missing_coordinates

    def analyze_comparable(
        self,
        subject: PropertyRecord,
        comp: PropertyRecord,
    ) -> ComparableAnalysis:
        """
        Analyse a single comp against the subject.

        Args:
            subject: The property being priced
            comp: The comparable property

        Returns:
            ComparableAnalysis with adjustments, adjusted price and weight
        """
        distance_km = distance_between(subject, comp)

        adjustments = calculate_adjustments(subject, comp, distance_km, self._presets)
        total_adj = total_adjustment(adjustments)
        base_price = comp.sale_price

        weight = calculate_comp_weight(
            sold_date=comp.sold_date,
            distance_km=distance_km,
            total_adjustment=total_adj,
            sale_price=base_price,
            reference_date=self._reference_date,
        )

        logger.debug(
            "Comp %s: %.2f km, %d adjustments totalling %d, weight %.4f",
            comp.mls_number or comp.street_address,
            distance_km,
            len(adjustments),
            total_adj,
            weight,
        )

        return ComparableAnalysis(
            property=comp,
            distance_km=round(distance_km, DISTANCE_DECIMALS),
            adjustments=adjustments,
            total_adjustment=total_adj,
            adjusted_price=adjusted_price(base_price, adjustments),
            weight=round(weight, WEIGHT_DECIMALS),
        )

    def run(
        self,
        subject: PropertyRecord,
        comps: Sequence[PropertyRecord],
        market_trends: Iterable[MarketTrendPoint] = (),
        estimate: Optional[ValuationEstimate] = None,
    ) -> CmaResult:
        """
        Perform a complete CMA for a subject property.

        Args:
            subject: The property being priced
            comps: Comparable properties, in the order they were entered
            market_trends: Market statistics to carry into the result
            estimate: External valuation estimate to carry into the result

        Returns:
            CmaResult with comps ordered most reliable first
        """
        usable = self._usable_comps(subject, comps)
        analyses = [self.analyze_comparable(subject, comp) for comp in usable]
        result = self.reprice(subject, analyses, market_trends, estimate)

        recommendation = result.price_recommendation
        logger.info(
            "CMA for %s: %d comps, mid %d (range %d-%d), confidence %s",
            subject.full_address or subject.mls_number or "subject",
            result.comp_count,
            recommendation.mid,
            recommendation.low,
            recommendation.high,
            format_percent(recommendation.confidence * 100, decimals=0),
        )
        return result

    def reprice(
        self,
        subject: PropertyRecord,
        comparables: Sequence[ComparableAnalysis],
        market_trends: Iterable[MarketTrendPoint] = (),
        estimate: Optional[ValuationEstimate] = None,
    ) -> CmaResult:
        """
        Rank already-analysed comps and aggregate them into a result.

        Used directly after manual overrides, so edited adjustments feed the
        price band without re-running the automatic rules.
        """
        ranked = sorted(comparables, key=lambda a: a.weight, reverse=True)

        recommendation = calculate_price_recommendation(
            ranked,
            estimate_value=estimate.value if estimate else None,
            estimate_confidence=estimate.confidence if estimate else None,
        )

        return CmaResult(
            subject_property=subject,
            comparables=ranked,
            price_recommendation=recommendation,
            market_trends=list(market_trends),
        )

    def apply_override(
        self,
        analysis: ComparableAnalysis,
        category: Union[AdjustmentCategory, str],
        amount: float,
        notes: Optional[str] = None,
    ) -> ComparableAnalysis:
        """
        Replace one adjustment's amount with a manually chosen value.

        The automatic amount is kept for reference; totals, adjusted price
        and weight are recomputed. The input analysis is not modified.

        Args:
            analysis: Existing comp analysis
            category: Category of the adjustment to override
            amount: New dollar amount
            notes: Optional reason for the override

        Returns:
            New ComparableAnalysis

        Raises:
            ValueError: If the analysis has no adjustment for the category
        """
        if not isinstance(category, AdjustmentCategory):
            resolved = AdjustmentCategory.from_string(category)
            if resolved is None:
                raise ValueError(f"Unknown adjustment category: {category}")
            category = resolved

        if analysis.adjustment_for(category) is None:
            raise ValueError(f"No {category.value} adjustment on this comparable")

        adjustments = [
            replace(adj, amount=round_amount(amount), is_manual=True, notes=notes)
            if adj.category == category else adj
            for adj in analysis.adjustments
        ]
        total_adj = total_adjustment(adjustments)
        base_price = analysis.property.sale_price

        weight = calculate_comp_weight(
            sold_date=analysis.property.sold_date,
            distance_km=analysis.distance_km,
            total_adjustment=total_adj,
            sale_price=base_price,
            reference_date=self._reference_date,
        )

        return replace(
            analysis,
            adjustments=adjustments,
            total_adjustment=total_adj,
            adjusted_price=adjusted_price(base_price, adjustments),
            weight=round(weight, WEIGHT_DECIMALS),
        )

    def _usable_comps(
        self,
        subject: PropertyRecord,
        comps: Sequence[PropertyRecord],
    ) -> List[PropertyRecord]:
        """Apply the missing-coordinates policy."""
        if self._missing_coordinates is not MissingCoordinatesPolicy.EXCLUDE:
            return list(comps)

        if not has_coordinates(subject):
            logger.warning("Subject has no coordinates; excluding all comps")
            return []

        usable = []
        for comp in comps:
            if has_coordinates(comp):
                usable.append(comp)
            else:
                logger.warning(
                    "Excluding comp %s: no coordinates",
                    comp.mls_number or comp.street_address,
                )
        return usable


def run_cma_analysis(
    subject: PropertyRecord,
    comps: Sequence[PropertyRecord],
    presets: Iterable[AdjustmentRatePreset] = DEFAULT_ADJUSTMENT_PRESETS,
    market_trends: Iterable[MarketTrendPoint] = (),
    estimate: Optional[ValuationEstimate] = None,
    reference_date: Optional[Union[date, datetime]] = None,
) -> CmaResult:
    """Run a CMA with a one-off engine."""
    engine = CmaEngine(presets=presets, reference_date=reference_date)
    return engine.run(subject, comps, market_trends=market_trends, estimate=estimate)
