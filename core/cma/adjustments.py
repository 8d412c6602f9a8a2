"""
Adjustment Calculator for the CMA engine.

Computes per-feature dollar corrections that bring a comp's price in line
with the subject property:
- Size, bedrooms, bathrooms, lot size, garage: difference x rate
- Age: year-built difference x rate (skipped if either year is unknown)
- Basement, pool: flat +/- rate on a presence/finish mismatch
- Location: distance x rate (rate is negative by default)

Positive amounts mean the subject is better than the comp on that feature,
so the comp's price is adjusted up.
"""

import math
from typing import Callable, Dict, Iterable, List, Optional

from utils.formatting import format_quantity

from .models import (
    AdjustmentCategory,
    AdjustmentOutcome,
    AdjustmentRatePreset,
    DEFAULT_ADJUSTMENT_PRESETS,
    PropertyRecord,
)


NOT_AVAILABLE = "N/A"
NO_FEATURE = "None"

# Values that mean "no pool" in free-text MLS fields
NO_POOL_VALUES = frozenset({"", "none", "n/a"})


def round_amount(value: float) -> int:
    """Round to whole dollars, halves toward +infinity."""
    whole = math.floor(value)
    return int(whole + 1 if value - whole >= 0.5 else whole)


# =============================================================================
# Free-text Classifiers
# =============================================================================

def is_basement_finished(basement: Optional[str]) -> bool:
    """
    Classify a basement description as finished.

    Case-insensitive substring match on "finished" or "fin". Note that
    "Unfinished" also matches.
    """
    if not basement:
        return False
    lower = basement.lower()
    return "finished" in lower or "fin" in lower


def has_pool(pool: Optional[str]) -> bool:
    """Classify a pool description as present."""
    if not pool:
        return False
    return pool.lower() not in NO_POOL_VALUES


# =============================================================================
# Per-category Rules
# =============================================================================

def _value(number: Optional[float]) -> float:
    return number or 0


def _sqft_display(sqft: Optional[float]) -> str:
    return f"{format_quantity(sqft)} sqft" if sqft else NOT_AVAILABLE


def _outcome(
    category: AdjustmentCategory,
    label: str,
    subject_value: str,
    comp_value: str,
    amount: int,
) -> AdjustmentOutcome:
    return AdjustmentOutcome(
        category=category,
        label=label,
        subject_value=subject_value,
        comp_value=comp_value,
        auto_amount=amount,
        amount=amount,
        is_manual=False,
    )


def _size(subject, comp, distance_km, rate):
    diff = _value(subject.sqft) - _value(comp.sqft)
    return _outcome(
        AdjustmentCategory.SIZE, "Living Area",
        _sqft_display(subject.sqft), _sqft_display(comp.sqft),
        round_amount(diff * rate),
    )


def _bedrooms(subject, comp, distance_km, rate):
    subject_total = _value(subject.bedrooms) + _value(subject.bedrooms_plus)
    comp_total = _value(comp.bedrooms) + _value(comp.bedrooms_plus)
    return _outcome(
        AdjustmentCategory.BEDROOMS, "Bedrooms",
        format_quantity(subject_total), format_quantity(comp_total),
        round_amount((subject_total - comp_total) * rate),
    )


def _bathrooms(subject, comp, distance_km, rate):
    subject_total = _value(subject.bathrooms) + _value(subject.bathrooms_half) * 0.5
    comp_total = _value(comp.bathrooms) + _value(comp.bathrooms_half) * 0.5
    return _outcome(
        AdjustmentCategory.BATHROOMS, "Bathrooms",
        format_quantity(subject_total), format_quantity(comp_total),
        round_amount((subject_total - comp_total) * rate),
    )


def _age(subject, comp, distance_km, rate):
    if not subject.year_built or not comp.year_built:
        return None
    # Newer comp (positive diff) is adjusted down
    diff = comp.year_built - subject.year_built
    return _outcome(
        AdjustmentCategory.AGE, "Year Built",
        str(subject.year_built), str(comp.year_built),
        round_amount(diff * rate * -1),
    )


def _lot_size(subject, comp, distance_km, rate):
    diff = _value(subject.lot_sqft) - _value(comp.lot_sqft)
    return _outcome(
        AdjustmentCategory.LOT_SIZE, "Lot Size",
        _sqft_display(subject.lot_sqft), _sqft_display(comp.lot_sqft),
        round_amount(diff * rate),
    )


def _garage(subject, comp, distance_km, rate):
    diff = _value(subject.garage_spaces) - _value(comp.garage_spaces)
    return _outcome(
        AdjustmentCategory.GARAGE, "Garage Spaces",
        format_quantity(_value(subject.garage_spaces)),
        format_quantity(_value(comp.garage_spaces)),
        round_amount(diff * rate),
    )


def _presence_amount(subject_has: bool, comp_has: bool, rate: float) -> int:
    if subject_has and not comp_has:
        return round_amount(rate)
    if comp_has and not subject_has:
        return round_amount(-rate)
    return 0


def _basement(subject, comp, distance_km, rate):
    return _outcome(
        AdjustmentCategory.BASEMENT, "Basement",
        subject.basement or NO_FEATURE, comp.basement or NO_FEATURE,
        _presence_amount(
            is_basement_finished(subject.basement),
            is_basement_finished(comp.basement),
            rate,
        ),
    )


def _pool(subject, comp, distance_km, rate):
    return _outcome(
        AdjustmentCategory.POOL, "Pool",
        subject.pool or NO_FEATURE, comp.pool or NO_FEATURE,
        _presence_amount(has_pool(subject.pool), has_pool(comp.pool), rate),
    )


def _location(subject, comp, distance_km, rate):
    if distance_km <= 0:
        return None
    return _outcome(
        AdjustmentCategory.LOCATION, "Location/Distance",
        "Subject", f"{distance_km:.1f} km away",
        round_amount(distance_km * rate),
    )


Rule = Callable[
    [PropertyRecord, PropertyRecord, float, float], Optional[AdjustmentOutcome]
]

# Evaluation order is the order outcomes are reported in
ADJUSTMENT_RULES: Dict[AdjustmentCategory, Rule] = {
    AdjustmentCategory.SIZE: _size,
    AdjustmentCategory.BEDROOMS: _bedrooms,
    AdjustmentCategory.BATHROOMS: _bathrooms,
    AdjustmentCategory.AGE: _age,
    AdjustmentCategory.LOT_SIZE: _lot_size,
    AdjustmentCategory.GARAGE: _garage,
    AdjustmentCategory.BASEMENT: _basement,
    AdjustmentCategory.POOL: _pool,
    AdjustmentCategory.LOCATION: _location,
}


# =============================================================================
# Public API
# =============================================================================

def get_preset(
    presets: Iterable[AdjustmentRatePreset],
    category: AdjustmentCategory,
) -> Optional[AdjustmentRatePreset]:
    """Return the first preset for a category, or None."""
    for preset in presets:
        if preset.category == category:
            return preset
    return None


def calculate_adjustments(
    subject: PropertyRecord,
    comp: PropertyRecord,
    distance_km: float,
    presets: Iterable[AdjustmentRatePreset] = DEFAULT_ADJUSTMENT_PRESETS,
) -> List[AdjustmentOutcome]:
    """
    Calculate all feature adjustments for one comp.

    A category is only evaluated when the preset table carries a rate for
    it. Missing numeric attributes count as 0, except year built, whose
    absence on either side suppresses the age adjustment.

    Args:
        subject: The property being priced
        comp: The comparable property
        distance_km: Distance between subject and comp
        presets: Rate table (default: DEFAULT_ADJUSTMENT_PRESETS)

    Returns:
        Adjustment outcomes in rule order
    """
    presets = tuple(presets)
    results = []

    for category, rule in ADJUSTMENT_RULES.items():
        preset = get_preset(presets, category)
        if preset is None:
            continue
        outcome = rule(subject, comp, distance_km, preset.amount_per_unit)
        if outcome is not None:
            results.append(outcome)

    return results


def total_adjustment(adjustments: Iterable[AdjustmentOutcome]) -> int:
    """Sum of the effective (already rounded) adjustment amounts."""
    return sum(adj.amount for adj in adjustments)


def adjusted_price(base_price: float, adjustments: Iterable[AdjustmentOutcome]) -> float:
    """Comp price after all adjustments."""
    return base_price + total_adjustment(adjustments)
