"""
Data models for the CMA pricing engine.

Defines the property records handed to the engine, the adjustment rate
table, and the per-comp and aggregate results it produces.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from utils.formatting import format_currency


class AdjustmentCategory(str, Enum):
    """
    Feature categories a comp can be adjusted on.

    CONDITION and OTHER have no automatic rule; they exist so that
    presets and manual adjustments can name them.
    """
    LOCATION = "location"
    SIZE = "size"
    BEDROOMS = "bedrooms"
    BATHROOMS = "bathrooms"
    AGE = "age"
    LOT_SIZE = "lot_size"
    GARAGE = "garage"
    BASEMENT = "basement"
    CONDITION = "condition"
    POOL = "pool"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: str) -> Optional["AdjustmentCategory"]:
        """Convert string to AdjustmentCategory, case-insensitive."""
        normalised = value.lower().strip().replace("-", "_").replace(" ", "_")
        for member in cls:
            if member.value == normalised:
                return member
        return None


class MissingCoordinatesPolicy(Enum):
    """
    How the engine treats a comp that cannot be placed on a map.

    ASSUME_COLOCATED: distance is 0, so no location adjustment and no
        proximity penalty. Matches historical behaviour.
    EXCLUDE: the comp is dropped from the analysis.
    """
    ASSUME_COLOCATED = "assume_colocated"
    EXCLUDE = "exclude"

    @classmethod
    def from_string(cls, value: str) -> "MissingCoordinatesPolicy":
        normalised = value.lower().strip().replace("-", "_")
        for member in cls:
            if member.value == normalised:
                return member
        raise ValueError(f"Unknown missing-coordinates policy: {value}")


# =============================================================================
# Input Records
# =============================================================================

# camelCase keys used by the persistence layer and JSON clients
_CAMEL_TO_FIELD = {
    "mlsNumber": "mls_number",
    "streetAddress": "street_address",
    "propertyType": "property_type",
    "bedroomsPlus": "bedrooms_plus",
    "bathroomsHalf": "bathrooms_half",
    "lotSqft": "lot_sqft",
    "yearBuilt": "year_built",
    "garageSpaces": "garage_spaces",
    "listPrice": "list_price",
    "soldPrice": "sold_price",
    "soldDate": "sold_date",
    "daysOnMarket": "days_on_market",
}
_FIELD_TO_CAMEL = {v: k for k, v in _CAMEL_TO_FIELD.items()}

_NUMERIC_FIELDS = (
    "latitude", "longitude", "bedrooms", "bedrooms_plus", "bathrooms",
    "bathrooms_half", "sqft", "lot_sqft", "year_built", "garage_spaces",
    "list_price", "sold_price", "days_on_market",
)


def _to_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    number = float(value)
    if number.is_integer():
        return int(number)
    return number


def _to_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if "T" in text or " " in text:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    return date.fromisoformat(text)


@dataclass(frozen=True)
class PropertyRecord:
    """
    A single property, either the subject or a comparable.

    Numeric attributes are optional. None means unknown, never zero.
    Records are frozen; the engine never writes back into them.
    """
    # Address
    street_address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    mls_number: Optional[str] = None

    # Location (for distance calculation)
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # Physical attributes
    property_type: Optional[str] = None
    style: Optional[str] = None
    bedrooms: Optional[int] = None
    bedrooms_plus: Optional[int] = None
    bathrooms: Optional[float] = None
    bathrooms_half: Optional[int] = None
    sqft: Optional[float] = None
    lot_sqft: Optional[float] = None
    year_built: Optional[int] = None
    garage: Optional[str] = None
    garage_spaces: Optional[int] = None
    basement: Optional[str] = None
    heating: Optional[str] = None
    cooling: Optional[str] = None
    pool: Optional[str] = None

    # Market
    list_price: Optional[float] = None
    sold_price: Optional[float] = None
    sold_date: Optional[date] = None
    days_on_market: Optional[int] = None

    images: Tuple[str, ...] = ()

    @property
    def sale_price(self) -> float:
        """Sold price, falling back to list price, or 0 if neither is known."""
        return self.sold_price or self.list_price or 0

    @property
    def full_address(self) -> str:
        """Construct full address string."""
        parts = [p for p in (self.street_address, self.city) if p]
        region = " ".join(p for p in (self.state, self.zip) if p)
        if region:
            parts.append(region)
        return ", ".join(parts)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PropertyRecord":
        """
        Build a record from a storage row or JSON object.

        Accepts snake_case or camelCase keys. Numeric columns stored as
        strings are coerced, blank values become None, and sold dates may be
        ISO strings. Unknown keys are ignored.

        Args:
            data: Mapping of attribute names to raw values

        Returns:
            PropertyRecord
        """
        known = set(cls.__dataclass_fields__)
        values = {}
        for key, raw in data.items():
            name = _CAMEL_TO_FIELD.get(key, key)
            if name in known:
                values[name] = raw

        for name in _NUMERIC_FIELDS:
            if name in values:
                values[name] = _to_number(values[name])
        if "sold_date" in values:
            values["sold_date"] = _to_date(values["sold_date"])
        if "images" in values:
            values["images"] = tuple(values["images"] or ())

        return cls(**values)

    def to_dict(self) -> dict:
        """Convert to camelCase dictionary for JSON output."""
        result = {}
        for name in self.__dataclass_fields__:
            value = getattr(self, name)
            if isinstance(value, date):
                value = value.isoformat()
            elif isinstance(value, tuple):
                value = list(value)
            result[_FIELD_TO_CAMEL.get(name, name)] = value
        return result


@dataclass(frozen=True)
class AdjustmentRatePreset:
    """A per-unit dollar rate for one adjustment category."""
    category: AdjustmentCategory
    label: str
    amount_per_unit: float
    unit: str

    def __post_init__(self):
        """Coerce string categories; reject unknown ones."""
        if not isinstance(self.category, AdjustmentCategory):
            category = AdjustmentCategory.from_string(str(self.category))
            if category is None:
                raise ValueError(f"Unknown adjustment category: {self.category}")
            object.__setattr__(self, "category", category)

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "label": self.label,
            "amountPerUnit": self.amount_per_unit,
            "unit": self.unit,
        }


DEFAULT_ADJUSTMENT_PRESETS: Tuple[AdjustmentRatePreset, ...] = (
    AdjustmentRatePreset(AdjustmentCategory.SIZE, "Living Area (per sqft)", 150, "sqft"),
    AdjustmentRatePreset(AdjustmentCategory.BEDROOMS, "Bedrooms", 15000, "bedroom"),
    AdjustmentRatePreset(AdjustmentCategory.BATHROOMS, "Bathrooms", 10000, "bathroom"),
    AdjustmentRatePreset(AdjustmentCategory.AGE, "Age (per year)", 1000, "year"),
    AdjustmentRatePreset(AdjustmentCategory.LOT_SIZE, "Lot Size (per sqft)", 20, "sqft"),
    AdjustmentRatePreset(AdjustmentCategory.GARAGE, "Garage Spaces", 15000, "space"),
    AdjustmentRatePreset(AdjustmentCategory.BASEMENT, "Basement (finished vs not)", 25000, "level"),
    AdjustmentRatePreset(AdjustmentCategory.POOL, "Pool", 20000, "presence"),
    AdjustmentRatePreset(AdjustmentCategory.LOCATION, "Location (per km)", -2000, "km"),
    AdjustmentRatePreset(AdjustmentCategory.CONDITION, "Condition (per grade)", 10000, "grade"),
)


def presets_with_overrides(
    overrides: Mapping[str, Optional[float]],
    base: Iterable[AdjustmentRatePreset] = DEFAULT_ADJUSTMENT_PRESETS,
) -> Tuple[AdjustmentRatePreset, ...]:
    """
    Derive a rate table from a base table and per-category rate overrides.

    Args:
        overrides: Category name -> new rate. A rate of None removes the
            category from the table.
        base: Table to start from (default: DEFAULT_ADJUSTMENT_PRESETS)

    Returns:
        New preset tuple; the base table is left untouched

    Raises:
        ValueError: If an override names an unknown category
    """
    resolved = {}
    for name, rate in overrides.items():
        category = AdjustmentCategory.from_string(name)
        if category is None:
            raise ValueError(f"Unknown adjustment category: {name}")
        resolved[category] = rate

    table = []
    for preset in base:
        if preset.category in resolved:
            rate = resolved.pop(preset.category)
            if rate is None:
                continue
            preset = replace(preset, amount_per_unit=rate)
        table.append(preset)

    for category, rate in resolved.items():
        if rate is not None:
            table.append(
                AdjustmentRatePreset(category, category.value.replace("_", " ").title(), rate, "unit")
            )
    return tuple(table)


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class AdjustmentOutcome:
    """
    One category's dollar adjustment for one comp.

    auto_amount is what the engine computed; amount is the effective value
    and only differs once a manual override has been applied.
    """
    category: AdjustmentCategory
    label: str
    subject_value: str
    comp_value: str
    auto_amount: int
    amount: int
    is_manual: bool = False
    notes: Optional[str] = None

    @property
    def display_amount(self) -> str:
        """Signed currency string, e.g. '+$15,000'."""
        sign = "+" if self.amount > 0 else ""
        return sign + format_currency(self.amount)

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "label": self.label,
            "subjectValue": self.subject_value,
            "compValue": self.comp_value,
            "autoAmount": self.auto_amount,
            "adjustmentAmount": self.amount,
            "displayAmount": self.display_amount,
            "isManual": self.is_manual,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class ComparableAnalysis:
    """Full analysis of one comp against the subject."""
    property: PropertyRecord
    distance_km: float
    adjustments: List[AdjustmentOutcome]
    total_adjustment: int
    adjusted_price: float
    weight: float

    def adjustment_for(self, category: AdjustmentCategory) -> Optional[AdjustmentOutcome]:
        """Return the outcome for a category, if one was emitted."""
        for outcome in self.adjustments:
            if outcome.category == category:
                return outcome
        return None

    def to_dict(self) -> dict:
        return {
            "property": self.property.to_dict(),
            "distanceKm": self.distance_km,
            "adjustments": [a.to_dict() for a in self.adjustments],
            "totalAdjustment": self.total_adjustment,
            "adjustedPrice": self.adjusted_price,
            "weight": self.weight,
        }


@dataclass(frozen=True)
class ValuationEstimate:
    """An external automated-valuation estimate, passed through for display."""
    value: float
    confidence: Optional[float] = None


@dataclass(frozen=True)
class PriceRecommendation:
    """
    Recommended price band for the subject.

    low/mid/high, weighted_avg and std_dev are whole dollars. Confidence
    is in [0, 1], two decimal places. The estimate fields never influence
    the computed band.
    """
    low: int
    mid: int
    high: int
    weighted_avg: int
    std_dev: int
    confidence: float
    estimate_value: Optional[float] = None
    estimate_confidence: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "low": self.low,
            "mid": self.mid,
            "high": self.high,
            "weightedAvg": self.weighted_avg,
            "stdDev": self.std_dev,
            "confidence": self.confidence,
            "estimateValue": self.estimate_value,
            "estimateConfidence": self.estimate_confidence,
        }


@dataclass(frozen=True)
class MarketTrendPoint:
    """One period of market statistics. Carried through unchanged."""
    period: str
    avg_price: Optional[float] = None
    median_price: Optional[float] = None
    avg_dom: Optional[float] = None
    active_count: Optional[int] = None
    sold_count: Optional[int] = None
    new_count: Optional[int] = None
    avg_price_per_sqft: Optional[float] = None
    absorption_rate: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "avgPrice": self.avg_price,
            "medianPrice": self.median_price,
            "avgDom": self.avg_dom,
            "activeCount": self.active_count,
            "soldCount": self.sold_count,
            "newCount": self.new_count,
            "avgPricePerSqft": self.avg_price_per_sqft,
            "absorptionRate": self.absorption_rate,
        }


@dataclass(frozen=True)
class CmaResult:
    """
    Complete CMA output.

    comparables are ordered by weight, most reliable first, so the first
    entry is "Comp 1" in any report built from this result.
    """
    subject_property: PropertyRecord
    comparables: List[ComparableAnalysis]
    price_recommendation: PriceRecommendation
    market_trends: List[MarketTrendPoint] = field(default_factory=list)

    @property
    def comp_count(self) -> int:
        """Number of comps in the analysis."""
        return len(self.comparables)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "subjectProperty": self.subject_property.to_dict(),
            "comparables": [c.to_dict() for c in self.comparables],
            "priceRecommendation": self.price_recommendation.to_dict(),
            "marketTrends": [t.to_dict() for t in self.market_trends],
        }
