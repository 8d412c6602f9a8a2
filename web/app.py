"""
FastAPI application exposing the CMA engine over HTTP.

Stateless: every request carries the subject, comps and optional rate
overrides, and the response is the full CMA result. Nothing is stored.

Production deployment configuration via environment variables.
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.cma import (
    AdjustmentCategory,
    CmaEngine,
    DEFAULT_ADJUSTMENT_PRESETS,
    MarketTrendPoint,
    MissingCoordinatesPolicy,
    PropertyRecord,
    ValuationEstimate,
    presets_with_overrides,
)
from utils.config import Config


logger = logging.getLogger(__name__)

VERSION = "1.0.0"


# =============================================================================
# API Request Models
# =============================================================================

class _CamelModel(BaseModel):
    """Accepts camelCase (JSON clients) or snake_case field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PropertyInput(_CamelModel):
    """Subject or comparable property."""
    street_address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    mls_number: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
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
    list_price: Optional[float] = None
    sold_price: Optional[float] = None
    sold_date: Optional[Union[datetime, date]] = None
    days_on_market: Optional[int] = None
    images: List[str] = []

    def to_record(self) -> PropertyRecord:
        return PropertyRecord.from_dict(self.model_dump())


class PresetInput(_CamelModel):
    """A replacement rate for one adjustment category; a null rate removes it."""
    category: str
    amount_per_unit: Optional[float]
    label: Optional[str] = None
    unit: Optional[str] = None


class MarketTrendInput(_CamelModel):
    period: str
    avg_price: Optional[float] = None
    median_price: Optional[float] = None
    avg_dom: Optional[float] = None
    active_count: Optional[int] = None
    sold_count: Optional[int] = None
    new_count: Optional[int] = None
    avg_price_per_sqft: Optional[float] = None
    absorption_rate: Optional[float] = None


class EstimateInput(_CamelModel):
    value: float
    confidence: Optional[float] = None


class CalculateRequest(_CamelModel):
    """Request body for a CMA calculation."""
    subject: PropertyInput
    comparables: List[PropertyInput] = Field(default_factory=list)
    presets: Optional[List[PresetInput]] = None
    market_trends: List[MarketTrendInput] = Field(default_factory=list)
    estimate: Optional[EstimateInput] = None
    reference_date: Optional[Union[datetime, date]] = None


# =============================================================================
# Request Translation
# =============================================================================

def build_presets(inputs: Optional[List[PresetInput]]) -> tuple:
    """
    Merge request presets onto the default table.

    Raises:
        ValueError: If a preset names an unknown category
    """
    if not inputs:
        return DEFAULT_ADJUSTMENT_PRESETS

    table = presets_with_overrides({p.category: p.amount_per_unit for p in inputs})
    overrides = {AdjustmentCategory.from_string(p.category): p for p in inputs}

    result = []
    for preset in table:
        item = overrides.get(preset.category)
        if item is not None:
            preset = replace(
                preset,
                label=item.label or preset.label,
                unit=item.unit or preset.unit,
            )
        result.append(preset)
    return tuple(result)


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or Config.load()
    missing_coordinates = MissingCoordinatesPolicy.from_string(config.missing_coordinates)

    app = FastAPI(
        title="CMA Engine",
        description="Comparative market analysis pricing for residential property",
        version=VERSION,
        # Production settings: disable docs for private deployment
        docs_url=None if config.production else "/docs",
        redoc_url=None if config.production else "/redoc",
        openapi_url=None if config.production else "/openapi.json",
        debug=config.debug,
    )

    # Healthchecks: synchronous, no dependencies, no IO
    @app.get("/", include_in_schema=False)
    def root():
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        return {"status": "healthy"}

    if config.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    @app.get("/api/health")
    def api_health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": VERSION,
            "environment": "production" if config.production else "development",
        }

    @app.get("/api/cma/presets")
    def list_presets() -> Dict[str, Any]:
        """Default adjustment rate table."""
        return {"presets": [p.to_dict() for p in DEFAULT_ADJUSTMENT_PRESETS]}

    @app.post("/api/cma/calculate")
    def calculate(request: CalculateRequest) -> Dict[str, Any]:
        """
        Run a CMA for the posted subject and comparables.

        Returns:
            CmaResult as camelCase JSON
        """
        if not request.comparables:
            raise HTTPException(status_code=400, detail="No comparable properties added")

        try:
            presets = build_presets(request.presets)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        engine = CmaEngine(
            presets=presets,
            reference_date=request.reference_date,
            missing_coordinates=missing_coordinates,
        )
        trends = [MarketTrendPoint(**t.model_dump()) for t in request.market_trends]
        estimate = None
        if request.estimate is not None:
            estimate = ValuationEstimate(request.estimate.value, request.estimate.confidence)

        try:
            result = engine.run(
                request.subject.to_record(),
                [comp.to_record() for comp in request.comparables],
                market_trends=trends,
                estimate=estimate,
            )
        except Exception:
            logger.exception("CMA calculation error")
            raise HTTPException(status_code=500, detail="Failed to calculate CMA")

        return result.to_dict()

    return app


# Create app instance for uvicorn
app = create_app()
