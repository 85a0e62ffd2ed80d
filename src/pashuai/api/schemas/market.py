# Market price schemas.
# Created: 2026-10-14

from __future__ import annotations

from pashuai.api.schemas.common import APIModel


class MandiPriceOut(APIModel):
    crop_name: str
    crop_name_hindi: str | None = None
    price: int
    unit: str
    trend: str
    trend_label: str
    market_name: str
    distance_km: float


class MarketPricesResponse(APIModel):
    state: str | None = None
    mandis: list[str]
    prices: list[MandiPriceOut]


class CropSuggestionOut(APIModel):
    crop_name: str
    crop_name_hindi: str | None = None
    profit_potential: int
    market_demand: str
    market_demand_label: str
    seasonality: str
    investment_per_acre: int


class CropSuggestionsResponse(APIModel):
    state: str | None = None
    soil_type: str
    climate: str
    summary: str
    suggestions: list[CropSuggestionOut]
