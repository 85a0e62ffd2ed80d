# Market router: mandi prices and crop suggestions.
# Created: 2026-10-14

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from pashuai.api.deps import get_crop_suggestions, get_market
from pashuai.api.schemas.market import (
    CropSuggestionsResponse,
    MandiPriceOut,
    MarketPricesResponse,
)
from pashuai.market.prices import MarketPriceService, nearby_mandis
from pashuai.market.suggestions import CropSuggestionService

router = APIRouter(tags=["Market"])


@router.get("/market/prices", response_model=MarketPricesResponse)
async def get_market_prices(
    state: str | None = Query(None),
    language: str = Query("en"),
    market: MarketPriceService = Depends(get_market),
):
    """Reference mandi prices for the mandis nearest to a state."""
    return MarketPricesResponse(
        state=state,
        mandis=nearby_mandis(state),
        prices=[MandiPriceOut.model_validate(p) for p in market.prices(state, language)],
    )


@router.get("/market/suggestions", response_model=CropSuggestionsResponse)
async def crop_suggestions(
    state: str | None = Query(None),
    language: str = Query("en"),
    advisor: CropSuggestionService = Depends(get_crop_suggestions),
):
    """Crops worth growing for sale, by the state's soil type and climate."""
    return CropSuggestionsResponse.model_validate(advisor.suggest(state, language))
