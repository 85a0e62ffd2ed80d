"""Mandi crop prices and region crop suggestions (reference data)."""

from pashuai.market.prices import MandiPrice, MarketPriceService, nearby_mandis
from pashuai.market.suggestions import (
    CropSuggestion,
    CropSuggestionService,
    RegionSuggestions,
    region_profile,
)

__all__ = [
    "CropSuggestion",
    "CropSuggestionService",
    "MandiPrice",
    "MarketPriceService",
    "RegionSuggestions",
    "nearby_mandis",
    "region_profile",
]
