# Crop suggestions by region.
# Created: 2026-10-20
#
# A state maps to a soil type and climate, the soil type to three crops worth
# growing for sale. Canned reference data like the mandi table; desert and
# unlisted regions share the default set.

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Literal

from pashuai.market.prices import CROP_NAMES_HINDI

logger = logging.getLogger(__name__)

Demand = Literal["High", "Medium", "Low"]

_DEMAND_HINDI = {"High": "उच्च", "Medium": "मध्यम", "Low": "कम"}

_SEASON_HINDI = {"Kharif": "खरीफ", "Rabi": "रबी", "Zaid": "जायद", "Year-round": "पूरे वर्ष"}

# state -> (soil type, climate)
_REGIONS = {
    "punjab": ("Alluvial", "Sub-tropical"),
    "haryana": ("Alluvial", "Sub-tropical"),
    "uttar pradesh": ("Alluvial", "Sub-tropical"),
    "maharashtra": ("Black", "Semi-arid"),
    "gujarat": ("Black", "Semi-arid"),
    "tamil nadu": ("Red and Laterite", "Tropical"),
    "kerala": ("Red and Laterite", "Tropical"),
    "rajasthan": ("Desert", "Arid"),
}
_MIXED_REGION = ("Mixed", "Varied")

# (crop, profit %, demand, season, months en, months hi, INR per acre)
_Row = tuple[str, int, Demand, str, str | None, str | None, int]

_DEFAULT_CROPS: list[_Row] = [
    ("Wheat", 18, "Medium", "Rabi", "November-April", "नवंबर-अप्रैल", 22000),
    ("Mustard", 24, "Medium", "Rabi", "October-March", "अक्टूबर-मार्च", 18000),
    ("Maize", 20, "Medium", "Kharif", "June-September", "जून-सितंबर", 24000),
]

_CROPS_BY_SOIL: dict[str, list[_Row]] = {
    "Alluvial": [
        ("Rice", 22, "High", "Kharif", "June-October", "जून-अक्टूबर", 28000),
        ("Wheat", 18, "Medium", "Rabi", "November-April", "नवंबर-अप्रैल", 22000),
        ("Sugarcane", 25, "Medium", "Year-round", None, None, 35000),
    ],
    "Black": [
        ("Cotton", 30, "High", "Kharif", "May-November", "मई-नवंबर", 35000),
        ("Soybean", 25, "High", "Kharif", "June-October", "जून-अक्टूबर", 25000),
        ("Gram", 20, "Medium", "Rabi", "October-March", "अक्टूबर-मार्च", 20000),
    ],
    "Red and Laterite": [
        ("Groundnut", 28, "Medium", "Kharif", "June-September", "जून-सितंबर", 30000),
        ("Rice", 20, "High", "Kharif", "June-October", "जून-अक्टूबर", 28000),
        ("Maize", 22, "Medium", "Kharif", "June-September", "जून-सितंबर", 24000),
    ],
}


@dataclass
class CropSuggestion:
    crop_name: str
    crop_name_hindi: str | None
    profit_potential: int
    market_demand: Demand
    market_demand_label: str
    seasonality: str
    investment_per_acre: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RegionSuggestions:
    state: str | None
    soil_type: str
    climate: str
    summary: str
    suggestions: list[CropSuggestion]


def region_profile(state: str | None) -> tuple[str, str]:
    """(soil type, climate) for a state; unlisted states are "Mixed"."""
    return _REGIONS.get((state or "").strip().lower(), _MIXED_REGION)


def _season_text(season: str, months: str | None, hindi: bool) -> str:
    name = _SEASON_HINDI[season] if hindi else season
    return f"{name} ({months})" if months else name


class CropSuggestionService:
    def suggest(self, state: str | None = None, language: str = "en") -> RegionSuggestions:
        hindi = language == "hi"
        soil_type, climate = region_profile(state)

        suggestions = []
        for crop, profit, demand, season, months_en, months_hi, investment in _CROPS_BY_SOIL.get(
            soil_type, _DEFAULT_CROPS
        ):
            suggestions.append(
                CropSuggestion(
                    crop_name=crop,
                    crop_name_hindi=CROP_NAMES_HINDI.get(crop),
                    profit_potential=profit,
                    market_demand=demand,
                    market_demand_label=_DEMAND_HINDI[demand] if hindi else demand,
                    seasonality=_season_text(season, months_hi if hindi else months_en, hindi),
                    investment_per_acre=investment,
                )
            )

        if hindi:
            summary = f"आपके स्थान के आधार पर अनुशंसाएँ: {soil_type} मिट्टी प्रकार, {climate} जलवायु"
        else:
            summary = f"Recommendations based on your location: {soil_type} soil type, {climate} climate"

        logger.debug("Crop suggestions for state=%r: %s soil", state, soil_type)
        return RegionSuggestions(
            state=state,
            soil_type=soil_type,
            climate=climate,
            summary=summary,
            suggestions=suggestions,
        )
