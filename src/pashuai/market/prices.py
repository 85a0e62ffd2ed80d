# Mandi (wholesale market) crop prices.
# Created: 2026-10-12
#
# Canned reference table: each nearby mandi quotes two crops. No live price
# feed is wired in; values are fixed so the endpoint is deterministic.

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Literal

logger = logging.getLogger(__name__)

Trend = Literal["up", "down", "stable"]

CROP_NAMES_HINDI = {
    "Rice": "चावल",
    "Wheat": "गेहूं",
    "Maize": "मक्का",
    "Soybean": "सोयाबीन",
    "Cotton": "कपास",
    "Sugarcane": "गन्ना",
    "Potato": "आलू",
    "Onion": "प्याज",
    "Tomato": "टमाटर",
    "Mustard": "सरसों",
    "Gram": "चना",
    "Groundnut": "मूंगफली",
}

# (crop, base price per quintal in INR, trend)
_CROPS: list[tuple[str, int, Trend]] = [
    ("Rice", 2200, "up"),
    ("Wheat", 1950, "stable"),
    ("Maize", 1800, "down"),
    ("Soybean", 3800, "up"),
    ("Cotton", 6200, "up"),
    ("Sugarcane", 350, "stable"),
]

_DEFAULT_MANDIS = ["Azadpur Mandi", "Ghazipur Mandi", "Najafgarh Mandi"]

_STATE_MANDIS = {
    "delhi": _DEFAULT_MANDIS,
    "nct": _DEFAULT_MANDIS,
    "uttar pradesh": ["Ghaziabad Mandi", "Noida Mandi", "Meerut Mandi"],
    "haryana": ["Gurugram Mandi", "Faridabad Mandi", "Sonipat Mandi"],
}

_TREND_LABELS = {
    "en": {"up": "Rising", "down": "Falling", "stable": "Stable"},
    "hi": {"up": "बढ़ रहा है", "down": "गिर रहा है", "stable": "स्थिर"},
}

CROPS_PER_MANDI = 2


@dataclass
class MandiPrice:
    crop_name: str
    crop_name_hindi: str | None
    price: int
    unit: str
    trend: Trend
    trend_label: str
    market_name: str
    distance_km: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def nearby_mandis(state: str | None) -> list[str]:
    """Mandis serving a state; unknown or missing states get the Delhi set."""
    return list(_STATE_MANDIS.get((state or "").strip().lower(), _DEFAULT_MANDIS))


class MarketPriceService:
    def prices(self, state: str | None = None, language: str = "en") -> list[MandiPrice]:
        labels = _TREND_LABELS["hi" if language == "hi" else "en"]
        rows: list[MandiPrice] = []
        for mandi_index, mandi in enumerate(nearby_mandis(state)):
            distance = float(5 + mandi_index * 3)
            for i in range(CROPS_PER_MANDI):
                crop, base_price, trend = _CROPS[(mandi_index * CROPS_PER_MANDI + i) % len(_CROPS)]
                rows.append(
                    MandiPrice(
                        crop_name=crop,
                        crop_name_hindi=CROP_NAMES_HINDI.get(crop),
                        price=base_price,
                        unit="quintal",
                        trend=trend,
                        trend_label=labels[trend],
                        market_name=mandi,
                        distance_km=distance,
                    )
                )
        logger.debug("Market prices for state=%r: %d rows", state, len(rows))
        return rows
