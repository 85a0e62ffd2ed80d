# Weather intent classifier. Keyword heuristic, no API call.
# Created: 2026-10-09
#
# The chat controller only depends on the IntentClassifier protocol, so this
# keyword matcher can be swapped for a trained intent model.

from __future__ import annotations

import logging
import re
from typing import Protocol

logger = logging.getLogger(__name__)


class IntentClassifier(Protocol):
    def is_weather_query(self, text: str) -> bool: ...

    def extract_location(self, text: str) -> str:
        """Return the mentioned place, or an empty string."""
        ...


# English, transliterated Hindi, and common misspellings
_WEATHER_KEYWORDS = [
    "temperature", "weather", "forecast", "hot", "cold", "rain", "sunny",
    "climate", "degrees", "celsius", "fahrenheit",
    "tapman", "taapman", "tapmaan", "mausam", "mosam", "garmi",
    "thand", "barish", "dhoop", "jalvayu", "degree",
    "temp", "whether", "forcast", "temprature",
    "tapamaan", "taapmaan", "tapamana",
]

_WEATHER_PHRASES = [
    "aaj ka tapman",
    "aaj ka mausam",
    "tapman kya hai",
    "kitna garam",
    "kitna thanda",
]

# Keywords match at a word start, so "rain" hits "raining" but not "grain"
_KEYWORD_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(k) for k in sorted(set(_WEATHER_KEYWORDS), key=len, reverse=True)) + r")",
    re.IGNORECASE,
)

_LOCATION_PATTERNS: list[re.Pattern] = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"\bin\s+([a-zA-Z\s]+)(?:\?|$)",
        r"\bat\s+([a-zA-Z\s]+)(?:\?|$)",
        r"\bfor\s+([a-zA-Z\s]+)(?:\?|$)",
        r"\b(?:weather|temperature)\s+(?:in|at|of)\s+([a-zA-Z\s]+)(?:\?|$)",
        r"\b(?:weather|temperature)\s+for\s+([a-zA-Z\s]+)(?:\?|$)",
        r"([a-zA-Z\s]+)\s+(?:weather|temperature)(?:\?|$)",
        r"\b(?:mein|me)\s+([a-zA-Z\s]+)(?:\?|$)",
        r"([a-zA-Z\s]+)\s+(?:ka|ki|ke)\s+(?:tapman|mausam)(?:\?|$)",
        r"\b(?:tapman|mausam)\s+(?:ka|ki|ke)\s+([a-zA-Z\s]+)(?:\?|$)",
    ]
]

# Words a location pattern can capture that are never places
_NOT_PLACES = {
    "aaj", "kal", "abhi", "today", "tomorrow", "now", "the", "what", "is", "current",
    "whats", "how", "tell", "me", "my", "area", "here", "kya", "hai", "batao",
    "weather", "temperature", "mausam", "tapman",
}


class KeywordWeatherClassifier:
    """Detects weather questions and pulls out an explicit location."""

    def is_weather_query(self, text: str) -> bool:
        if not text:
            return False
        lowered = text.lower()
        if any(phrase in lowered for phrase in _WEATHER_PHRASES):
            return True
        return bool(_KEYWORD_PATTERN.search(lowered))

    def extract_location(self, text: str) -> str:
        if not text:
            return ""
        cleaned = text.strip().rstrip(".!")
        for pattern in _LOCATION_PATTERNS:
            match = pattern.search(cleaned)
            if not match or not match.group(1):
                continue
            candidate = " ".join(match.group(1).split())
            if len(candidate) <= 2:
                continue
            if all(word.lower() in _NOT_PLACES for word in candidate.split()):
                continue
            logger.debug("Weather location %r matched by %s", candidate, pattern.pattern)
            return candidate
        return ""
