"""Direct answers to weather questions, bypassing the language model.

``WeatherResponder.try_answer()`` returns a formatted reply or ``None``.
``None`` means "not a weather question" or "no weather data could be
found"; in both cases the chat turn continues with normal generation. No
exception ever escapes.
"""

from __future__ import annotations

import logging

from pashuai.conversations.models import ChatHistoryEntry
from pashuai.weather.client import WeatherClient, WeatherReport
from pashuai.weather.intent import IntentClassifier

logger = logging.getLogger(__name__)


def _is_hindi(language: str) -> bool:
    language = (language or "").lower()
    return language == "hi" or "hindi" in language


def format_weather_reply(report: WeatherReport, language: str = "en") -> str:
    """Natural-language weather summary (Hindi or English)."""
    if _is_hindi(language):
        return (
            f"{report.name}, {report.country} में वर्तमान तापमान {report.temp}°C है।\n"
            f"मौसम की स्थिति: {report.description}।\n"
            f"आर्द्रता: {report.humidity}%।\n"
            f"हवा की गति: {report.wind_speed} मीटर/सेकंड।"
        )
    return (
        f"Current temperature in {report.name}, {report.country} is {report.temp}°C.\n"
        f"Weather condition: {report.description}.\n"
        f"Humidity: {report.humidity}%.\n"
        f"Wind speed: {report.wind_speed} m/s."
    )


class WeatherResponder:
    """Answers weather questions from live data."""

    def __init__(
        self,
        classifier: IntentClassifier,
        client: WeatherClient,
        default_location: str = "New Delhi,IN",
    ):
        self.classifier = classifier
        self.client = client
        self.default_location = default_location

    async def aclose(self) -> None:
        await self.client.aclose()

    async def lookup(self, location: str = "") -> WeatherReport | None:
        """Mentioned location -> default location -> IP geolocation."""
        if location:
            report = await self.client.by_location(location)
            if report:
                return report
            logger.info("No weather for %r, falling back to default location", location)

        if self.default_location:
            report = await self.client.by_location(self.default_location)
            if report:
                return report

        return await self.client.by_ip()

    async def try_answer(self, history: list[ChatHistoryEntry], language: str = "en") -> str | None:
        latest = next((e for e in reversed(history) if e.role == "user"), None)
        if latest is None:
            return None

        try:
            if not self.classifier.is_weather_query(latest.content):
                return None

            location = self.classifier.extract_location(latest.content)
            report = await self.lookup(location)
            if report is None:
                logger.info("Weather question but no data available; using the model instead")
                return None
            return format_weather_reply(report, language)
        except Exception:
            logger.warning("Weather answer failed; using the model instead", exc_info=True)
            return None
