# Weather lookups: OpenWeatherMap current conditions, ipapi.co geolocation.
# Created: 2026-10-09

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

_OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
_IPAPI_URL = "https://ipapi.co/json/"


@dataclass
class WeatherReport:
    """Current conditions for one place (metric units)."""

    name: str
    country: str
    temp: float
    feels_like: float
    humidity: float
    description: str
    wind_speed: float

    @classmethod
    def from_openweather(cls, data: dict[str, Any]) -> WeatherReport:
        main = data.get("main", {})
        weather = data.get("weather") or [{}]
        return cls(
            name=data.get("name", ""),
            country=data.get("sys", {}).get("country", ""),
            temp=main.get("temp", 0),
            feels_like=main.get("feels_like", main.get("temp", 0)),
            humidity=main.get("humidity", 0),
            description=weather[0].get("description", ""),
            wind_speed=data.get("wind", {}).get("speed", 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class WeatherClient:
    """Thin async wrapper over the weather and geolocation APIs.

    Lookups return ``None`` on any failure; callers decide on fallbacks.
    """

    def __init__(self, client: httpx.AsyncClient, api_key: str | None):
        self._client = client
        self._api_key = api_key

    async def aclose(self) -> None:
        await self._client.aclose()

    async def by_location(self, location: str) -> WeatherReport | None:
        if not location:
            return None
        if not self._api_key:
            logger.warning("Weather lookup skipped: PASHUAI_OPENWEATHER_API_KEY not set")
            return None
        try:
            resp = await self._client.get(
                _OPENWEATHER_URL,
                params={"q": location, "units": "metric", "appid": self._api_key},
            )
            resp.raise_for_status()
            return WeatherReport.from_openweather(resp.json())
        except httpx.HTTPStatusError as e:
            logger.warning("Weather API error for %r: %s", location, e.response.status_code)
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Weather lookup for %r failed: %s", location, e)
            return None

    async def by_ip(self) -> WeatherReport | None:
        """Geolocate the server's public IP, then look up its weather."""
        try:
            resp = await self._client.get(_IPAPI_URL)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("IP geolocation failed: %s", e)
            return None

        city, country = data.get("city"), data.get("country")
        if not city:
            return None
        return await self.by_location(f"{city},{country}" if country else city)
