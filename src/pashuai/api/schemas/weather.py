# Weather schemas.
# Created: 2026-10-14

from __future__ import annotations

from pashuai.api.schemas.common import APIModel


class WeatherReportOut(APIModel):
    name: str
    country: str
    temp: float
    feels_like: float
    humidity: float
    description: str
    wind_speed: float


class WeatherResponse(APIModel):
    report: WeatherReportOut
    text: str
