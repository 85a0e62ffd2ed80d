# Weather router.
# Created: 2026-10-14

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from pashuai.api.deps import get_weather
from pashuai.api.schemas.common import error_responses
from pashuai.api.schemas.weather import WeatherReportOut, WeatherResponse
from pashuai.weather.responder import WeatherResponder, format_weather_reply

router = APIRouter(tags=["Weather"])


@router.get("/weather", response_model=WeatherResponse, responses=error_responses(502))
async def get_weather_report(
    location: str = Query(""),
    language: str = Query("en"),
    weather: WeatherResponder | None = Depends(get_weather),
):
    """Current conditions for a place, the default location, or the server's IP location."""
    report = await weather.lookup(location.strip()) if weather else None
    if report is None:
        raise HTTPException(status_code=502, detail="Weather data is currently unavailable")
    return WeatherResponse(
        report=WeatherReportOut.model_validate(report),
        text=format_weather_reply(report, language),
    )
