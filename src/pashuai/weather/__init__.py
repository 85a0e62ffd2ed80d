"""Weather lookups and the weather fast path of the chat."""

from pashuai.weather.client import WeatherClient, WeatherReport
from pashuai.weather.intent import IntentClassifier, KeywordWeatherClassifier
from pashuai.weather.responder import WeatherResponder, format_weather_reply

__all__ = [
    "IntentClassifier",
    "KeywordWeatherClassifier",
    "WeatherClient",
    "WeatherReport",
    "WeatherResponder",
    "format_weather_reply",
]
