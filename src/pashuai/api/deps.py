# Shared FastAPI dependencies for the API layer.
# Created: 2026-10-13
#
# Everything a route needs was built once by create_api_app() and hung on
# app.state; these accessors keep routes free of globals and let tests
# swap in fakes.

from __future__ import annotations

from fastapi import Request

from pashuai.chat.session import ChatSessionController
from pashuai.config import Settings
from pashuai.conversations.protocol import ConversationStoreProtocol
from pashuai.market.prices import MarketPriceService
from pashuai.market.suggestions import CropSuggestionService
from pashuai.weather.responder import WeatherResponder


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_controller(request: Request) -> ChatSessionController:
    return request.app.state.controller


def get_store(request: Request) -> ConversationStoreProtocol:
    return request.app.state.controller.store


def get_weather(request: Request) -> WeatherResponder | None:
    return request.app.state.weather


def get_market(request: Request) -> MarketPriceService:
    return request.app.state.market


def get_crop_suggestions(request: Request) -> CropSuggestionService:
    return request.app.state.crop_suggestions
