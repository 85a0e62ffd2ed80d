"""API server for ``pashuai serve``.

``create_api_app()`` wires the conversation store, the generation and
vision gateways, the weather fast path and the market tables into one
``ChatSessionController`` and mounts the ``/api`` routers. Every
collaborator can be passed in, which is how the tests run the app against
fakes.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from pashuai.chat.session import ChatSessionController
from pashuai.config import Settings, get_config_dir, get_settings
from pashuai.errors import AnalysisError, ConversationNotFoundError, StorageError
from pashuai.market.prices import MarketPriceService
from pashuai.market.suggestions import CropSuggestionService
from pashuai.uploads import UPLOADS_URL_PREFIX, LocalImageStore
from pashuai.weather.responder import WeatherResponder

logger = logging.getLogger(__name__)


def build_controller(settings: Settings, weather: WeatherResponder | None = None) -> ChatSessionController:
    """Construct the production controller from settings."""
    from pashuai.conversations.store import get_conversation_store
    from pashuai.llm.gateway import GenerationGateway
    from pashuai.llm.strategies import resolve_strategies
    from pashuai.vision.analyzer import VisionGateway, resolve_vision_provider

    data_dir = get_config_dir(settings)
    strategies = resolve_strategies(settings)
    logger.info("Text generation via %s", ", ".join(f"{s.name} ({s.model})" for s in strategies))

    return ChatSessionController(
        store=get_conversation_store(data_dir / "conversations"),
        gateway=GenerationGateway(strategies, timeout=settings.generation_timeout),
        vision=VisionGateway(resolve_vision_provider(settings)),
        responder=weather,
        image_store=LocalImageStore(data_dir / "uploads"),
        stream_inactivity_timeout=settings.stream_inactivity_timeout,
    )


def build_weather(settings: Settings) -> WeatherResponder:
    import httpx

    from pashuai.weather.client import WeatherClient
    from pashuai.weather.intent import KeywordWeatherClassifier

    client = WeatherClient(
        httpx.AsyncClient(timeout=settings.weather_timeout),
        settings.openweather_api_key,
    )
    return WeatherResponder(
        KeywordWeatherClassifier(),
        client,
        default_location=settings.default_weather_location,
    )


def _register_error_handlers(app) -> None:
    """Every error leaves as ``{"message": ...}`` with its status."""
    from fastapi.exceptions import RequestValidationError
    from fastapi.responses import JSONResponse
    from starlette.exceptions import HTTPException as StarletteHTTPException

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "request"
            message = f"Invalid {field}: {first.get('msg', 'invalid value')}"
        else:
            message = "Invalid request"
        return JSONResponse(status_code=400, content={"message": message})

    @app.exception_handler(ConversationNotFoundError)
    async def _not_found(request, exc: ConversationNotFoundError):
        return JSONResponse(status_code=404, content={"message": str(exc)})

    @app.exception_handler(AnalysisError)
    async def _analysis_failed(request, exc: AnalysisError):
        logger.error("Image analysis failed: %s", exc)
        return JSONResponse(status_code=500, content={"message": str(exc)})

    @app.exception_handler(StorageError)
    async def _storage_failed(request, exc: StorageError):
        logger.error("Storage error: %s", exc)
        return JSONResponse(status_code=500, content={"message": str(exc)})

    @app.exception_handler(Exception)
    async def _unexpected(request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": str(exc) or "Internal server error"})


def create_api_app(
    settings: Settings | None = None,
    controller: ChatSessionController | None = None,
    weather: WeatherResponder | None = None,
    market: MarketPriceService | None = None,
    crop_suggestions: CropSuggestionService | None = None,
):
    """Build the FastAPI application."""
    from fastapi import FastAPI
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.staticfiles import StaticFiles

    from pashuai import __version__
    from pashuai.api.routes import mount_routers

    settings = settings or get_settings()
    if controller is None:
        weather = weather or build_weather(settings)
        controller = build_controller(settings, weather)

    @asynccontextmanager
    async def lifespan(app):
        yield
        await controller.aclose()
        if weather is not None:
            await weather.aclose()

    app = FastAPI(
        title="PashuAI API",
        description="Agricultural and livestock advisory chat.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.controller = controller
    app.state.weather = weather
    app.state.market = market or MarketPriceService()
    app.state.crop_suggestions = crop_suggestions or CropSuggestionService()

    # --- CORS -----------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    _register_error_handlers(app)
    mount_routers(app)

    image_store = controller.image_store
    if isinstance(image_store, LocalImageStore):
        app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=image_store.base_path), name="uploads")

    return app


def run_api_server(
    host: str = "127.0.0.1",
    port: int = 8000,
    dev: bool = False,
) -> None:
    """Start the API server."""
    import uvicorn

    print("\n" + "=" * 50)
    print("\U0001f404 PASHUAI API SERVER")
    print("=" * 50)
    print(f"\n\U0001f310 API docs: http://{'localhost' if host == '0.0.0.0' else host}:{port}/api/docs\n")

    if dev:
        import pathlib

        src_dir = str(pathlib.Path(__file__).resolve().parent.parent)
        uvicorn.run(
            "pashuai.api.serve:create_api_app",
            factory=True,
            host=host,
            port=port,
            reload=True,
            reload_dirs=[src_dir],
            reload_includes=["*.py"],
            log_level="debug",
        )
    else:
        app = create_api_app()
        uvicorn.run(app, host=host, port=port)
