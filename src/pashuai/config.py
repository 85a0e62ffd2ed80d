"""Configuration for PashuAI.

Settings are read from ``PASHUAI_*`` environment variables and an optional
``.env`` file. Every field has a working default so the API server starts
without any configuration (generation then degrades to the fallback reply).
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="PASHUAI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Server ---
    host: str = "127.0.0.1"
    port: int = 8000
    cors_allowed_origins: list[str] = Field(default_factory=list)
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".pashuai")

    # --- Text generation ---
    llm_provider: str = "auto"  # auto | anthropic | openai | ollama
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    anthropic_fallback_model: str = "claude-haiku-4-5-20251001"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    openai_fallback_model: str = "gpt-4o-mini"
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"
    max_output_tokens: int = 2048
    generation_timeout: float = 60.0

    # --- Vision ---
    vision_provider: str = "auto"  # auto | openai | anthropic
    openai_vision_model: str = "gpt-4o"
    anthropic_vision_model: str = "claude-sonnet-4-5-20250929"
    vision_timeout: float = 60.0

    # --- Streaming ---
    stream_inactivity_timeout: float = 15.0

    # --- Uploads ---
    max_upload_bytes: int = 10 * 1024 * 1024

    # --- Weather ---
    openweather_api_key: str | None = None
    default_weather_location: str = "New Delhi,IN"
    weather_timeout: float = 10.0

    @classmethod
    def load(cls) -> Settings:
        """Build settings from the environment."""
        return cls()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings.load()


def get_config_dir(settings: Settings | None = None) -> Path:
    """Return the data directory, creating it if needed."""
    settings = settings or get_settings()
    path = Path(settings.data_dir).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return path
