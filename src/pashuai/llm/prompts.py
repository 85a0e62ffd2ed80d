# Advisory persona and language directive for text generation.
# Created: 2026-10-07

from __future__ import annotations

DEFAULT_LANGUAGE = "en"

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "hi": "Hindi",
    "pa": "Punjabi",
    "mr": "Marathi",
    "gu": "Gujarati",
    "bn": "Bengali",
    "ta": "Tamil",
    "te": "Telugu",
    "kn": "Kannada",
    "ml": "Malayalam",
    "or": "Odia",
    "ur": "Urdu",
}

_PERSONA = """You are an expert agricultural and livestock advisory AI assistant. You provide comprehensive guidance on:
- Crop management (planting, irrigation, fertilization, harvesting)
- Pest control and disease management
- Livestock care (cattle, buffalo, goats) - health, breeding, nutrition
- Weather-based farming advice
- Market prices and selling strategies
- Sustainable agricultural practices

You have knowledge of 4000+ agricultural topics and provide accurate, actionable advice to farmers."""

_CLOSING = "Be concise, practical, and farmer-friendly in your responses."


def language_name(language: str | None) -> str:
    """Map a language code to its English name; unknown values pass through."""
    if not language:
        return LANGUAGE_NAMES[DEFAULT_LANGUAGE]
    return LANGUAGE_NAMES.get(language.strip().lower(), language.strip())


def language_directive(language: str | None) -> str:
    """Return the "respond in" line, or an empty string for the default language."""
    if not language or language.strip().lower() == DEFAULT_LANGUAGE:
        return ""
    return f"Respond in {language_name(language)} language."


def build_system_prompt(language: str | None = DEFAULT_LANGUAGE, extra: str = "") -> str:
    """Build the system instruction for a chat turn.

    ``extra`` carries any system-role history entries so providers that take
    a single system string still see them.
    """
    parts = [_PERSONA]
    directive = language_directive(language)
    if directive:
        parts.append(directive)
    parts.append(_CLOSING)
    if extra:
        parts.append(extra)
    return "\n".join(parts)
