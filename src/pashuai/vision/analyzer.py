# Vision gateway. Crop disease and livestock health diagnosis from images.
# Created: 2026-10-08
#
# The provider is asked for a JSON object; whatever comes back is normalised
# into a VisionAnalysis so a non-conforming reply never breaks the caller.
# Only a failed provider call raises (AnalysisError).

from __future__ import annotations

import base64
import json
import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol

import httpx

from pashuai.config import Settings
from pashuai.errors import AnalysisError
from pashuai.llm.prompts import language_directive
from pashuai.llm.strategies import close_client

logger = logging.getLogger(__name__)

_OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"

UNKNOWN_DIAGNOSIS = "Unknown condition"
NO_DESCRIPTION = "No description available"

_SYSTEM_PROMPT = """You are an expert agricultural AI vision analyst specializing in crop disease detection and livestock health assessment.

Analyze the provided image and provide:
1. Diagnosis - identify the disease, pest, or health condition
2. Confidence level (0-100%)
3. Treatment recommendations (specific, actionable steps)
4. Prevention measures for future
5. Detailed description of what you observe
{directive}
Respond in JSON format with this structure:
{{
  "diagnosis": "disease/condition name",
  "confidence": 95,
  "treatment": ["step 1", "step 2"],
  "prevention": ["measure 1", "measure 2"],
  "description": "detailed observation"
}}"""


@dataclass
class VisionAnalysis:
    """Structured diagnosis persisted as message metadata."""

    diagnosis: str = UNKNOWN_DIAGNOSIS
    confidence: float = 0
    treatment: list[str] = field(default_factory=list)
    prevention: list[str] = field(default_factory=list)
    description: str = NO_DESCRIPTION

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class VisionProvider(Protocol):
    """Sends one image plus instructions, returns the raw reply text."""

    name: str

    async def describe(self, image_b64: str, mime_type: str, system: str, prompt: str) -> str: ...


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


def clamp_confidence(value: Any) -> float:
    """Clamp a raw confidence into [0, 100]; missing or non-numeric becomes 0."""
    if isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number):
        return 0
    number = max(0.0, min(100.0, number))
    return int(number) if number.is_integer() else number


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None and str(item).strip()]


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def normalize_analysis(raw: Any) -> VisionAnalysis:
    """Default every missing or malformed field instead of failing."""
    if not isinstance(raw, dict):
        raw = {}
    return VisionAnalysis(
        diagnosis=_text(raw.get("diagnosis"), UNKNOWN_DIAGNOSIS),
        confidence=clamp_confidence(raw.get("confidence", 0)),
        treatment=_string_list(raw.get("treatment")),
        prevention=_string_list(raw.get("prevention")),
        description=_text(raw.get("description"), NO_DESCRIPTION),
    )


def parse_analysis_text(text: str) -> VisionAnalysis:
    """Extract the JSON object from a provider reply (tolerates prose/code fences)."""
    if not text:
        return normalize_analysis({})
    start = text.find("{")
    end = text.rfind("}") + 1
    if start == -1 or end == 0:
        logger.warning("Vision reply contained no JSON object")
        return normalize_analysis({})
    try:
        return normalize_analysis(json.loads(text[start:end]))
    except json.JSONDecodeError:
        logger.warning("Vision reply JSON could not be parsed")
        return normalize_analysis({})


def format_analysis_message(analysis: VisionAnalysis) -> str:
    """Compose the assistant message shown in the chat for an image turn."""
    treatment = "\n".join(f"{i}. {step}" for i, step in enumerate(analysis.treatment, 1))
    prevention = "\n".join(f"{i}. {step}" for i, step in enumerate(analysis.prevention, 1))
    return (
        "**AI Vision Analysis**\n\n"
        f"**Diagnosis:** {analysis.diagnosis}\n"
        f"**Confidence:** {analysis.confidence}%\n\n"
        f"**Treatment:**\n{treatment}\n\n"
        f"**Prevention:**\n{prevention}\n\n"
        f"**Description:** {analysis.description}"
    )


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class OpenAIVisionProvider:
    """GPT-4o vision over the REST API."""

    name = "openai"

    def __init__(self, client: httpx.AsyncClient, api_key: str, model: str = "gpt-4o"):
        self._client = client
        self._api_key = api_key
        self._model = model

    async def aclose(self) -> None:
        await close_client(self._client)

    async def describe(self, image_b64: str, mime_type: str, system: str, prompt: str) -> str:
        resp = await self._client.post(
            _OPENAI_CHAT_URL,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            json={
                "model": self._model,
                "response_format": {"type": "json_object"},
                "messages": [
                    {"role": "system", "content": system},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {
                                "type": "image_url",
                                "image_url": {"url": f"data:{mime_type};base64,{image_b64}"},
                            },
                        ],
                    },
                ],
                "max_tokens": 1500,
            },
        )
        resp.raise_for_status()
        result = resp.json()
        return result["choices"][0]["message"]["content"] or ""


class AnthropicVisionProvider:
    """Claude vision via the ``anthropic`` SDK."""

    name = "anthropic"

    def __init__(self, client: Any, model: str):
        self._client = client
        self._model = model

    async def aclose(self) -> None:
        await close_client(self._client)

    async def describe(self, image_b64: str, mime_type: str, system: str, prompt: str) -> str:
        response = await self._client.messages.create(
            model=self._model,
            max_tokens=1500,
            system=system,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {"type": "base64", "media_type": mime_type, "data": image_b64},
                        },
                        {"type": "text", "text": prompt},
                    ],
                }
            ],
        )
        return "".join(getattr(block, "text", "") for block in response.content)


def resolve_vision_provider(settings: Settings) -> VisionProvider | None:
    """Pick the vision provider from settings (auto prefers OpenAI, like the OCR tool)."""
    provider = settings.vision_provider
    if provider == "auto":
        if settings.openai_api_key:
            provider = "openai"
        elif settings.anthropic_api_key:
            provider = "anthropic"
        else:
            return None

    if provider == "openai" and settings.openai_api_key:
        client = httpx.AsyncClient(timeout=settings.vision_timeout)
        return OpenAIVisionProvider(client, settings.openai_api_key, settings.openai_vision_model)

    if provider == "anthropic" and settings.anthropic_api_key:
        from anthropic import AsyncAnthropic

        client = AsyncAnthropic(api_key=settings.anthropic_api_key, timeout=settings.vision_timeout)
        return AnthropicVisionProvider(client, settings.anthropic_vision_model)

    logger.warning("Vision provider '%s' selected but no API key configured", provider)
    return None


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class VisionGateway:
    """Image understanding with structural resilience on the reply."""

    def __init__(self, provider: VisionProvider | None):
        self.provider = provider

    async def aclose(self) -> None:
        close = getattr(self.provider, "aclose", None)
        if close is not None:
            await close()

    async def analyze(
        self,
        image_bytes: bytes,
        context_hint: str = "crop disease",
        language: str = "en",
        mime_type: str = "image/jpeg",
    ) -> VisionAnalysis:
        if self.provider is None:
            raise AnalysisError("Image analysis is not configured. Set an OpenAI or Anthropic API key.")

        directive = language_directive(language)
        system = _SYSTEM_PROMPT.format(directive=f"\n{directive}\n" if directive else "")
        prompt = f"Analyze this agricultural image. Context: {context_hint or 'crop disease'}"
        image_b64 = base64.b64encode(image_bytes).decode()

        try:
            text = await self.provider.describe(image_b64, mime_type, system, prompt)
        except httpx.HTTPStatusError as e:
            raise AnalysisError(
                f"Failed to analyze image: {self.provider.name} API error {e.response.status_code}"
            ) from e
        except Exception as e:
            raise AnalysisError(f"Failed to analyze image: {e}") from e

        analysis = parse_analysis_text(text)
        logger.info(
            "Vision analysis via %s: %s (%s%%)",
            self.provider.name,
            analysis.diagnosis,
            analysis.confidence,
        )
        return analysis
