"""LLM package for PashuAI."""

from pashuai.llm.gateway import GenerationGateway, GenerationStream
from pashuai.llm.prompts import build_system_prompt
from pashuai.llm.strategies import (
    AnthropicStrategy,
    OllamaStrategy,
    OpenAIStrategy,
    ProviderStrategy,
    resolve_strategies,
)

__all__ = [
    "AnthropicStrategy",
    "GenerationGateway",
    "GenerationStream",
    "OllamaStrategy",
    "OpenAIStrategy",
    "ProviderStrategy",
    "build_system_prompt",
    "resolve_strategies",
]
