"""Provider strategies for text generation.

Each strategy wraps one (provider, model) pair behind the same two calls:
``complete()`` for a buffered reply and ``stream()`` for incremental text.
The gateway walks an ordered list of strategies; errors are translated into
``RetryableProviderError`` (move on to the next strategy) or
``FatalProviderError`` (stop the chain).

Provider clients are constructed once by ``resolve_strategies()`` and shared
by every strategy of the same vendor.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

import httpx

from pashuai.config import Settings
from pashuai.conversations.models import ChatHistoryEntry
from pashuai.errors import FatalProviderError, ProviderError, RetryableProviderError

logger = logging.getLogger(__name__)

# HTTP statuses that no other model of the same vendor can fix
_FATAL_STATUSES = {401, 403}


class ProviderStrategy(Protocol):
    """One named way of producing assistant text."""

    @property
    def name(self) -> str: ...

    @property
    def model(self) -> str: ...

    async def complete(self, system: str, history: list[ChatHistoryEntry]) -> str:
        """Return the full reply text."""
        ...

    def stream(self, system: str, history: list[ChatHistoryEntry]) -> AsyncIterator[str]:
        """Yield reply fragments in provider order."""
        ...


def classify_error(error: BaseException, provider: str, model: str) -> ProviderError:
    """Translate an SDK or transport exception into a typed provider error."""
    if isinstance(error, ProviderError):
        return error

    if isinstance(error, (TimeoutError, asyncio.TimeoutError, httpx.TransportError)):
        return RetryableProviderError(
            f"{provider} ({model}) unreachable: {error}", provider=provider, model=model
        )

    status = getattr(error, "status_code", None)
    if status is None and isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code

    if status in _FATAL_STATUSES:
        return FatalProviderError(
            f"{provider} rejected credentials ({status}): {error}", provider=provider, model=model
        )

    return RetryableProviderError(
        f"{provider} ({model}) failed: {error}", provider=provider, model=model
    )


async def close_client(client: Any) -> None:
    """Close an SDK client (``close()``) or an httpx client (``aclose()``)."""
    close = getattr(client, "aclose", None) or client.close
    await close()


def split_system(history: list[ChatHistoryEntry]) -> tuple[str, list[ChatHistoryEntry]]:
    """Separate system-role entries from the user/assistant turns."""
    system_parts = [e.content for e in history if e.role == "system" and e.content]
    turns = [e for e in history if e.role != "system"]
    return "\n".join(system_parts), turns


def merge_turns(history: list[ChatHistoryEntry]) -> list[dict[str, str]]:
    """Build an alternating user/assistant message list.

    Consecutive same-role turns are merged and leading assistant turns are
    dropped, since chat APIs expect the conversation to open with the user.
    """
    merged: list[dict[str, str]] = []
    for entry in history:
        if entry.role not in ("user", "assistant") or not entry.content:
            continue
        if not merged and entry.role == "assistant":
            continue
        if merged and merged[-1]["role"] == entry.role:
            merged[-1]["content"] += "\n\n" + entry.content
        else:
            merged.append({"role": entry.role, "content": entry.content})
    return merged


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------


class AnthropicStrategy:
    """Claude models via the ``anthropic`` SDK."""

    def __init__(self, client: Any, model: str, max_tokens: int = 2048, label: str = "anthropic"):
        self._client = client
        self._model = model
        self._max_tokens = max_tokens
        self._label = label

    async def aclose(self) -> None:
        await close_client(self._client)

    @property
    def name(self) -> str:
        return self._label

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, system: str, history: list[ChatHistoryEntry]) -> str:
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                system=system,
                messages=merge_turns(history),
            )
        except Exception as e:
            raise classify_error(e, self.name, self._model) from e

        text = "".join(
            getattr(block, "text", "")
            for block in response.content
            if getattr(block, "type", "text") == "text"
        )
        if not text.strip():
            raise RetryableProviderError("Empty response", provider=self.name, model=self._model)
        return text

    async def stream(self, system: str, history: list[ChatHistoryEntry]) -> AsyncIterator[str]:
        try:
            async with self._client.messages.stream(
                model=self._model,
                max_tokens=self._max_tokens,
                system=system,
                messages=merge_turns(history),
            ) as stream:
                async for text in stream.text_stream:
                    if text:
                        yield text
        except ProviderError:
            raise
        except Exception as e:
            raise classify_error(e, self.name, self._model) from e


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------


class OpenAIStrategy:
    """GPT models via the ``openai`` SDK."""

    def __init__(self, client: Any, model: str, max_tokens: int = 2048, label: str = "openai"):
        self._client = client
        self._model = model
        self._max_tokens = max_tokens
        self._label = label

    async def aclose(self) -> None:
        await close_client(self._client)

    @property
    def name(self) -> str:
        return self._label

    @property
    def model(self) -> str:
        return self._model

    def _messages(self, system: str, history: list[ChatHistoryEntry]) -> list[dict[str, str]]:
        return [{"role": "system", "content": system}, *merge_turns(history)]

    async def complete(self, system: str, history: list[ChatHistoryEntry]) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=self._messages(system, history),
            )
        except Exception as e:
            raise classify_error(e, self.name, self._model) from e

        text = response.choices[0].message.content if response.choices else None
        if not text or not text.strip():
            raise RetryableProviderError("Empty response", provider=self.name, model=self._model)
        return text

    async def stream(self, system: str, history: list[ChatHistoryEntry]) -> AsyncIterator[str]:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=self._messages(system, history),
                stream=True,
            )
            async for chunk in response:
                if not chunk.choices:
                    continue
                text = chunk.choices[0].delta.content
                if text:
                    yield text
        except ProviderError:
            raise
        except Exception as e:
            raise classify_error(e, self.name, self._model) from e


# ---------------------------------------------------------------------------
# Ollama
# ---------------------------------------------------------------------------


class OllamaStrategy:
    """Local models via the Ollama HTTP API."""

    def __init__(self, client: httpx.AsyncClient, host: str, model: str, label: str = "ollama"):
        self._client = client
        self._host = host.rstrip("/")
        self._model = model
        self._label = label

    async def aclose(self) -> None:
        await close_client(self._client)

    @property
    def name(self) -> str:
        return self._label

    @property
    def model(self) -> str:
        return self._model

    def _payload(self, system: str, history: list[ChatHistoryEntry], stream: bool) -> dict:
        return {
            "model": self._model,
            "messages": [{"role": "system", "content": system}, *merge_turns(history)],
            "stream": stream,
        }

    async def complete(self, system: str, history: list[ChatHistoryEntry]) -> str:
        try:
            resp = await self._client.post(
                f"{self._host}/api/chat", json=self._payload(system, history, stream=False)
            )
            resp.raise_for_status()
            data = resp.json()
        except Exception as e:
            raise classify_error(e, self.name, self._model) from e

        text = data.get("message", {}).get("content", "")
        if not text.strip():
            raise RetryableProviderError("Empty response", provider=self.name, model=self._model)
        return text

    async def stream(self, system: str, history: list[ChatHistoryEntry]) -> AsyncIterator[str]:
        try:
            async with self._client.stream(
                "POST", f"{self._host}/api/chat", json=self._payload(system, history, stream=True)
            ) as resp:
                resp.raise_for_status()
                async for line in resp.aiter_lines():
                    if not line.strip():
                        continue
                    data = json.loads(line)
                    if data.get("error"):
                        raise RetryableProviderError(
                            f"Ollama error: {data['error']}", provider=self.name, model=self._model
                        )
                    text = data.get("message", {}).get("content", "")
                    if text:
                        yield text
                    if data.get("done"):
                        break
        except ProviderError:
            raise
        except Exception as e:
            raise classify_error(e, self.name, self._model) from e


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def resolve_provider(settings: Settings) -> str:
    """Resolve ``llm_provider`` to a concrete provider name.

    Auto-resolution order: anthropic (if key set) -> openai (if key set) -> ollama.
    """
    provider = settings.llm_provider
    if provider == "auto":
        if settings.anthropic_api_key:
            return "anthropic"
        if settings.openai_api_key:
            return "openai"
        return "ollama"
    return provider


def resolve_strategies(settings: Settings) -> list[ProviderStrategy]:
    """Build the ordered strategy chain: primary model first, then its fallback."""
    provider = resolve_provider(settings)

    if provider == "anthropic":
        from anthropic import AsyncAnthropic

        client = AsyncAnthropic(api_key=settings.anthropic_api_key, max_retries=0)
        models = [settings.anthropic_model, settings.anthropic_fallback_model]
        return [
            AnthropicStrategy(client, m, settings.max_output_tokens, label=f"anthropic:{i}")
            for i, m in enumerate(_dedupe(models))
        ]

    if provider == "openai":
        from openai import AsyncOpenAI

        client = AsyncOpenAI(api_key=settings.openai_api_key, max_retries=0)
        models = [settings.openai_model, settings.openai_fallback_model]
        return [
            OpenAIStrategy(client, m, settings.max_output_tokens, label=f"openai:{i}")
            for i, m in enumerate(_dedupe(models))
        ]

    if provider == "ollama":
        client = httpx.AsyncClient(timeout=httpx.Timeout(settings.generation_timeout, connect=5.0))
        return [OllamaStrategy(client, settings.ollama_host, settings.ollama_model)]

    raise ValueError(f"Unknown LLM provider '{provider}'. Use auto, anthropic, openai or ollama.")


def _dedupe(models: list[str]) -> list[str]:
    seen: list[str] = []
    for m in models:
        if m and m not in seen:
            seen.append(m)
    return seen
