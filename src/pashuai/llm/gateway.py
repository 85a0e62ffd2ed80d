"""Generation gateway: buffered and streamed assistant replies.

The gateway owns persona/language prompt construction and provider
resilience. It never raises for provider failure:

- ``generate()`` walks the strategy chain and returns the first non-empty
  reply, or an apology string when every strategy failed.
- ``generate_stream()`` returns a ``GenerationStream``. Fragments arrive in
  provider order; if a strategy fails before its first fragment the next one
  is tried, if it fails mid-stream a final apology fragment is yielded and
  the stream ends with ``failed`` set.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence

from pashuai.conversations.models import ChatHistoryEntry
from pashuai.errors import FatalProviderError, ProviderError, RetryableProviderError
from pashuai.llm.prompts import build_system_prompt
from pashuai.llm.strategies import ProviderStrategy, classify_error, split_system

logger = logging.getLogger(__name__)

FALLBACK_REPLY = (
    "I apologize, but I'm having trouble generating a response right now. "
    "Please try again in a moment."
)
STREAM_APOLOGY = (
    "\n\nI apologize, but I encountered an error while generating the response. "
    "Please try again."
)


class GenerationStream:
    """Async iterator over reply fragments with a failure flag.

    ``failed`` and ``error`` are meaningful once iteration has finished.
    """

    def __init__(
        self,
        strategies: Sequence[ProviderStrategy],
        system: str,
        history: list[ChatHistoryEntry],
        apology: str = STREAM_APOLOGY,
    ):
        self._strategies = list(strategies)
        self._system = system
        self._history = history
        self._apology = apology
        self.failed = False
        self.error: ProviderError | None = None
        self.strategy_name: str | None = None

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        last_error: ProviderError | None = None

        for strategy in self._strategies:
            emitted = False
            fragments = strategy.stream(self._system, self._history)
            try:
                async for fragment in fragments:
                    if not fragment:
                        continue
                    emitted = True
                    self.strategy_name = strategy.name
                    yield fragment
                if emitted:
                    return
                raise RetryableProviderError(
                    "Empty stream", provider=strategy.name, model=strategy.model
                )
            except Exception as e:
                error = classify_error(e, strategy.name, strategy.model)
                if emitted:
                    logger.error("Stream from %s failed mid-response: %s", strategy.name, error)
                    self.failed = True
                    self.error = error
                    yield self._apology
                    return
                logger.warning("Stream from %s failed before output: %s", strategy.name, error)
                last_error = error
                if isinstance(error, FatalProviderError):
                    break
            finally:
                await fragments.aclose()

        self.failed = True
        self.error = last_error or RetryableProviderError("No generation strategy configured")
        yield self._apology


class GenerationGateway:
    """Turns chat history plus a language into assistant text."""

    def __init__(
        self,
        strategies: Sequence[ProviderStrategy],
        timeout: float | None = 60.0,
        fallback_reply: str = FALLBACK_REPLY,
    ):
        self.strategies = list(strategies)
        self.timeout = timeout
        self.fallback_reply = fallback_reply

    async def aclose(self) -> None:
        """Close provider clients (strategies may share one)."""
        for strategy in self.strategies:
            close = getattr(strategy, "aclose", None)
            if close is not None:
                await close()

    def _prompt(
        self, history: list[ChatHistoryEntry], language: str
    ) -> tuple[str, list[ChatHistoryEntry]]:
        extra, turns = split_system(history)
        return build_system_prompt(language, extra=extra), turns

    async def generate(self, history: list[ChatHistoryEntry], language: str = "en") -> str:
        """Return assistant text; degrades to an apology instead of raising."""
        system, turns = self._prompt(history, language)

        for strategy in self.strategies:
            try:
                if self.timeout:
                    text = await asyncio.wait_for(strategy.complete(system, turns), self.timeout)
                else:
                    text = await strategy.complete(system, turns)
            except Exception as e:
                error = classify_error(e, strategy.name, strategy.model)
                if isinstance(error, FatalProviderError):
                    logger.error("Generation via %s failed fatally: %s", strategy.name, error)
                    break
                logger.warning("Generation via %s failed, trying next: %s", strategy.name, error)
                continue

            if text and text.strip():
                return text

        return self.fallback_reply

    def generate_stream(self, history: list[ChatHistoryEntry], language: str = "en") -> GenerationStream:
        """Return a stream of reply fragments (see module docstring)."""
        system, turns = self._prompt(history, language)
        return GenerationStream(self.strategies, system, turns)
