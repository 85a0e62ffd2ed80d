# Server-sent event transport for streamed chat replies.
# Created: 2026-10-11
#
# One StreamingSession per open /api/chat/stream connection. The user message
# is already persisted when the session is built; the session relays reply
# fragments as `data: {"chunk": ...}` events and persists the assistant
# message only once the whole reply arrived. Every other ending (timeout,
# provider failure, client gone) leaves no assistant message behind.
#
# Lifecycle: pending -> streaming -> completed | errored | timed_out | aborted

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterable, Awaitable, Callable
from enum import Enum
from typing import Any

from pashuai.conversations.models import Message, MessageRole
from pashuai.conversations.protocol import ConversationStoreProtocol
from pashuai.errors import InvalidTransitionError

logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = "Failed to generate response. Please try again."
TIMEOUT_MESSAGE = "Response timed out. Please try again."
SAVE_FAILED_MESSAGE = "Failed to save response. Please try again."

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class StreamState(str, Enum):
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ERRORED = "errored"
    TIMED_OUT = "timed_out"
    ABORTED = "aborted"


_TERMINAL = {StreamState.COMPLETED, StreamState.ERRORED, StreamState.TIMED_OUT, StreamState.ABORTED}

_TRANSITIONS: dict[StreamState, set[StreamState]] = {
    StreamState.PENDING: {StreamState.STREAMING, StreamState.ERRORED, StreamState.ABORTED},
    StreamState.STREAMING: set(_TERMINAL),
}


def sse_event(payload: dict[str, Any]) -> str:
    """Frame one payload as an SSE ``data:`` event."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class StreamingSession:
    """Relays one streamed reply to one client.

    ``chunks`` is any async iterable of text fragments. If it exposes a
    truthy ``failed`` attribute once exhausted (see ``GenerationStream``),
    the reply is treated as failed even though it ended normally.
    """

    def __init__(
        self,
        store: ConversationStoreProtocol,
        conversation_id: str,
        chunks: AsyncIterable[str],
        inactivity_timeout: float | None = 15.0,
    ):
        self.store = store
        self.conversation_id = conversation_id
        self.chunks = chunks
        self.inactivity_timeout = inactivity_timeout
        self.state = StreamState.PENDING
        self.buffer: list[str] = []
        self.last_chunk_at: float | None = None
        self.message: Message | None = None

    @property
    def content(self) -> str:
        return "".join(self.buffer)

    @property
    def finished(self) -> bool:
        return self.state in _TERMINAL

    def _transition(self, new_state: StreamState) -> None:
        if new_state not in _TRANSITIONS.get(self.state, set()):
            raise InvalidTransitionError(
                f"Stream for {self.conversation_id} cannot go from {self.state.value} to {new_state.value}"
            )
        logger.debug("Stream %s: %s -> %s", self.conversation_id, self.state.value, new_state.value)
        self.state = new_state

    def _abort(self) -> None:
        if not self.finished:
            self._transition(StreamState.ABORTED)
            logger.info(
                "Client left stream for %s after %d chunks; reply discarded",
                self.conversation_id,
                len(self.buffer),
            )

    async def _next_chunk(self, iterator) -> str:
        if self.inactivity_timeout:
            return await asyncio.wait_for(anext(iterator), self.inactivity_timeout)
        return await anext(iterator)

    async def events(self, is_disconnected: Callable[[], Awaitable[bool]] | None = None):
        """Yield SSE frames until the session reaches a terminal state.

        ``is_disconnected`` is polled before each emission (pass
        ``request.is_disconnected``).
        """

        async def gone() -> bool:
            return bool(is_disconnected and await is_disconnected())

        iterator = aiter(self.chunks)
        try:
            if await gone():
                self._abort()
                return

            self._transition(StreamState.STREAMING)
            yield sse_event({"status": "connected"})

            while True:
                try:
                    fragment = await self._next_chunk(iterator)
                except StopAsyncIteration:
                    break
                except TimeoutError:
                    self._transition(StreamState.TIMED_OUT)
                    logger.warning(
                        "Stream for %s idle for %ss, giving up",
                        self.conversation_id,
                        self.inactivity_timeout,
                    )
                    yield sse_event({"error": TIMEOUT_MESSAGE})
                    return

                if await gone():
                    self._abort()
                    return
                self.buffer.append(fragment)
                self.last_chunk_at = time.monotonic()
                yield sse_event({"chunk": fragment})

            if getattr(self.chunks, "failed", False):
                self._transition(StreamState.ERRORED)
                yield sse_event({"error": GENERATION_FAILED_MESSAGE})
                return

            if await gone():
                self._abort()
                return

            try:
                self.message = await self.store.create_message(
                    self.conversation_id, MessageRole.ASSISTANT, self.content
                )
                await self.store.update_conversation(self.conversation_id)
            except Exception:
                logger.exception("Could not persist streamed reply for %s", self.conversation_id)
                self._transition(StreamState.ERRORED)
                yield sse_event({"error": SAVE_FAILED_MESSAGE})
                return

            self._transition(StreamState.COMPLETED)
            yield sse_event({"done": True, "messageId": self.message.id})

        except (asyncio.CancelledError, GeneratorExit):
            self._abort()
            raise
        except Exception as e:
            logger.exception("Streaming error for %s", self.conversation_id)
            if not self.finished:
                self._transition(StreamState.ERRORED)
                yield sse_event({"error": str(e) or GENERATION_FAILED_MESSAGE})
        finally:
            close = getattr(iterator, "aclose", None)
            if close is not None:
                await close()
