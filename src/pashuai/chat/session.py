"""Chat session controller.

Created: 2026-10-11

Runs one conversation turn end to end:

    IDLE -> PERSIST_USER_MESSAGE -> LOAD_HISTORY -> GENERATE
         -> PERSIST_ASSISTANT_MESSAGE -> UPDATE_CONVERSATION_TIMESTAMP
         -> DELIVER_RESULT -> IDLE

Three delivery shapes share that sequence:
- send_message(): buffered, returns both persisted messages
- stream_message(): persists the user turn, then hands a StreamingSession
  to the SSE transport (assistant persistence happens there)
- analyze_image(): skips text generation, persists one composed analysis
  message carrying the image URL and the raw analysis as metadata

The user message is always written before generation starts and is never
rolled back; a failed turn leaves it visible in the history.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum

from pashuai.chat.streaming import StreamingSession
from pashuai.conversations.models import Conversation, Message, MessageRole, to_chat_history
from pashuai.conversations.protocol import ConversationStoreProtocol
from pashuai.errors import AnalysisError, ConversationNotFoundError
from pashuai.llm.gateway import GenerationGateway
from pashuai.uploads import ImageStore
from pashuai.vision.analyzer import VisionAnalysis, VisionGateway, format_analysis_message
from pashuai.weather.responder import WeatherResponder

logger = logging.getLogger(__name__)


class ChatTurnState(str, Enum):
    IDLE = "idle"
    PERSIST_USER_MESSAGE = "persist_user_message"
    LOAD_HISTORY = "load_history"
    GENERATE = "generate"
    PERSIST_ASSISTANT_MESSAGE = "persist_assistant_message"
    UPDATE_CONVERSATION_TIMESTAMP = "update_conversation_timestamp"
    DELIVER_RESULT = "deliver_result"


@dataclass
class TurnResult:
    user_message: Message
    assistant_message: Message


@dataclass
class ImageTurnResult:
    message: Message
    analysis: VisionAnalysis


async def _single_chunk(text: str) -> AsyncIterator[str]:
    yield text


class _Turn:
    """Debug trace of one turn's progress."""

    def __init__(self, conversation_id: str, kind: str):
        self.conversation_id = conversation_id
        self.kind = kind
        self.state = ChatTurnState.IDLE

    def enter(self, state: ChatTurnState) -> None:
        logger.debug("%s turn %s: %s -> %s", self.kind, self.conversation_id, self.state.value, state.value)
        self.state = state


class ChatSessionController:
    """Coordinates the store, the gateways and the weather fast path.

    Every collaborator is passed in; the controller holds no other state,
    so one instance safely serves concurrent turns.
    """

    def __init__(
        self,
        store: ConversationStoreProtocol,
        gateway: GenerationGateway,
        vision: VisionGateway | None = None,
        responder: WeatherResponder | None = None,
        image_store: ImageStore | None = None,
        stream_inactivity_timeout: float | None = 15.0,
    ):
        self.store = store
        self.gateway = gateway
        self.vision = vision
        self.responder = responder
        self.image_store = image_store
        self.stream_inactivity_timeout = stream_inactivity_timeout

    async def aclose(self) -> None:
        await self.gateway.aclose()
        if self.vision is not None:
            await self.vision.aclose()

    async def _require_conversation(self, conversation_id: str) -> Conversation:
        conversation = await self.store.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    async def _weather_reply(self, history, language: str) -> str | None:
        if self.responder is None:
            return None
        return await self.responder.try_answer(history, language)

    async def _begin(self, turn: _Turn, content: str):
        """Persist the user message, then load the history that includes it."""
        await self._require_conversation(turn.conversation_id)

        turn.enter(ChatTurnState.PERSIST_USER_MESSAGE)
        user_message = await self.store.create_message(turn.conversation_id, MessageRole.USER, content)

        turn.enter(ChatTurnState.LOAD_HISTORY)
        messages = await self.store.get_conversation_messages(turn.conversation_id)
        return user_message, to_chat_history(messages)

    async def send_message(self, conversation_id: str, content: str, language: str = "en") -> TurnResult:
        turn = _Turn(conversation_id, "buffered")
        user_message, history = await self._begin(turn, content)

        turn.enter(ChatTurnState.GENERATE)
        reply = await self._weather_reply(history, language)
        if reply is None:
            reply = await self.gateway.generate(history, language)

        turn.enter(ChatTurnState.PERSIST_ASSISTANT_MESSAGE)
        assistant_message = await self.store.create_message(conversation_id, MessageRole.ASSISTANT, reply)

        turn.enter(ChatTurnState.UPDATE_CONVERSATION_TIMESTAMP)
        await self.store.update_conversation(conversation_id)

        turn.enter(ChatTurnState.DELIVER_RESULT)
        result = TurnResult(user_message=user_message, assistant_message=assistant_message)
        turn.enter(ChatTurnState.IDLE)
        return result

    async def stream_message(
        self, conversation_id: str, content: str, language: str = "en"
    ) -> StreamingSession:
        """Prepare a streamed turn.

        Raises before any byte is sent if the conversation is unknown or the
        user message cannot be stored, so the route can still answer with a
        plain error status.
        """
        turn = _Turn(conversation_id, "streamed")
        _, history = await self._begin(turn, content)

        turn.enter(ChatTurnState.GENERATE)
        reply = await self._weather_reply(history, language)
        if reply is not None:
            chunks = _single_chunk(reply)
        else:
            chunks = self.gateway.generate_stream(history, language)

        # PERSIST_ASSISTANT_MESSAGE onwards runs inside the session
        return StreamingSession(
            self.store,
            conversation_id,
            chunks,
            inactivity_timeout=self.stream_inactivity_timeout,
        )

    async def analyze_image(
        self,
        conversation_id: str,
        image_bytes: bytes,
        filename: str = "image",
        content_type: str = "image/jpeg",
        context: str = "crop disease",
        language: str = "en",
    ) -> ImageTurnResult:
        if self.vision is None:
            raise AnalysisError("Image analysis is not configured")

        turn = _Turn(conversation_id, "image")
        await self._require_conversation(conversation_id)

        image_url = None
        if self.image_store is not None:
            image_url = self.image_store.save(filename, image_bytes, content_type)

        turn.enter(ChatTurnState.GENERATE)
        analysis = await self.vision.analyze(
            image_bytes, context_hint=context, language=language, mime_type=content_type
        )

        turn.enter(ChatTurnState.PERSIST_ASSISTANT_MESSAGE)
        message = await self.store.create_message(
            conversation_id,
            MessageRole.ASSISTANT,
            format_analysis_message(analysis),
            image_url=image_url,
            metadata=analysis.to_dict(),
        )

        turn.enter(ChatTurnState.UPDATE_CONVERSATION_TIMESTAMP)
        await self.store.update_conversation(conversation_id)

        turn.enter(ChatTurnState.DELIVER_RESULT)
        turn.enter(ChatTurnState.IDLE)
        return ImageTurnResult(message=message, analysis=analysis)
