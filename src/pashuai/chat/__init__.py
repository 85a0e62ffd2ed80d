"""Chat turns: buffered, streamed over SSE, and image analysis."""

from pashuai.chat.session import ChatSessionController, ChatTurnState, ImageTurnResult, TurnResult
from pashuai.chat.streaming import SSE_HEADERS, StreamingSession, StreamState, sse_event

__all__ = [
    "ChatSessionController",
    "ChatTurnState",
    "ImageTurnResult",
    "SSE_HEADERS",
    "StreamState",
    "StreamingSession",
    "TurnResult",
    "sse_event",
]
