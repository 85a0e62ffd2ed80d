# Chat schemas.
# Created: 2026-10-13

from __future__ import annotations

from pydantic import Field

from pashuai.api.schemas.common import APIModel
from pashuai.api.schemas.conversations import MessageOut


class ChatRequest(APIModel):
    """Send a message and wait for the complete reply."""

    conversation_id: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1, max_length=100000)
    language: str = "en"


class ChatResponse(APIModel):
    user_message: MessageOut
    assistant_message: MessageOut
