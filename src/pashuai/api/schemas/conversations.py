# Conversation and message schemas.
# Created: 2026-10-13

from __future__ import annotations

from typing import Any

from pydantic import Field

from pashuai.api.schemas.common import APIModel
from pashuai.conversations.models import MessageRole


class CreateConversationRequest(APIModel):
    user_id: str | None = None
    title: str = Field("New Conversation", max_length=200)
    language: str = Field("en", min_length=2, max_length=16)


class ConversationOut(APIModel):
    id: str
    user_id: str | None = None
    title: str
    language: str
    created_at: str
    updated_at: str


class CreateMessageRequest(APIModel):
    """Append a message directly. ``role`` is checked by the store."""

    role: str
    content: str
    image_url: str | None = None
    audio_url: str | None = None
    metadata: dict[str, Any] | None = None


class MessageOut(APIModel):
    id: str
    conversation_id: str
    role: MessageRole
    content: str
    image_url: str | None = None
    audio_url: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: str
