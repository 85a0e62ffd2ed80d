# Conversations router: create, list per user, read and append messages.
# Created: 2026-10-13

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from pashuai.api.deps import get_store
from pashuai.api.schemas.common import error_responses
from pashuai.api.schemas.conversations import (
    ConversationOut,
    CreateConversationRequest,
    CreateMessageRequest,
    MessageOut,
)
from pashuai.conversations.protocol import ConversationStoreProtocol
from pashuai.errors import ConversationNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Conversations"])


@router.post("/conversations", response_model=ConversationOut)
async def create_conversation(
    body: CreateConversationRequest,
    store: ConversationStoreProtocol = Depends(get_store),
):
    """Start a new chat session."""
    conversation = await store.create_conversation(body.user_id, body.title, language=body.language)
    return ConversationOut.model_validate(conversation)


@router.get("/conversations/user/{user_id}", response_model=list[ConversationOut])
async def list_user_conversations(user_id: str, store: ConversationStoreProtocol = Depends(get_store)):
    conversations = await store.get_user_conversations(user_id)
    return [ConversationOut.model_validate(c) for c in conversations]


@router.get("/conversations/{conversation_id}/messages", response_model=list[MessageOut], responses=error_responses(404))
async def list_messages(conversation_id: str, store: ConversationStoreProtocol = Depends(get_store)):
    """All messages of a conversation, oldest first."""
    if await store.get_conversation(conversation_id) is None:
        raise ConversationNotFoundError(conversation_id)
    messages = await store.get_conversation_messages(conversation_id)
    return [MessageOut.model_validate(m) for m in messages]


@router.post("/conversations/{conversation_id}/messages", response_model=MessageOut, responses=error_responses(400, 404))
async def create_message(
    conversation_id: str,
    body: CreateMessageRequest,
    store: ConversationStoreProtocol = Depends(get_store),
):
    try:
        message = await store.create_message(
            conversation_id,
            body.role,
            body.content,
            image_url=body.image_url,
            audio_url=body.audio_url,
            metadata=body.metadata,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return MessageOut.model_validate(message)
