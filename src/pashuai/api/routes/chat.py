# Chat router: buffered reply and SSE stream.
# Created: 2026-10-13
#
# The stream endpoint persists the user message before the response opens,
# so an unknown conversation still gets a plain 404 instead of an SSE error.

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from pashuai.api.deps import get_controller
from pashuai.api.schemas.chat import ChatRequest, ChatResponse
from pashuai.api.schemas.common import error_responses
from pashuai.api.schemas.conversations import MessageOut
from pashuai.chat.session import ChatSessionController
from pashuai.chat.streaming import SSE_HEADERS

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])


@router.post("/chat", response_model=ChatResponse, responses=error_responses(400, 404, 500))
async def chat_send(body: ChatRequest, controller: ChatSessionController = Depends(get_controller)):
    """Send a message and get the complete response (non-streaming)."""
    result = await controller.send_message(body.conversation_id, body.content, body.language)
    return ChatResponse(
        user_message=MessageOut.model_validate(result.user_message),
        assistant_message=MessageOut.model_validate(result.assistant_message),
    )


@router.get("/chat/stream", responses=error_responses(400, 404))
async def chat_stream(
    request: Request,
    conversation_id: str | None = Query(None, alias="conversationId"),
    content: str | None = Query(None),
    language: str = Query("en"),
    controller: ChatSessionController = Depends(get_controller),
):
    """Send a message and receive the reply as server-sent events."""
    if not conversation_id or not content:
        raise HTTPException(
            status_code=400, detail="Missing required parameters: conversationId and content"
        )

    session = await controller.stream_message(conversation_id, content, language)
    return StreamingResponse(
        session.events(request.is_disconnected),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
