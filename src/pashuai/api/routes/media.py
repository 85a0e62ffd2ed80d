# Media router: image diagnosis and audio transcription.
# Created: 2026-10-13

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from pashuai.api.deps import get_app_settings, get_controller
from pashuai.api.schemas.common import error_responses
from pashuai.api.schemas.conversations import MessageOut
from pashuai.api.schemas.media import AnalysisOut, AnalyzeImageResponse, TranscriptionResponse
from pashuai.chat.session import ChatSessionController
from pashuai.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Media"])

_READ_CHUNK = 1024 * 1024


async def _read_bounded(upload: UploadFile, limit: int) -> bytes | None:
    """Read the upload in chunks; None once it goes past ``limit`` bytes."""
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await upload.read(min(_READ_CHUNK, limit + 1 - total))
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)
        total += len(chunk)
        if total > limit:
            return None


def format_size(num_bytes: int) -> str:
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):g} MB"
    if num_bytes >= 1024:
        return f"{num_bytes / 1024:g} KB"
    return f"{num_bytes} bytes"


@router.post("/analyze-image", response_model=AnalyzeImageResponse, responses=error_responses(400, 404, 500))
async def analyze_image(
    image: UploadFile | None = File(None),
    conversation_id: str | None = Form(None, alias="conversationId"),
    context: str = Form("crop disease"),
    language: str = Form("en"),
    controller: ChatSessionController = Depends(get_controller),
    settings: Settings = Depends(get_app_settings),
):
    """Diagnose a crop or livestock photo and store the result as a message."""
    if image is None:
        raise HTTPException(status_code=400, detail="No image file provided")
    if not conversation_id:
        raise HTTPException(status_code=400, detail="Missing required parameter: conversationId")
    content_type = image.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are allowed!")

    data = await _read_bounded(image, settings.max_upload_bytes)
    if data is None:
        limit = format_size(settings.max_upload_bytes)
        raise HTTPException(status_code=400, detail=f"Image exceeds the {limit} upload limit")
    if not data:
        raise HTTPException(status_code=400, detail="Image file is empty")

    result = await controller.analyze_image(
        conversation_id,
        data,
        filename=image.filename or "image",
        content_type=content_type,
        context=context or "crop disease",
        language=language,
    )
    return AnalyzeImageResponse(
        message=MessageOut.model_validate(result.message),
        analysis=AnalysisOut.model_validate(result.analysis),
    )


@router.post("/transcribe", response_model=TranscriptionResponse, responses=error_responses(400))
async def transcribe(audio: UploadFile | None = File(None)):
    """Server-side speech recognition is not offered; the client records in-browser."""
    if audio is None:
        return JSONResponse(
            status_code=400,
            content={"message": "Only image files are allowed!", "transcription": ""},
        )
    return TranscriptionResponse(
        message="Using browser speech recognition",
        transcription="Please speak again using the microphone button",
    )