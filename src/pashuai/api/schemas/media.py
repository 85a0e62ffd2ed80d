# Image analysis and transcription schemas.
# Created: 2026-10-13

from __future__ import annotations

from pydantic import BaseModel

from pashuai.api.schemas.common import APIModel
from pashuai.api.schemas.conversations import MessageOut


class AnalysisOut(APIModel):
    diagnosis: str
    confidence: float
    treatment: list[str] = []
    prevention: list[str] = []
    description: str


class AnalyzeImageResponse(APIModel):
    message: MessageOut
    analysis: AnalysisOut


class TranscriptionResponse(BaseModel):
    message: str
    transcription: str = ""
