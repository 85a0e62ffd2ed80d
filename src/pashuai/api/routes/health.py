# Health router.
# Created: 2026-10-13

from __future__ import annotations

from fastapi import APIRouter

from pashuai import __version__
from pashuai.api.schemas.common import StatusResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=StatusResponse)
async def get_health():
    """Liveness probe."""
    return StatusResponse(status="ok", version=__version__)
