"""Image diagnosis for crops and livestock."""

from pashuai.vision.analyzer import (
    VisionAnalysis,
    VisionGateway,
    format_analysis_message,
    normalize_analysis,
    resolve_vision_provider,
)

__all__ = [
    "VisionAnalysis",
    "VisionGateway",
    "format_analysis_message",
    "normalize_analysis",
    "resolve_vision_provider",
]
