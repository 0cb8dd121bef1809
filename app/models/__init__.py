from __future__ import annotations

from .moderation import CamelModel, ContentAnalysisResponse, ContentAnalysisResult, ContentType

__all__ = [
    "CamelModel",
    "ContentAnalysisResponse",
    "ContentAnalysisResult",
    "ContentType",
]
