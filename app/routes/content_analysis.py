from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.models.moderation import ContentAnalysisResponse
from app.services.moderation.decision import severity, summary_details, summary_message
from app.services.moderation.pipeline import ContentModerator

router = APIRouter(prefix="/api", tags=["moderation"])

log = logging.getLogger(__name__)

INVALID_INPUT = "Invalid input. Text parameter is required."


def _moderator(request: Request) -> ContentModerator:
    return request.app.state.moderator


@router.post("/content-analysis", response_model=ContentAnalysisResponse)
async def content_analysis(request: Request) -> Any:
    """
    Analyze review text before submission.
      - 400 when "text" is missing, empty or not a string.
      - 200 with the verdict plus a summary message for the form.
      - 500 when the body cannot be parsed or the pipeline breaks unexpectedly;
        scorer outages never land here (they resolve through the fallback policy).
    """
    try:
        payload = await request.json()
    except Exception as exc:
        log.warning("content analysis body unreadable", extra={"error_type": type(exc).__name__})
        return JSONResponse(status_code=500, content={"error": "Request body must be valid JSON"})

    text = payload.get("text") if isinstance(payload, dict) else None
    if not text or not isinstance(text, str):
        return JSONResponse(status_code=400, content={"error": INVALID_INPUT})

    try:
        result = await _moderator(request).analyze_content(text)
    except Exception as exc:
        log.exception("content analysis failed")
        return JSONResponse(status_code=500, content={"error": str(exc) or "Internal Server Error"})

    response = ContentAnalysisResponse(
        result=result,
        success=True,
        message=summary_message(result),
        details=summary_details(result),
        flagged_words=list(result.flagged_words),
        content_type=result.content_type,
        severity=severity(result),
    )
    return JSONResponse(
        content=response.model_dump(mode="json", by_alias=True, exclude_none=True)
    )
