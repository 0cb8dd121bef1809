from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import Field

from app.models.moderation import CamelModel
from app.services.reviews import (
    InappropriateContentError,
    InMemoryReviewStore,
    Review,
    ReviewNotFound,
    ReviewPermissionError,
    ReviewService,
)

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


class ReviewCreate(CamelModel):
    service_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)
    comment: str = ""


class ReviewUpdate(CamelModel):
    user_id: str = Field(min_length=1)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = None


def _service(request: Request) -> ReviewService:
    state = request.app.state
    service = getattr(state, "review_service", None)
    if service is None:
        service = ReviewService(InMemoryReviewStore(), state.moderator)
        state.review_service = service
    return service


def _rejected(exc: InappropriateContentError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": str(exc),
            "code": "inappropriate_content",
            "flaggedWords": list(exc.result.flagged_words),
            "contentType": exc.result.content_type.value,
        },
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=Review)
async def create_review(body: ReviewCreate, request: Request) -> Any:
    try:
        return await _service(request).add_review(
            service_id=body.service_id,
            user_id=body.user_id,
            rating=body.rating,
            comment=body.comment,
        )
    except InappropriateContentError as exc:
        return _rejected(exc)


@router.patch("/{review_id}", response_model=Review)
async def update_review(review_id: str, body: ReviewUpdate, request: Request) -> Any:
    try:
        return await _service(request).update_review(
            review_id,
            user_id=body.user_id,
            rating=body.rating,
            comment=body.comment,
        )
    except InappropriateContentError as exc:
        return _rejected(exc)
    except ReviewNotFound:
        raise HTTPException(status_code=404, detail="Review not found")
    except ReviewPermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
