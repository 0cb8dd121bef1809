# file: app/services/reviews.py
"""Review write-gate.

Every new or edited comment goes through moderation before the store is
touched. A rejected comment leaves the store exactly as it was.
"""
from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

from pydantic import Field

from app.models.moderation import CamelModel, ContentAnalysisResult
from app.services.moderation.pipeline import ContentModerator
from app.telemetry.metrics import inc_review_rejected

log = logging.getLogger(__name__)

INAPPROPRIATE_MESSAGE = "Your review contains inappropriate content"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Review(CamelModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    service_id: str
    user_id: str
    rating: int = Field(ge=1, le=5)
    comment: str = ""
    # New reviews wait for admin approval.
    pending: bool = True
    created_at: datetime = Field(default_factory=_now)
    updated_at: Optional[datetime] = None


class InappropriateContentError(Exception):
    def __init__(self, result: ContentAnalysisResult) -> None:
        super().__init__(INAPPROPRIATE_MESSAGE)
        self.result = result


class ReviewNotFound(LookupError):
    pass


class ReviewPermissionError(PermissionError):
    pass


class ReviewStore(Protocol):
    def add(self, review: Review) -> Review: ...
    def get(self, review_id: str) -> Optional[Review]: ...
    def update(self, review: Review) -> Review: ...


class InMemoryReviewStore:
    def __init__(self) -> None:
        self._items: Dict[str, Review] = {}
        self._lock = threading.Lock()

    def add(self, review: Review) -> Review:
        with self._lock:
            self._items[review.id] = review
        return review

    def get(self, review_id: str) -> Optional[Review]:
        with self._lock:
            return self._items.get(review_id)

    def update(self, review: Review) -> Review:
        with self._lock:
            if review.id not in self._items:
                raise ReviewNotFound(review.id)
            self._items[review.id] = review
        return review

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class ReviewService:
    def __init__(self, store: ReviewStore, moderator: ContentModerator) -> None:
        self.store = store
        self.moderator = moderator

    async def _gate(self, comment: str, operation: str) -> None:
        result = await self.moderator.analyze_content(comment)
        if result.passed:
            return
        inc_review_rejected(operation)
        log.info(
            "review write rejected",
            extra={
                "operation": operation,
                "content_type": result.content_type.value,
                "flagged_words": list(result.flagged_words),
            },
        )
        raise InappropriateContentError(result)

    async def add_review(
        self,
        *,
        service_id: str,
        user_id: str,
        rating: int,
        comment: str = "",
    ) -> Review:
        review = Review(service_id=service_id, user_id=user_id, rating=rating, comment=comment)
        if comment:
            await self._gate(comment, "add")
        return self.store.add(review)

    async def update_review(
        self,
        review_id: str,
        *,
        user_id: str,
        rating: Optional[int] = None,
        comment: Optional[str] = None,
    ) -> Review:
        current = self.store.get(review_id)
        if current is None:
            raise ReviewNotFound(review_id)
        if current.user_id != user_id:
            raise ReviewPermissionError("You can only edit your own reviews")

        changes: Dict[str, object] = {"updated_at": _now()}
        if rating is not None:
            changes["rating"] = rating
        if comment is not None:
            if comment:
                await self._gate(comment, "update")
            changes["comment"] = comment
        updated = Review.model_validate({**current.model_dump(), **changes})
        return self.store.update(updated)


__all__ = [
    "INAPPROPRIATE_MESSAGE",
    "InMemoryReviewStore",
    "InappropriateContentError",
    "Review",
    "ReviewNotFound",
    "ReviewPermissionError",
    "ReviewService",
    "ReviewStore",
]
