# app/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from app.config import Settings, get_settings
from app.middleware.request_id import RequestIDMiddleware
from app.net.http_client import close_http_client
from app.routes.content_analysis import router as content_analysis_router
from app.routes.health import router as health_router
from app.routes.reviews import router as reviews_router
from app.services.moderation.pipeline import ContentModerator, get_moderator
from app.telemetry.errors import register_error_handlers
from app.telemetry.logging import configure_root_logging

log = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "moderation", "description": "Review text analysis."},
    {"name": "reviews", "description": "Moderated review writes."},
    {"name": "ops", "description": "Health, version and metrics."},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    moderator: ContentModerator = app.state.moderator
    if not getattr(moderator.scorer, "configured", True):
        log.warning("Perspective API key is missing; remote toxicity scoring is disabled")
    try:
        yield
    finally:
        await close_http_client()


def create_app(
    settings: Optional[Settings] = None,
    moderator: Optional[ContentModerator] = None,
) -> FastAPI:
    """Build the service. Without explicit settings or moderator the app uses the
    process-wide moderator from ``get_moderator()``."""
    s = settings or get_settings()
    if s.LOG_JSON:
        configure_root_logging(s.LOG_LEVEL)

    app = FastAPI(
        title=s.APP_NAME,
        description="Content moderation for service reviews.",
        version=s.VERSION,
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )
    app.state.settings = s
    if moderator is None:
        moderator = ContentModerator.from_settings(settings) if settings else get_moderator()
    app.state.moderator = moderator

    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(content_analysis_router)
    app.include_router(reviews_router)
    return app


app = create_app()
