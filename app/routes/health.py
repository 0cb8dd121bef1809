from __future__ import annotations

import os
import platform
import sys
from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from app import config

router = APIRouter(tags=["ops"])


@router.get("/health")
def health(request: Request) -> Dict[str, Any]:
    moderator = request.app.state.moderator
    return {
        "status": "ok",
        "service": config.SERVICE_NAME,
        "scorer_configured": bool(getattr(moderator.scorer, "configured", True)),
        "fallback": moderator.fallback.value,
        "lexicon_version": moderator.lexicon.version,
    }


@router.get("/version")
def version() -> Dict[str, object]:
    return {
        "version": os.getenv("APP_VERSION", config.APP_VERSION),
        "git_sha": os.getenv("GIT_SHA", config.GIT_SHA),
        "build_ts": os.getenv("BUILD_TS", config.BUILD_TS),
        "runtime": {
            "python": sys.version.split(" ")[0],
            "platform": platform.platform(),
        },
    }


@router.get("/metrics", include_in_schema=False)
def metrics() -> PlainTextResponse:
    return PlainTextResponse(generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
