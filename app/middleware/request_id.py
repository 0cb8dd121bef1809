# app/middleware/request_id.py
"""Per-request correlation id, shared with log lines and error bodies."""
from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_current: ContextVar[Optional[str]] = ContextVar("moderation_request_id", default=None)


def get_request_id() -> Optional[str]:
    return _current.get()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's X-Request-ID or mint one; always echo it back."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER, "").strip() or uuid.uuid4().hex
        token = _current.set(rid)
        try:
            response = await call_next(request)
        finally:
            _current.reset(token)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
