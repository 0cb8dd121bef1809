"""Global JSON error handling with stable error codes and request correlation."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.middleware.request_id import REQUEST_ID_HEADER, get_request_id

log = logging.getLogger(__name__)

# Map common HTTP statuses to stable machine-readable codes
_STATUS_TO_CODE = {
    400: "bad_request",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    415: "unsupported_media_type",
    422: "validation_error",
    429: "rate_limited",
}


def _rid_from_request(request: Request) -> str:
    """Best-effort request id:
    1) context var set by RequestIDMiddleware
    2) inbound header from client
    3) new UUID4
    """
    return get_request_id() or request.headers.get(REQUEST_ID_HEADER) or str(uuid4())


def json_error(
    request: Request,
    *,
    error: str,
    status: int,
    code: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    rid = _rid_from_request(request)
    body: Dict[str, Any] = {
        "error": error,
        "code": code or _STATUS_TO_CODE.get(status, "error"),
        "request_id": rid,
    }
    if extra:
        body.update(extra)
    resp = JSONResponse(status_code=status, content=body)
    resp.headers[REQUEST_ID_HEADER] = rid
    return resp


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        code = _STATUS_TO_CODE.get(exc.status_code, "error")
        return json_error(request, error=detail, status=exc.status_code, code=code)

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return json_error(
            request,
            error="Validation failed",
            status=422,
            code="validation_error",
            extra={"errors": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception) -> JSONResponse:
        # Do not leak internals; the log line carries the traceback and request_id.
        log.exception("unhandled error", extra={"path": request.url.path})
        return json_error(
            request,
            error="Internal server error",
            status=500,
            code="internal_error",
        )


def jsonable_errors(exc: RequestValidationError) -> list[Dict[str, Any]]:
    out: list[Dict[str, Any]] = []
    for err in exc.errors():
        out.append(
            {
                "loc": [str(part) for part in err.get("loc", ())],
                "msg": str(err.get("msg", "")),
                "type": str(err.get("type", "")),
            }
        )
    return out
