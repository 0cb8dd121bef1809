# app/telemetry/logging.py
"""JSON log lines for the moderation service.

Verdict and scorer logs pass their fields through ``extra`` (``source``,
``content_type``, ``flagged_words``, ``scorer``, ``error_type`` ...); each
one becomes a top-level key next to the timestamp, level and message.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from app.middleware.request_id import get_request_id

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


def _utc(ts: float) -> str:
    return (
        datetime.fromtimestamp(ts, tz=timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class JsonFormatter(logging.Formatter):
    """One JSON object per line; flagged Arabic terms stay readable (no \\u escapes)."""

    def format(self, record: logging.LogRecord) -> str:
        fields: Dict[str, Any] = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        entry: Dict[str, Any] = {
            "ts": _utc(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        rid = fields.pop("request_id", None) or get_request_id()
        if rid:
            entry["request_id"] = rid
        entry.update(fields)
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        # Tuples (flagged_words) serialize as lists; anything else falls back to str.
        return json.dumps(entry, ensure_ascii=False, default=str)


_installed = False


def configure_root_logging(level: int | str = "INFO") -> None:
    """Send root logs to stdout as JSON. Repeated calls are no-ops."""
    global _installed
    if _installed:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, handlers=[handler], force=True)
    _installed = True
