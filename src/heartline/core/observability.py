"""Structured logging setup for the Heartline service.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides how records are rendered. Ids passed through ``extra`` (user_id,
conversation_id, ...) are surfaced as top-level JSON keys.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

_EXTRA_KEYS = (
    "user_id",
    "target_id",
    "conversation_id",
    "message_id",
    "error_code",
    "path",
    "purged",
    "swept",
    "event",
)


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            value = record.__dict__.get(key)
            if value is not None:
                payload[key] = str(value) if not isinstance(value, (int, float)) else value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Install a single stream handler on the root logger."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_heartline", False):
            root.removeHandler(existing)
    handler._heartline = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
