"""JSON-lines logging; each line carries the request correlation id."""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator

CORRELATION_ID_CTX: ContextVar[str] = ContextVar("correlation_id", default="")

# Attributes passed through ``extra=`` that are promoted into the JSON line.
STRUCTURED_FIELDS = (
    "user_id",
    "message_code",
    "method",
    "path",
    "status_code",
    "collection",
    "client_ip",
)


class JsonLogFormatter(logging.Formatter):
    """Render a log record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        correlation_id = CORRELATION_ID_CTX.get()
        if correlation_id:
            entry["correlation_id"] = correlation_id

        entry.update(
            {
                field: getattr(record, field)
                for field in STRUCTURED_FIELDS
                if getattr(record, field, None) not in (None, "")
            }
        )

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Replace root handlers with one stdout handler using ``JsonLogFormatter``."""
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonLogFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.addHandler(handler)
    # uvicorn installs its own access log; ours is emitted by the request middleware.
    logging.getLogger("uvicorn.access").propagate = False


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the duration of a request."""
    value = correlation_id or uuid.uuid4().hex
    token = CORRELATION_ID_CTX.set(value)
    try:
        yield value
    finally:
        CORRELATION_ID_CTX.reset(token)
