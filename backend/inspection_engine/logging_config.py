# backend/inspection_engine/logging_config.py
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from .middleware.request_id import get_request_id

# Keys domain code passes through `extra=` that belong on the log line.
EXTRA_FIELDS = ("inspection_id", "scope", "key", "catalog_version", "final_score", "passed", "critical")


class JsonFormatter(logging.Formatter):
    """
    Renders a record as one JSON object.

    Inspection context travels in the whitelisted extras above; anything else
    set on the record is left out. Non-JSON values (Decimal, datetime) are
    stringified.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = get_request_id()
        if rid:
            payload["request_id"] = rid

        payload.update({k: getattr(record, k) for k in EXTRA_FIELDS if hasattr(record, k)})

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(stream: TextIO | None = None) -> None:
    """
    Send every logger through a single JSON handler on `stream` (stdout by
    default). LOG_LEVEL sets the level; SQL_LOG_LEVEL tunes SQLAlchemy on its own.
    """
    level = (os.getenv("LOG_LEVEL") or "INFO").upper()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    # Replace, not stack: uvicorn --reload and repeated create_app() calls both land here.
    root.handlers[:] = [handler]
    root.setLevel(level)

    logging.getLogger("uvicorn.access").setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel((os.getenv("SQL_LOG_LEVEL") or "WARNING").upper())
