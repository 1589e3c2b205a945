"""Structured Logging: one JSON object per record for the sync layer.

Invariants:
    - Every record carries timestamp (the record's own creation time, UTC),
      level, logger and message
    - Sync context fields (project_id, collection, operation, error_code,
      auth_event, task) appear only when the caller passed them in `extra`
    - setup_logging() replaces the handler it installed earlier instead of
      stacking a second one
    - HTTP client loggers stay at WARNING: every PostgREST and auth request
      would otherwise log at INFO

Design Decisions:
    - JSONFormatter on stdlib logging, the way the rest of the stack logs
    - setup_logging called once from main.create_storage()
"""

import json
import logging
from datetime import datetime, timezone

CONTEXT_FIELDS = (
    "project_id", "collection", "operation", "error_code", "auth_event", "task",
)
CHATTY_LOGGERS = ("httpx", "httpcore", "hpack")
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """Renders a record and its sync context fields as a JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (field, getattr(record, field))
            for field in CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class _BoardSyncHandler(logging.StreamHandler):
    """Marks the handler setup_logging owns."""


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    root = logging.getLogger()
    for handler in [h for h in root.handlers if isinstance(h, _BoardSyncHandler)]:
        root.removeHandler(handler)
    handler = _BoardSyncHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
