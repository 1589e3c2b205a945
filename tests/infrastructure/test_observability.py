"""Structured Logging: JSON formatter output and handler setup."""

import json
import logging

from boardsync.infrastructure.observability import JSONFormatter, setup_logging


def make_record(**extra):
    record = logging.LogRecord(
        "boardsync.services.board_content", logging.WARNING, __file__, 1,
        "upsert failed", None, None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_base_fields_present():
    payload = json.loads(JSONFormatter().format(make_record()))
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "boardsync.services.board_content"
    assert payload["message"] == "upsert failed"
    assert "timestamp" in payload


def test_extra_fields_surface_when_set():
    payload = json.loads(JSONFormatter().format(
        make_record(project_id="p1", collection="board_data", unrelated="x"),
    ))
    assert payload["project_id"] == "p1"
    assert payload["collection"] == "board_data"
    assert "unrelated" not in payload
    assert "operation" not in payload


def test_timestamp_is_record_creation_time():
    record = make_record()
    record.created = 1767225600.0
    payload = json.loads(JSONFormatter().format(record))
    assert payload["timestamp"] == "2026-01-01T00:00:00+00:00"


def test_setup_logging_replaces_its_own_handler():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        setup_logging("DEBUG", "json")
        setup_logging("WARNING", "text")
        added = [h for h in root.handlers if h not in before]
        assert len(added) == 1
        assert not isinstance(added[0].formatter, JSONFormatter)
        assert root.level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        for handler in [h for h in root.handlers if h not in before]:
            root.removeHandler(handler)
        root.setLevel(level)
