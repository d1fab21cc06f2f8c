"""Structured Logging — verifies the JSON formatter and handler setup."""

import json
import logging

from livechat.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("livechat.test", logging.WARNING, __file__, 1, "Post rate limited", None, None)
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_extra_fields():
    line = JSONFormatter().format(_record(nickname="alice", cooldown_seconds=60))
    log = json.loads(line)

    assert log["level"] == "WARNING"
    assert log["logger"] == "livechat.test"
    assert log["message"] == "Post rate limited"
    assert log["nickname"] == "alice"
    assert log["cooldown_seconds"] == 60
    assert "message_id" not in log


def test_setup_logging_does_not_stack_handlers():
    setup_logging("DEBUG", "json")
    count = len(logging.root.handlers)
    setup_logging("INFO", "text")

    assert len(logging.root.handlers) == count
    assert logging.root.level == logging.INFO
