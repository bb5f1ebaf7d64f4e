import json
import logging

from chat_core.infrastructure.logging.logger import JsonFormatter


def _record(extra):
    record = logging.LogRecord("chat_core", logging.WARNING, __file__, 1, "generation.fallback_triggered", None, None)
    record.extra = extra
    return record


def test_formatter_merges_extra_fields():
    line = JsonFormatter().format(_record({"trace_id": "tr-1", "error": "boom"}))
    data = json.loads(line)
    assert data["msg"] == "generation.fallback_triggered"
    assert data["level"] == "WARNING"
    assert data["trace_id"] == "tr-1"
    assert data["error"] == "boom"


def test_formatter_redacts_content_fields():
    data = json.loads(JsonFormatter(redact=True).format(_record({"trace_id": "tr-1", "error": "user secret"})))
    assert data["trace_id"] == "tr-1"
    assert data["error"] == "<redacted 11 chars>"
