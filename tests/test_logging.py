"""Tests for structured logging helpers."""

from __future__ import annotations

import json
import logging
import sys

from republisher.config import LangfuseConfig, LoggingConfig
from republisher.utils.logging import (
    REDACTION_MODES,
    JsonlFormatter,
    log_event,
    redact_text,
    setup_llm_logger,
    setup_logging,
    truncate_text,
)


def test_log_event_writes_jsonl_fields(tmp_path):
    setup_logging(LoggingConfig(console=False, file=True, filename="run.jsonl"), tmp_path)

    log_event(logging.getLogger("republisher.runner"), "Article saved", event="article_saved", slug="xe-dien", name="x")
    for handler in logging.getLogger("republisher").handlers:
        handler.flush()

    lines = (tmp_path / "run.jsonl").read_text(encoding="utf-8").splitlines()
    payload = json.loads(lines[-1])
    assert payload["message"] == "Article saved"
    assert payload["logger"] == "republisher.runner"
    assert payload["event"] == "article_saved"
    assert payload["slug"] == "xe-dien"
    assert payload["name_"] == "x"

    setup_logging(LoggingConfig(console=False), None)


def test_log_event_without_logger_is_noop():
    log_event(None, "ignored", event="x")


def test_llm_logger_requires_opt_in(tmp_path):
    assert setup_llm_logger(LoggingConfig(), tmp_path) is None
    assert setup_llm_logger(LoggingConfig(llm_log_enabled=True), None) is None


def test_redaction_modes():
    text = "Xem https://example.com/a ngay"

    assert redact_text(text, "none") == text
    assert redact_text(text, "redact_content") == ""
    assert redact_text(text, "redact_urls") == "Xem [REDACTED_URL] ngay"
    assert redact_text(text, "unknown") == text


def test_default_redaction_modes_are_known():
    assert LoggingConfig().llm_log_redaction in REDACTION_MODES
    assert LangfuseConfig().redaction in REDACTION_MODES


def test_jsonl_formatter_uses_record_time_and_exception():
    try:
        raise ValueError("hỏng")
    except ValueError:
        record = logging.LogRecord("republisher.x", logging.ERROR, __file__, 1, "Lỗi", None, sys.exc_info())
    record.created = 0.0
    record.slug = "xe-dien"

    payload = json.loads(JsonlFormatter().format(record))

    assert payload["timestamp"] == "1970-01-01T00:00:00+00:00"
    assert payload["message"] == "Lỗi"
    assert payload["slug"] == "xe-dien"
    assert "ValueError: hỏng" in payload["exception"]
    assert "lineno" not in payload


def test_truncate_text():
    assert truncate_text("abc", 5) == "abc"
    assert truncate_text("abcdef", 3) == "abc...(truncated)"
