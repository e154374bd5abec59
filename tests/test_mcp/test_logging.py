"""Tests for structured logging and correlation ids."""

import io
import json
import logging

import pytest

from spider_mcp.mcp.mcp_common.correlation import (
    clear_correlation_id,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from spider_mcp.mcp.mcp_common.logging import (
    REDACTED,
    CorrelationIdFilter,
    JSONFormatter,
    get_log_level_from_env,
    redact_sensitive_data,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_correlation():
    clear_correlation_id()
    yield
    clear_correlation_id()


def _record(message: str, level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("spider_mcp.test", level, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRedaction:
    """Credentials never reach the log stream."""

    @pytest.mark.parametrize(
        "message",
        [
            "wss://browser.spider.cloud/v1/browser?token=sk-abc12345xyz",
            'payload {"api_key": "sk-live-1234567890"}',
            "Authorization: Bearer sk-live-1234567890",
            "leaked sk-live-1234567890 in text",
            "password=hunter2",
        ],
    )
    def test_secrets_redacted(self, message):
        redacted = redact_sensitive_data(message)
        assert REDACTED in redacted
        assert "1234567890" not in redacted
        assert "abc12345xyz" not in redacted
        assert "hunter2" not in redacted

    def test_plain_text_untouched(self):
        assert redact_sensitive_data("Opened browser session 42") == "Opened browser session 42"


class TestJSONFormatter:
    """One JSON object per line with service metadata."""

    def test_fields(self):
        formatter = JSONFormatter("spider-cloud-mcp", "2.1.0")
        data = json.loads(formatter.format(_record("Opened browser session abc", correlation_id="abc12345")))

        assert data["level"] == "INFO"
        assert data["logger"] == "spider_mcp.test"
        assert data["correlation_id"] == "abc12345"
        assert data["service_name"] == "spider-cloud-mcp"
        assert data["service_version"] == "2.1.0"
        assert data["log_type"] == "session"

    @pytest.mark.parametrize(
        ("message", "level", "expected"),
        [
            ("Spider API request: POST /crawl", logging.DEBUG, "request"),
            ("Initialising spider-cloud-mcp...", logging.INFO, "startup"),
            ("Cleanup complete", logging.INFO, "shutdown"),
            ("something broke", logging.ERROR, "error"),
            ("Registered 23 Spider tools", logging.INFO, "application"),
        ],
    )
    def test_log_type(self, message, level, expected):
        data = json.loads(JSONFormatter("svc", "1").format(_record(message, level)))
        assert data["log_type"] == expected

    def test_explicit_log_type_and_extras(self):
        record = _record("custom", log_type="audit", endpoint="/crawl", note="token=sk-secret12345")
        data = json.loads(JSONFormatter("svc", "1", include_location=True).format(record))

        assert data["log_type"] == "audit"
        assert data["endpoint"] == "/crawl"
        assert "sk-secret12345" not in data["note"]
        assert "line" in data

    def test_context_correlation_id_used(self):
        set_correlation_id("ctx12345")
        data = json.loads(JSONFormatter("svc", "1").format(_record("hello", correlation_id="-")))
        assert data["correlation_id"] == "ctx12345"


class TestCorrelation:
    def test_generate_sets_context(self):
        cid = generate_correlation_id()
        assert len(cid) == 8
        assert get_correlation_id() == cid

    def test_clear(self):
        set_correlation_id("abc")
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_filter_adds_default(self):
        record = _record("x")
        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "-"


class TestSetup:
    def test_level_from_env(self, monkeypatch):
        monkeypatch.delenv("SPIDER_LOG_LEVEL", raising=False)
        monkeypatch.setenv("LOG_LEVEL", "warning")
        assert get_log_level_from_env() == logging.WARNING

        monkeypatch.setenv("SPIDER_LOG_LEVEL", "nonsense")
        assert get_log_level_from_env() == logging.INFO

    def test_setup_writes_json_to_stream(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        stream = io.StringIO()
        try:
            setup_logging(JSONFormatter("svc", "1"), level=logging.INFO, stream=stream)
            logging.getLogger("spider_mcp.test").info("hello")
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

        assert json.loads(stream.getvalue().strip())["message"] == "hello"
