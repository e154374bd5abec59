"""Tests for Spider MCP validators module."""

import pytest

from spider_mcp.mcp.exceptions import SpiderValidationError
from spider_mcp.mcp.tools._common import check_return_format
from spider_mcp.mcp.validators import (
    validate_engine,
    validate_expression,
    validate_positive_int,
    validate_query,
    validate_request_type,
    validate_return_format,
    validate_session_id,
    validate_stealth,
    validate_timeout,
    validate_url,
)


class TestValidateUrl:
    """Test URL validation."""

    def test_valid_https_url(self):
        """Should accept valid HTTPS URL."""
        assert validate_url("https://example.com/path?q=1") == "https://example.com/path?q=1"

    def test_strips_whitespace(self):
        """Should strip leading/trailing whitespace."""
        assert validate_url("  https://example.com  ") == "https://example.com"

    @pytest.mark.parametrize("value", [None, "", "   ", 42, "example.com", "ftp://example.com", "https://"])
    def test_rejects_invalid(self, value):
        """Should reject missing, non-string, schemeless and hostless URLs."""
        with pytest.raises(SpiderValidationError) as exc_info:
            validate_url(value)
        assert exc_info.value.field == "url"


class TestStringValidators:
    """Session ids, expressions and queries."""

    def test_session_id(self):
        assert validate_session_id(" 1b4e28ba-2fa1-11d2-883f-0016d3cca427 ") == "1b4e28ba-2fa1-11d2-883f-0016d3cca427"

    def test_session_id_required(self):
        with pytest.raises(SpiderValidationError, match="session_id is required"):
            validate_session_id(None)

    def test_expression_must_be_string(self):
        with pytest.raises(SpiderValidationError, match="expression must be a string"):
            validate_expression(123)

    def test_query_too_long(self):
        with pytest.raises(SpiderValidationError, match="too long"):
            validate_query("q" * 2001)


class TestChoiceValidators:
    """Engines, stealth levels, formats and request types."""

    @pytest.mark.parametrize("engine", ["chrome", "chrome-new", "firefox", "auto", None])
    def test_engine_accepted(self, engine):
        assert validate_engine(engine) == engine

    def test_engine_rejected(self):
        with pytest.raises(SpiderValidationError, match="browser must be one of"):
            validate_engine("webkit")

    @pytest.mark.parametrize("level", [0, 1, 2, 3, None])
    def test_stealth_accepted(self, level):
        assert validate_stealth(level) == level

    @pytest.mark.parametrize("level", [-1, 4, True, "2", 1.5])
    def test_stealth_rejected(self, level):
        with pytest.raises(SpiderValidationError):
            validate_stealth(level)

    def test_return_format(self):
        assert validate_return_format("markdown") == "markdown"
        with pytest.raises(SpiderValidationError):
            validate_return_format("pdf")

    def test_return_format_list(self):
        assert check_return_format(["markdown", "text"]) == ["markdown", "text"]
        with pytest.raises(SpiderValidationError, match="format names"):
            check_return_format(["markdown", ""])

    def test_request_type(self):
        assert validate_request_type("smart") == "smart"
        with pytest.raises(SpiderValidationError):
            validate_request_type("firefox")


class TestNumericValidators:
    """Timeouts and counts."""

    @pytest.mark.parametrize("value", [1, 10000, 300000])
    def test_timeout_accepted(self, value):
        assert validate_timeout(value) == value

    @pytest.mark.parametrize("value", [0, -5, 300001, "1000", True, None])
    def test_timeout_rejected(self, value):
        with pytest.raises(SpiderValidationError):
            validate_timeout(value)

    def test_positive_int(self):
        assert validate_positive_int(None, "limit") is None
        assert validate_positive_int(3, "limit") == 3
        assert validate_positive_int(0, "limit", allow_zero=True) == 0

    @pytest.mark.parametrize("value", [0, -1, False, "5"])
    def test_positive_int_rejected(self, value):
        with pytest.raises(SpiderValidationError, match="limit must be an integer >= 1"):
            validate_positive_int(value, "limit")
