"""Validation utilities for the Spider MCP server.

Tool arguments are checked before any API call or browser action so the host
gets a precise message instead of a remote error.
"""

from typing import Any
from urllib.parse import urlparse

from spider_mcp.mcp.exceptions import SpiderValidationError
from spider_mcp.models import BROWSER_ENGINES, REQUEST_TYPES, RETURN_FORMATS
from spider_mcp.services.remote_browser import MAX_STEALTH

MAX_TIMEOUT_MS = 300000


def _require_string(value: Any, field_name: str) -> str:
    if value is None:
        raise SpiderValidationError(f"{field_name} is required", field=field_name, value=value)
    if not isinstance(value, str):
        raise SpiderValidationError(
            f"{field_name} must be a string, got {type(value).__name__}",
            field=field_name,
            value=value,
        )
    stripped = value.strip()
    if not stripped:
        raise SpiderValidationError(f"{field_name} cannot be empty", field=field_name, value=value)
    return stripped


def validate_url(value: Any, field_name: str = "url") -> str:
    """
    Validate that a value is an http(s) URL with a host.

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Validated URL, stripped of surrounding whitespace

    Raises:
        SpiderValidationError: If value is not a valid URL
    """
    url = _require_string(value, field_name)

    if not url.startswith(("http://", "https://")):
        raise SpiderValidationError(
            f"{field_name} must start with http:// or https://, got '{url[:20]}...'",
            field=field_name,
            value=value,
        )

    if not urlparse(url).netloc:
        raise SpiderValidationError(f"{field_name} must have a valid host, got '{url}'", field=field_name, value=value)

    return url


def validate_session_id(value: Any) -> str:
    """Validate a browser session id returned by spider_browser_open."""
    return _require_string(value, "session_id")


def validate_selector(value: Any, field_name: str = "selector") -> str:
    return _require_string(value, field_name)


def validate_expression(value: Any) -> str:
    """Validate a JavaScript expression for spider_browser_evaluate."""
    return _require_string(value, "expression")


def validate_query(value: Any, field_name: str = "query", max_length: int = 2000) -> str:
    """
    Validate a search query.

    Raises:
        SpiderValidationError: If the query is empty or too long
    """
    query = _require_string(value, field_name)
    if len(query) > max_length:
        raise SpiderValidationError(
            f"{field_name} is too long ({len(query)} characters, max {max_length})",
            field=field_name,
            value=query[:50],
        )
    return query


def validate_prompt(value: Any, field_name: str = "prompt") -> str:
    """Validate a natural-language prompt for the AI tools."""
    return _require_string(value, field_name)


def validate_stealth(value: Any) -> int | None:
    """
    Validate a stealth level (0-3).

    Returns:
        The level, or None when not given
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise SpiderValidationError(
            f"stealth must be an integer between 0 and {MAX_STEALTH}", field="stealth", value=value
        )
    if not 0 <= value <= MAX_STEALTH:
        raise SpiderValidationError(f"stealth must be between 0 and {MAX_STEALTH}, got {value}", field="stealth", value=value)
    return value


def validate_engine(value: Any) -> str | None:
    """Validate a remote browser engine name."""
    if value is None:
        return None
    if value not in BROWSER_ENGINES:
        raise SpiderValidationError(
            f"browser must be one of {', '.join(BROWSER_ENGINES)}, got {value!r}",
            field="browser",
            value=value,
        )
    return value


def validate_choice(value: Any, choices: tuple[str, ...], field_name: str) -> str | None:
    """Validate an optional value against a fixed set of choices."""
    if value is None:
        return None
    if value not in choices:
        raise SpiderValidationError(
            f"{field_name} must be one of {', '.join(choices)}, got {value!r}",
            field=field_name,
            value=value,
        )
    return value


def validate_return_format(value: Any) -> str | None:
    return validate_choice(value, RETURN_FORMATS, "return_format")


def validate_request_type(value: Any) -> str | None:
    return validate_choice(value, REQUEST_TYPES, "request")


def validate_timeout(value: Any, field_name: str = "timeout") -> int:
    """
    Validate a timeout in milliseconds (1 to 300000).

    Raises:
        SpiderValidationError: If the value is not a positive integer in range
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise SpiderValidationError(f"{field_name} must be an integer (ms)", field=field_name, value=value)
    if not 1 <= value <= MAX_TIMEOUT_MS:
        raise SpiderValidationError(
            f"{field_name} must be between 1 and {MAX_TIMEOUT_MS} ms, got {value}",
            field=field_name,
            value=value,
        )
    return value


def validate_positive_int(value: Any, field_name: str, allow_zero: bool = False) -> int | None:
    """Validate an optional positive integer such as ``limit`` or ``depth``."""
    if value is None:
        return None
    minimum = 0 if allow_zero else 1
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise SpiderValidationError(
            f"{field_name} must be an integer >= {minimum}, got {value!r}",
            field=field_name,
            value=value,
        )
    return value
