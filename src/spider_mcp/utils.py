"""Utility functions for spider_mcp."""

import json
import logging
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from spider_mcp.exceptions import generate_correlation_id

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_CONTENT_LENGTH = 200_000

TRUNCATION_NOTICE = (
    "\n\n[Response truncated at 200K characters. Use the `limit` parameter to reduce result size.]"
)


def log_with_correlation(
    logger: logging.Logger,
    level: int,
    message: str,
    correlation_id: str | None = None,
    **kwargs: Any,
) -> None:
    """
    Log a message with correlation ID and additional context.

    Args:
        logger: Logger instance to use.
        level: Logging level (e.g., logging.INFO, logging.ERROR).
        message: Log message format string.
        correlation_id: Optional correlation ID. If None, generates a new one.
        **kwargs: Additional context to include in log extra fields.
    """
    corr_id = correlation_id or generate_correlation_id()
    extra = {"correlation_id": corr_id, **kwargs}
    logger.log(level, message, extra=extra)


def format_result(data: Any, max_length: int = DEFAULT_MAX_CONTENT_LENGTH) -> str:
    """
    Render an API response as text for MCP tool output.

    Strings pass through; everything else is pretty-printed JSON. Output
    longer than ``max_length`` is cut and a notice appended.

    Args:
        data: Decoded API response.
        max_length: Maximum number of characters before truncation.

    Returns:
        Text suitable for a tool result.
    """
    text = data if isinstance(data, str) else json.dumps(data, indent=2, ensure_ascii=False)
    if len(text) > max_length:
        return text[:max_length] + TRUNCATION_NOTICE
    return text


def compact_params(params: dict[str, Any], extra: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Build a request body from tool parameters.

    Drops ``None`` values so the API applies its own defaults, then merges
    ``extra`` on top. Explicit parameters win over keys repeated in ``extra``.

    Args:
        params: Named tool parameters.
        extra: Passthrough options for less common API fields.

    Returns:
        Request body dictionary.
    """
    body: dict[str, Any] = {}
    if extra:
        body.update({k: v for k, v in extra.items() if v is not None})
    body.update({k: v for k, v in params.items() if v is not None})
    return body


def redact_token(url: str) -> str:
    """
    Hide the ``token`` query parameter of a URL for logging.

    Args:
        url: URL that may carry a token.

    Returns:
        URL with the token value replaced.
    """
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [(k, "***" if k.lower() == "token" else v) for k, v in parse_qsl(parts.query, keep_blank_values=True)]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query, safe="*"), parts.fragment))
