"""
Correlation ID tracking for tool calls.

Each tool call gets an 8-character id that is attached to log lines and to
errors returned to the MCP host, so a failed browser action can be matched
with the server log.

Usage:
    >>> from spider_mcp.mcp.mcp_common.correlation import generate_correlation_id
    >>> len(generate_correlation_id())
    8
"""

import contextvars
import uuid

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("correlation_id", default=None)


def generate_correlation_id() -> str:
    """
    Generate a correlation ID and make it current for this async context.

    Returns:
        First 8 characters of a UUID4 hex string.
    """
    corr_id = uuid.uuid4().hex[:8]
    _correlation_id.set(corr_id)
    return corr_id


def get_correlation_id() -> str | None:
    """Return the correlation ID of the current async context, if any."""
    return _correlation_id.get()


def set_correlation_id(corr_id: str) -> None:
    """Propagate a correlation ID from an outer context."""
    _correlation_id.set(corr_id)


def clear_correlation_id() -> None:
    _correlation_id.set(None)
