"""
Exception hierarchy returned to MCP hosts.

Tool functions translate library errors into these types so the host sees
a consistent message, status code and correlation id.

Usage:
    >>> raise MCPNotFoundError("Browser session not found", endpoint="browser/navigate")
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class MCPError(Exception):
    """
    Base exception for all MCP errors.

    Attributes:
        message: Human-readable error message
        endpoint: API endpoint or tool that caused the error
        status_code: HTTP status code (if applicable)
        correlation_id: Request correlation ID for tracing
        context: Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        *,
        endpoint: str | None = None,
        status_code: int | None = None,
        correlation_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.endpoint = endpoint
        self.status_code = status_code
        self.correlation_id = correlation_id
        self.context = context or {}

        parts = [message]
        if correlation_id:
            parts.append(f"[cid={correlation_id}]")
        if status_code:
            parts.append(f"(status={status_code})")
        super().__init__(" ".join(parts))

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"endpoint={self.endpoint!r}, "
            f"status_code={self.status_code!r}, "
            f"correlation_id={self.correlation_id!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging and serialisation."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "endpoint": self.endpoint,
            "status_code": self.status_code,
            "correlation_id": self.correlation_id,
            "context": self.context,
        }


class MCPClientError(MCPError):
    """Client error (4xx). Retrying the same request will not help."""


class MCPServerError(MCPError):
    """Server error (5xx) from the Spider API."""


class MCPValidationError(MCPError):
    """
    Invalid tool input, detected before any API or browser call.

    Attributes:
        field: Name of the invalid field
        value: The invalid value
    """

    def __init__(self, message: str, *, field: str | None = None, value: Any = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class MCPNotFoundError(MCPClientError):
    """Resource not found (404)."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.pop("status_code", None)
        super().__init__(message, status_code=404, **kwargs)


class MCPUnauthorizedError(MCPClientError):
    """Invalid or missing API key (401)."""

    def __init__(self, message: str = "Unauthorized - invalid or missing API key", **kwargs: Any) -> None:
        kwargs.pop("status_code", None)
        super().__init__(message, status_code=401, **kwargs)


class MCPPaymentRequiredError(MCPClientError):
    """Account is out of credits (402)."""

    def __init__(self, message: str = "Insufficient credits", **kwargs: Any) -> None:
        kwargs.pop("status_code", None)
        super().__init__(message, status_code=402, **kwargs)


class MCPForbiddenError(MCPClientError):
    """API key lacks permission for the endpoint (403)."""

    def __init__(self, message: str = "Forbidden - insufficient permissions", **kwargs: Any) -> None:
        kwargs.pop("status_code", None)
        super().__init__(message, status_code=403, **kwargs)


class MCPRateLimitError(MCPClientError):
    """
    Rate limit exceeded (429).

    Attributes:
        retry_after: Seconds to wait before retrying (from Retry-After header)
    """

    def __init__(self, message: str = "Rate limit exceeded", *, retry_after: int | None = None, **kwargs: Any) -> None:
        kwargs.pop("status_code", None)
        super().__init__(message, status_code=429, **kwargs)
        self.retry_after = retry_after


class MCPConnectionError(MCPError):
    """Cannot reach the Spider API or the remote browser."""


class MCPTimeoutError(MCPError):
    """A request or browser action timed out."""


def map_status_to_exception(
    status_code: int,
    message: str,
    *,
    endpoint: str | None = None,
    correlation_id: str | None = None,
    retry_after: int | None = None,
) -> MCPError:
    """
    Map an HTTP status code to the matching exception type.

    Args:
        status_code: HTTP status code
        message: Error message
        endpoint: API endpoint that caused the error
        correlation_id: Request correlation ID
        retry_after: Retry-After header value (for 429 responses)

    Returns:
        Exception instance for the status code
    """
    common: dict[str, Any] = {"endpoint": endpoint, "correlation_id": correlation_id}
    if status_code == 401:
        return MCPUnauthorizedError(message, **common)
    if status_code == 402:
        return MCPPaymentRequiredError(message, **common)
    if status_code == 403:
        return MCPForbiddenError(message, **common)
    if status_code == 404:
        return MCPNotFoundError(message, **common)
    if status_code == 429:
        return MCPRateLimitError(message, retry_after=retry_after, **common)
    if 400 <= status_code < 500:
        return MCPClientError(message, status_code=status_code, **common)
    if 500 <= status_code < 600:
        return MCPServerError(message, status_code=status_code, **common)
    return MCPError(message, status_code=status_code, **common)


def log_tool_exception(tool_name: str, exception: Exception, correlation_id: str | None = None) -> None:
    """
    Log a tool failure at a level matching its cause.

    Client and validation errors are expected and logged at WARNING without
    a traceback. Everything else is logged at ERROR with one.
    """
    prefix = f"[{correlation_id}] " if correlation_id else ""
    if isinstance(exception, (MCPClientError, MCPValidationError)):
        logger.warning(f"{prefix}TOOL ERROR: {tool_name} failed: {exception}")
    else:
        logger.error(f"{prefix}TOOL ERROR: {tool_name} failed: {exception}", exc_info=True)
