"""Custom exceptions for the Spider MCP server.

All exceptions inherit from mcp_common.exceptions for consistent error handling.
``map_exception`` converts library, httpx and Playwright errors into them.
"""

import httpx
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from pydantic import ValidationError as PydanticValidationError

from spider_mcp.exceptions import (
    BrowserConnectionError,
    CapacityExceededError,
    ConfigurationError,
    ProviderError,
    SessionNotFoundError,
    SpiderError,
)
from spider_mcp.exceptions import ValidationError as LibValidationError
from spider_mcp.mcp.mcp_common.exceptions import (
    MCPClientError,
    MCPConnectionError,
    MCPError,
    MCPNotFoundError,
    MCPServerError,
    MCPTimeoutError,
    MCPValidationError,
    log_tool_exception,
    map_status_to_exception,
)


class SpiderMCPError(MCPError):
    """Base exception for all Spider MCP errors."""


class SpiderClientError(MCPClientError):
    """Client error (4xx) - bad request, missing configuration, capacity reached."""


class SpiderValidationError(MCPValidationError):
    """Validation error - invalid input parameters."""


class SpiderServerError(MCPServerError):
    """Server error (5xx) from the Spider API."""


class SpiderConnectionError(MCPConnectionError):
    """Connection error - API or remote browser unreachable."""


class SpiderTimeoutError(MCPTimeoutError):
    """Timeout error - request, navigation or selector wait timed out."""


class SpiderSessionNotFoundError(MCPNotFoundError):
    """Browser session id is unknown, expired or closed."""


def map_exception(
    exception: Exception,
    endpoint: str | None = None,
    correlation_id: str | None = None,
) -> MCPError:
    """
    Map library exceptions to MCP-friendly exceptions.

    Args:
        exception: Exception raised while serving a tool call
        endpoint: API endpoint or tool that raised the exception
        correlation_id: Correlation ID for request tracking

    Returns:
        Mapped MCP exception
    """
    if isinstance(exception, MCPError):
        return exception

    common = {"endpoint": endpoint, "correlation_id": correlation_id}

    if isinstance(exception, CapacityExceededError):
        return SpiderClientError(str(exception), status_code=429, **common)

    if isinstance(exception, SessionNotFoundError):
        return SpiderSessionNotFoundError(str(exception), **common)

    if isinstance(exception, BrowserConnectionError):
        return SpiderConnectionError(str(exception), **common)

    if isinstance(exception, ProviderError):
        if exception.status_code is not None:
            return map_status_to_exception(
                exception.status_code, str(exception), retry_after=exception.retry_after, **common
            )
        return SpiderServerError(str(exception), **common)

    if isinstance(exception, ConfigurationError):
        return SpiderClientError(f"Configuration error: {exception}", **common)

    if isinstance(exception, LibValidationError):
        return SpiderValidationError(str(exception), field=exception.context.get("field"), **common)

    if isinstance(exception, PydanticValidationError):
        return SpiderValidationError(f"Validation failed: {exception}", **common)

    if isinstance(exception, httpx.TimeoutException):
        return SpiderTimeoutError(f"Request timed out: {exception}", **common)

    if isinstance(exception, httpx.HTTPStatusError):
        status_code = exception.response.status_code
        return map_status_to_exception(status_code, f"HTTP error ({status_code}): {exception}", **common)

    if isinstance(exception, httpx.TransportError):
        return SpiderConnectionError(f"Connection failed: {exception}", **common)

    if isinstance(exception, PlaywrightTimeoutError):
        return SpiderTimeoutError(f"Browser action timed out: {exception}", **common)

    if isinstance(exception, PlaywrightError):
        return SpiderClientError(f"Browser action failed: {exception}", **common)

    if isinstance(exception, TimeoutError):
        return SpiderTimeoutError(f"Operation timed out: {exception}", **common)

    if isinstance(exception, (ConnectionError, OSError)):
        return SpiderConnectionError(f"Connection failed: {exception}", **common)

    if isinstance(exception, SpiderError):
        return SpiderMCPError(str(exception), **common)

    if isinstance(exception, ValueError):
        return SpiderValidationError(str(exception), **common)

    return SpiderMCPError(f"Unexpected error: {exception}", **common)


__all__ = [
    "SpiderClientError",
    "SpiderConnectionError",
    "SpiderMCPError",
    "SpiderServerError",
    "SpiderSessionNotFoundError",
    "SpiderTimeoutError",
    "SpiderValidationError",
    "log_tool_exception",
    "map_exception",
]
