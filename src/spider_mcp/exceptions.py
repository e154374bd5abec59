"""Custom exceptions for spider_mcp with context support."""

import uuid
from typing import Any


def generate_correlation_id() -> str:
    """
    Generate an 8-character UUID-based correlation ID.

    Returns:
        8-character correlation ID string.
    """
    return str(uuid.uuid4())[:8]


class SpiderError(Exception):
    """Base exception for spider_mcp with context and correlation ID support."""

    def __init__(
        self,
        message: str,
        correlation_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialise exception with message, correlation ID, and context.

        Args:
            message: Error message.
            correlation_id: Optional correlation ID. If None, generates a new one.
            context: Optional context dictionary for debugging.
        """
        self.message = message
        self.correlation_id = correlation_id or generate_correlation_id()
        self.context = context or {}
        super().__init__(message)


class ValidationError(SpiderError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        correlation_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        if context is None:
            context = {}
        if field is not None:
            context["field"] = field
        if value is not None:
            context["value"] = str(value)
        super().__init__(message, correlation_id=correlation_id, context=context)


class ConfigurationError(SpiderError):
    """Raised when required configuration (e.g. the API key) is missing or invalid."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        correlation_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        if context is None:
            context = {}
        if setting is not None:
            context["setting"] = setting
        super().__init__(message, correlation_id=correlation_id, context=context)


class ProviderError(SpiderError):
    """Raised when a Spider API call fails.

    Attributes:
        status_code: HTTP status returned by the API, if any.
        retry_after: Seconds to wait before retrying, from a 429 response's Retry-After header.
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
        correlation_id: str | None = None,
        context: dict[str, Any] | None = None,
        retry_after: int | None = None,
    ) -> None:
        if context is None:
            context = {}
        if provider is not None:
            context["provider"] = provider
        if status_code is not None:
            context["status_code"] = status_code
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(message, correlation_id=correlation_id, context=context)


class BrowserConnectionError(ProviderError):
    """Raised when a remote browser cannot be connected."""

    def __init__(
        self,
        message: str,
        engine: str | None = None,
        correlation_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        if context is None:
            context = {}
        if engine is not None:
            context["engine"] = engine
        super().__init__(message, provider="spider-browser", correlation_id=correlation_id, context=context)


class SessionError(SpiderError):
    """Base class for browser session lifecycle errors."""


class CapacityExceededError(SessionError):
    """Raised when opening a session would exceed the concurrent session limit."""

    def __init__(self, limit: int, correlation_id: str | None = None) -> None:
        self.limit = limit
        super().__init__(
            f"Maximum {limit} concurrent browser sessions reached. "
            "Close an existing session with spider_browser_close first.",
            correlation_id=correlation_id,
            context={"limit": limit},
        )


class SessionNotFoundError(SessionError):
    """Raised when a session id is unknown, expired, or already closed."""

    def __init__(
        self,
        session_id: str,
        idle_timeout: float | None = None,
        correlation_id: str | None = None,
    ) -> None:
        self.session_id = session_id
        if idle_timeout is not None:
            minutes = int(idle_timeout // 60)
            timeout_hint = f"({minutes} min idle timeout)" if minutes else f"({int(idle_timeout)} s idle timeout)"
        else:
            timeout_hint = "(idle timeout)"
        super().__init__(
            f"Browser session not found. It may have expired {timeout_hint} or been closed. "
            "Open a new session with spider_browser_open.",
            correlation_id=correlation_id,
            context={"session_id": session_id},
        )
