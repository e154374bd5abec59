"""
Structured JSON logging for the MCP server.

Log lines go to stderr: under the stdio transport stdout carries the
protocol stream, so nothing else may write there.

Usage:
    >>> from spider_mcp.mcp.mcp_common.logging import setup_server_logging
    >>> logger = setup_server_logging("spider-cloud-mcp", "2.1.0")
"""

import json
import logging
import os
import re
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from .correlation import get_correlation_id

REDACTED = "[REDACTED]"

SENSITIVE_PATTERNS = [
    # key=value and "key": "value" pairs
    re.compile(
        r"(?P<key>api[_-]?key|token|secret|password|authorization)(?P<sep>[\"']?\s*[:=]\s*[\"']?)[^\"'\s,&}\]]+",
        re.IGNORECASE,
    ),
    # Bearer credentials
    re.compile(r"(?P<key>Bearer)(?P<sep>\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE),
    # Spider API keys
    re.compile(r"(?P<key>)(?P<sep>)sk-[A-Za-z0-9_-]{8,}"),
]

# LogRecord attributes that are not user-supplied extras
_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "correlation_id",
        "log_type",
    }
)


def redact_sensitive_data(message: str, replacement: str = REDACTED) -> str:
    """
    Redact API keys, bearer tokens and similar credentials from a string.

    Example:
        >>> redact_sensitive_data("wss://browser.spider.cloud/v1/browser?token=sk-abc12345xyz")
        'wss://browser.spider.cloud/v1/browser?token=[REDACTED]'
    """
    if not isinstance(message, str):
        message = str(message)
    for pattern in SENSITIVE_PATTERNS:
        message = pattern.sub(lambda m: f"{m.group('key')}{m.group('sep')}{replacement}", message)
    return message


class JSONFormatter(logging.Formatter):
    """Single-line JSON formatter carrying correlation id and service metadata."""

    def __init__(self, service_name: str, service_version: str, include_location: bool = False):
        super().__init__()
        self.service_name = service_name
        self.service_version = service_version
        self.include_location = include_location

    @staticmethod
    def _correlation_id(record: logging.LogRecord) -> str | None:
        cid = getattr(record, "correlation_id", None)
        if isinstance(cid, str) and cid != "-":
            return cid
        return get_correlation_id()

    @staticmethod
    def _detect_log_type(record: logging.LogRecord) -> str:
        explicit = getattr(record, "log_type", None)
        if isinstance(explicit, str):
            return explicit
        if record.levelno >= logging.ERROR:
            return "error"
        message = record.getMessage().lower()
        if "browser session" in message:
            return "session"
        if "spider api" in message:
            return "request"
        if "startup" in message or "initialis" in message or "starting" in message:
            return "startup"
        if "shutdown" in message or "cleanup" in message:
            return "shutdown"
        return "application"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact_sensitive_data(record.getMessage()),
            "correlation_id": self._correlation_id(record),
            "service_name": self.service_name,
            "service_version": self.service_version,
            "log_type": self._detect_log_type(record),
        }

        if self.include_location:
            log_entry["module"] = record.module
            log_entry["line"] = record.lineno

        if record.exc_info:
            log_entry["exception"] = redact_sensitive_data(self.formatException(record.exc_info))

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                log_entry[key] = redact_sensitive_data(value) if isinstance(value, str) else value

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class CorrelationIdFilter(logging.Filter):
    """Ensure every record has a ``correlation_id`` attribute."""

    def __init__(self, default_value: str = "-") -> None:
        super().__init__()
        self.default_value = default_value

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "correlation_id", None) is None:
            record.correlation_id = get_correlation_id() or self.default_value
        return True


def get_log_level_from_env(default: str = "INFO") -> int:
    """Read the log level from SPIDER_LOG_LEVEL or LOG_LEVEL."""
    level_name = (os.environ.get("SPIDER_LOG_LEVEL") or os.environ.get("LOG_LEVEL") or default).upper()
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(formatter: logging.Formatter, level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """
    Replace root handlers with a single stream handler using ``formatter``.

    Args:
        formatter: Formatter for the handler
        level: Logging level
        stream: Output stream (default: sys.stderr)

    Returns:
        Root logger instance
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())
    root_logger.addHandler(handler)

    # httpx logs every request URL at INFO
    for noisy in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))
    return root_logger


def setup_server_logging(service_name: str, service_version: str, level: int | str | None = None) -> logging.Logger:
    """
    Set up JSON logging for the MCP server and return the service logger.

    Args:
        service_name: Name of the MCP service
        service_version: Version reported in every line
        level: Logging level or level name (default: from the environment, or INFO)

    Returns:
        Named logger for the service
    """
    if level is None:
        level = get_log_level_from_env()
    elif isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO
    setup_logging(JSONFormatter(service_name, service_version), level=level)
    return logging.getLogger(service_name)
