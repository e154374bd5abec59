"""
Shared MCP server plumbing.

- Correlation ID generation and tracking
- Exception hierarchy returned to MCP hosts
- Structured JSON logging to stderr
- Settings validators
- Server lifecycle (transport, CLI arguments, health endpoint)
- Tool registration with dependency injection
"""

from .config import parse_comma_separated, validate_base_url
from .correlation import clear_correlation_id, generate_correlation_id, get_correlation_id, set_correlation_id
from .exceptions import (
    MCPClientError,
    MCPConnectionError,
    MCPError,
    MCPForbiddenError,
    MCPNotFoundError,
    MCPPaymentRequiredError,
    MCPRateLimitError,
    MCPServerError,
    MCPTimeoutError,
    MCPUnauthorizedError,
    MCPValidationError,
    log_tool_exception,
    map_status_to_exception,
)
from .logging import JSONFormatter, redact_sensitive_data, setup_server_logging
from .server import BaseMCPServer, create_argument_parser, create_middleware, setup_transport
from .tool_registration import create_tool_wrapper, remove_parameters_from_signature

__all__ = [
    "BaseMCPServer",
    "JSONFormatter",
    "MCPClientError",
    "MCPConnectionError",
    "MCPError",
    "MCPForbiddenError",
    "MCPNotFoundError",
    "MCPPaymentRequiredError",
    "MCPRateLimitError",
    "MCPServerError",
    "MCPTimeoutError",
    "MCPUnauthorizedError",
    "MCPValidationError",
    "clear_correlation_id",
    "create_argument_parser",
    "create_middleware",
    "create_tool_wrapper",
    "generate_correlation_id",
    "get_correlation_id",
    "log_tool_exception",
    "map_status_to_exception",
    "parse_comma_separated",
    "redact_sensitive_data",
    "remove_parameters_from_signature",
    "set_correlation_id",
    "setup_server_logging",
    "setup_transport",
]
