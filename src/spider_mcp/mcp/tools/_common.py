"""Helpers shared by the REST-backed tools."""

import logging
from typing import Any

from spider_mcp.mcp.api_client import SpiderServices
from spider_mcp.mcp.exceptions import SpiderValidationError
from spider_mcp.mcp.mcp_common.correlation import get_correlation_id
from spider_mcp.mcp.validators import validate_return_format
from spider_mcp.utils import format_result, log_with_correlation

logger = logging.getLogger(__name__)


def check_return_format(value: Any) -> str | list[str] | None:
    """Accept one known format name or a list of format names."""
    if isinstance(value, list):
        if not all(isinstance(item, str) and item for item in value):
            raise SpiderValidationError(
                "return_format list must contain format names",
                field="return_format",
                value=value,
            )
        return value
    return validate_return_format(value)


async def call_spider(
    api_client: SpiderServices,
    path: str,
    body: dict[str, Any] | None = None,
    *,
    method: str = "POST",
    stream: bool = True,
) -> str:
    """Send a request to the Spider API and render the response as tool text."""
    data = await api_client.api.request(method, path, body, stream=stream)
    log_with_correlation(
        logger,
        logging.INFO,
        f"Spider API {method} {path} completed",
        get_correlation_id(),
        endpoint=path,
        records=len(data) if isinstance(data, list) else 1,
    )
    return format_result(data, api_client.max_content_length)
