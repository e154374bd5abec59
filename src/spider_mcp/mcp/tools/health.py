"""Health check tool for the Spider MCP server."""

import sys
from typing import Any

from spider_mcp.mcp.api_client import SpiderServices
from spider_mcp.mcp.config import SERVICE_NAME, SERVICE_VERSION


def _get_config_summary(api_client: SpiderServices) -> dict[str, Any]:
    """Non-secret configuration relevant to troubleshooting."""
    config = api_client.settings
    return {
        "api_url": config.api_url,
        "browser_url": config.browser_url,
        "request_timeout_s": config.request_timeout,
        "browser_timeout_ms": config.browser_timeout,
        "max_content_length": config.max_content_length,
    }


async def spider_health(api_client: SpiderServices) -> dict:
    """Get Spider MCP server health.

    Reports whether an API key is configured, browser session usage against
    the limit, the effective configuration and the server version. Does not
    call the Spider API; use spider_get_credits to verify the key works.

    Returns:
        Dictionary with status, services, config and version
    """
    version = {"server": SERVICE_VERSION, "python": sys.version.split()[0]}
    try:
        services = api_client.get_service_status()
        api_ok = services["api"]["api_key_configured"]

        return {
            "status": "healthy" if api_ok else "degraded",
            "service": SERVICE_NAME,
            "services": services,
            "config": _get_config_summary(api_client),
            "version": version,
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "services": {},
            "version": version,
        }
