"""MCP resources for the Spider server.

Static and live information agents can read before choosing tools.
"""

import json
from typing import TYPE_CHECKING, Any

from spider_mcp.models import BROWSER_ENGINES, REQUEST_TYPES, RETURN_FORMATS

if TYPE_CHECKING:
    from spider_mcp.mcp.api_client import SpiderServices

TOOL_CATALOGUE: dict[str, dict[str, str]] = {
    "core": {
        "spider_crawl": "Crawl a site following links up to limit/depth",
        "spider_scrape": "Fetch and process a single URL",
        "spider_search": "Web search, optionally fetching result pages",
        "spider_links": "List links on a page without fetching them",
        "spider_screenshot": "Screenshot a URL via the API (base64 PNG)",
        "spider_unblocker": "Fetch bot-protected pages (extra credits)",
        "spider_transform": "Convert HTML you already have to markdown/text",
        "spider_get_credits": "Show the remaining credit balance",
    },
    "ai": {
        "spider_ai_crawl": "Crawl guided by a natural-language prompt",
        "spider_ai_scrape": "Extract structured data described in plain English",
        "spider_ai_search": "Search with AI intent understanding and ranking",
        "spider_ai_browser": "Browser automation described in plain English",
        "spider_ai_links": "Find and filter links described in plain English",
    },
    "browser": {
        "spider_browser_open": "Open a cloud browser session, returns session_id",
        "spider_browser_navigate": "Go to a URL (retries with higher stealth when blocked)",
        "spider_browser_click": "Wait for and click an element",
        "spider_browser_fill": "Fill a form field",
        "spider_browser_screenshot": "PNG screenshot of the current page",
        "spider_browser_content": "Current page HTML or visible text",
        "spider_browser_evaluate": "Run JavaScript in the page",
        "spider_browser_wait_for": "Wait for a selector, navigation or network idle",
        "spider_browser_close": "Close the session and stop billing",
    },
}


def _session_limits(api_client: "SpiderServices | None") -> dict[str, Any]:
    if api_client is None:
        return {}
    sessions = api_client.sessions
    return {
        "active": sessions.session_count(),
        "max_concurrent": sessions.max_sessions,
        "idle_timeout_seconds": sessions.idle_timeout,
    }


async def get_capabilities_resource(api_client: "SpiderServices | None" = None) -> str:
    """Tool catalogue, accepted option values and limits."""
    limits: dict[str, Any] = {"browser_sessions": _session_limits(api_client)}
    if api_client is not None:
        limits["max_result_characters"] = api_client.max_content_length

    return json.dumps(
        {
            "tools": TOOL_CATALOGUE,
            "return_formats": list(RETURN_FORMATS),
            "request_types": list(REQUEST_TYPES),
            "browser_engines": list(BROWSER_ENGINES),
            "stealth_levels": {
                "0": "auto",
                "1": "standard",
                "2": "residential",
                "3": "premium",
            },
            "limits": limits,
            "ai_tools_require": "https://spider.cloud/ai/pricing",
        },
        indent=2,
    )


async def get_sessions_resource(api_client: "SpiderServices") -> str:
    """Live browser sessions without refreshing their idle timers."""
    return json.dumps(
        {
            **_session_limits(api_client),
            "sessions": [s.model_dump() for s in api_client.sessions.snapshot()],
        },
        indent=2,
    )
