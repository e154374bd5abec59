"""Tool registration wiring for the Spider MCP server.

Registers MCP tools, resources and prompts on a FastMCP instance.
"""

import inspect

from fastmcp import FastMCP

from spider_mcp.mcp.api_client import SpiderServices
from spider_mcp.mcp.config import logger
from spider_mcp.mcp.mcp_common.tool_registration import create_tool_wrapper
from spider_mcp.mcp.tools import ai, browser, core, health

TOOL_FUNCTIONS = [
    # Core REST tools
    core.spider_crawl,
    core.spider_scrape,
    core.spider_search,
    core.spider_links,
    core.spider_screenshot,
    core.spider_unblocker,
    core.spider_transform,
    core.spider_get_credits,
    # AI tools
    ai.spider_ai_crawl,
    ai.spider_ai_scrape,
    ai.spider_ai_search,
    ai.spider_ai_browser,
    ai.spider_ai_links,
    # Browser session tools
    browser.spider_browser_open,
    browser.spider_browser_navigate,
    browser.spider_browser_click,
    browser.spider_browser_fill,
    browser.spider_browser_screenshot,
    browser.spider_browser_content,
    browser.spider_browser_evaluate,
    browser.spider_browser_wait_for,
    browser.spider_browser_close,
    # Operational
    health.spider_health,
]


def register_all_tools(mcp: FastMCP, api_client: SpiderServices) -> None:
    """
    Register all Spider MCP tools.

    Args:
        mcp: FastMCP server instance
        api_client: SpiderServices wrapper injected into every tool
    """
    if api_client is None:
        logger.error("Cannot register tools: services are not initialised.")
        raise RuntimeError("Services must be initialised before registering tools.")

    tool_count = 0
    for tool_func in TOOL_FUNCTIONS:
        if not inspect.iscoroutinefunction(tool_func):
            logger.warning(f"Skipping {tool_func.__name__}: not an async function")
            continue

        # The wrapper hides 'api_client' from the schema and injects it on each call
        mcp.tool(create_tool_wrapper(tool_func, api_client))
        tool_count += 1

    logger.info(f"Registered {tool_count} Spider tools")


def register_resources(mcp: FastMCP, api_client: SpiderServices | None = None) -> None:
    """
    Register MCP resources.

    Args:
        mcp: FastMCP server instance
        api_client: Optional SpiderServices for live session data
    """
    from spider_mcp.mcp import resources

    @mcp.resource("spider://capabilities")
    async def capabilities_resource() -> str:
        """Tool catalogue, accepted option values and limits."""
        return await resources.get_capabilities_resource(api_client)

    count = 1
    if api_client is not None:

        @mcp.resource("spider://sessions")
        async def sessions_resource() -> str:
            """Live browser sessions and the session limit."""
            return await resources.get_sessions_resource(api_client)

        count += 1

    logger.info(f"Registered {count} MCP resources")


def register_prompts(mcp: FastMCP) -> None:
    """
    Register MCP prompts for workflow guidance.

    Args:
        mcp: FastMCP server instance
    """
    from spider_mcp.mcp import prompts

    @mcp.prompt()
    async def select_tool() -> str:
        """Guide for choosing the right Spider tool."""
        return await prompts.get_select_tool_prompt()

    @mcp.prompt()
    async def browser_session() -> str:
        """Guide for driving a remote browser session step by step."""
        return await prompts.get_browser_session_prompt()

    @mcp.prompt()
    async def handle_errors() -> str:
        """Guide for troubleshooting Spider tool errors."""
        return await prompts.get_handle_errors_prompt()

    logger.info("Registered 3 MCP prompts")
