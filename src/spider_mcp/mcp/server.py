"""
Spider MCP Server - Spider cloud crawling, search and remote browsers via
the Model Context Protocol.
"""

from typing import Any

from spider_mcp.mcp.api_client import create_spider_services
from spider_mcp.mcp.config import ALLOWED_HOSTS, ALLOWED_ORIGINS, SERVICE_NAME, SERVICE_VERSION, logger
from spider_mcp.mcp.mcp_common.server import BaseMCPServer
from spider_mcp.mcp.wiring import register_all_tools, register_prompts, register_resources

SPIDER_INSTRUCTIONS = """\
Spider crawls, scrapes and searches the web from the cloud, and provides \
remote browsers for step-by-step automation.

Tool selection:
- spider_scrape: Content of a known URL
- spider_crawl: Many pages of a site (always set limit)
- spider_search: Search the web
- spider_links: Discover URLs without fetching content
- spider_unblocker: Pages that block normal scraping
- spider_browser_*: Interactive sessions (open, navigate, click, fill, read, close). \
At most 5 sessions; idle sessions close after 5 minutes. Always close sessions when done.
- spider_ai_*: Natural-language variants (AI subscription required)
"""


class SpiderServer(BaseMCPServer):
    """
    MCP server exposing the Spider API and remote browser sessions.

    Cleanup closes every open browser session before the HTTP client.
    """

    logger = logger

    def __init__(self, server_name: str = SERVICE_NAME):
        super().__init__(server_name, instructions=SPIDER_INSTRUCTIONS, server_version=SERVICE_VERSION)

    async def create_api_client(self) -> Any:
        """Create the Spider services wrapper."""
        self.logger.info("Initialising Spider services")
        return await create_spider_services()

    def register_tools(self) -> None:
        """Register all MCP tools, resources, and prompts."""
        register_all_tools(self.mcp, self.api_client)
        register_resources(self.mcp, self.api_client)
        register_prompts(self.mcp)

    def health_details(self) -> dict[str, Any]:
        if self.api_client is None:
            return {}
        return {"browser_sessions": self.api_client.sessions.session_count()}

    def get_allowed_origins(self) -> list[str]:
        return ALLOWED_ORIGINS

    def get_allowed_hosts(self) -> list[str]:
        return ALLOWED_HOSTS


def main() -> None:
    """Entry point for the spider-mcp command."""
    SpiderServer.main("Spider Cloud MCP Server")


if __name__ == "__main__":
    main()
