"""Command-line interface for spider_mcp.

- account: credit balance (credits)
- scrape: scrape, crawl and links
- search: web search
"""

# Import command modules to register them with the app
from spider_mcp.cli import (
    account,  # noqa: F401
    scrape,  # noqa: F401
    search,  # noqa: F401
)
from spider_mcp.cli._common import app

__all__ = ["app"]
