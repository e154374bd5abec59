"""Service layer for spider_mcp.

This module provides the core services:
- SpiderClient: Spider REST API client (crawl, scrape, search, AI endpoints)
- RemoteBrowser: CDP connection to a browser.spider.cloud browser
- BrowserSessionManager: session table, admission control and idle reaping
"""

from spider_mcp.services.api import SpiderClient, get_api_key
from spider_mcp.services.remote_browser import BrowserOptions, RemoteBrowser, connect_remote_browser
from spider_mcp.services.sessions import BrowserSessionManager

__all__ = [
    "BrowserOptions",
    "BrowserSessionManager",
    "RemoteBrowser",
    "SpiderClient",
    "connect_remote_browser",
    "get_api_key",
]
