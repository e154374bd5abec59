"""MCP services wrapper for Spider.

Bundles the REST client and the browser session manager into the single
object injected into every tool function.
"""

from functools import partial
from typing import Any

from spider_mcp.mcp.config import SpiderSettings, logger, settings
from spider_mcp.services.api import SpiderClient
from spider_mcp.services.remote_browser import connect_remote_browser
from spider_mcp.services.sessions import BrowserSessionManager


class SpiderServices:
    """
    MCP wrapper providing unified access to the Spider services.

    Provides:
    1. The REST client (``api``) for crawl/scrape/search style tools
    2. The browser session manager (``sessions``) for the browser tools
    3. Connection testing and status for health reporting
    4. Shutdown of every browser session and the HTTP client
    """

    def __init__(
        self,
        api: SpiderClient,
        sessions: BrowserSessionManager,
        config: SpiderSettings | None = None,
    ):
        """
        Initialise services wrapper.

        Args:
            api: Spider REST API client
            sessions: Browser session manager
            config: Settings the services were built from
        """
        self.api = api
        self.sessions = sessions
        self.settings = config or settings

        logger.info("Spider services wrapper initialised")

    @property
    def api_key(self) -> str:
        """Configured API key; raises ConfigurationError when missing."""
        return self.api.api_key

    @property
    def max_content_length(self) -> int:
        return self.settings.max_content_length

    async def test_connection(self) -> bool:
        """
        Check that the API key is accepted by fetching the credit balance.

        Returns:
            True if the API answered

        Raises:
            ConfigurationError: If no API key is configured
            ProviderError: If the API rejects the request
        """
        try:
            await self.api.get_credits()
        except Exception as e:
            logger.error(f"Connection test failed: {e}")
            raise
        logger.info("Connection test successful")
        return True

    def get_service_status(self) -> dict[str, Any]:
        """
        Get status of the services for health reporting.

        Returns:
            Dict with API and browser session status
        """
        return {
            "api": {
                "base_url": self.api.base_url,
                "api_key_configured": bool(self.settings.api_key),
            },
            "browser_sessions": {
                "active": self.sessions.session_count(),
                "max": self.sessions.max_sessions,
                "idle_timeout_seconds": self.sessions.idle_timeout,
                "reaper_running": self.sessions.reaper_running,
            },
        }

    async def close(self) -> None:
        """Close every browser session, then the HTTP client."""
        try:
            await self.sessions.close_all()
        finally:
            await self.api.close()
        logger.info("Spider services closed")


async def create_spider_services(config: SpiderSettings | None = None) -> SpiderServices:
    """
    Factory function creating the services from settings.

    Args:
        config: Settings to use (default: the cached module settings)

    Returns:
        Initialised SpiderServices wrapper
    """
    config = config or settings

    api = SpiderClient(
        api_key=config.api_key,
        base_url=config.api_url,
        timeout=config.request_timeout,
    )
    sessions = BrowserSessionManager(
        connector=partial(
            connect_remote_browser,
            endpoint=config.browser_url,
            timeout_ms=config.browser_timeout,
        ),
        max_sessions=config.max_sessions,
        idle_timeout=config.session_idle_timeout,
        reap_interval=config.session_reap_interval,
    )

    if not config.api_key:
        logger.warning("SPIDER_API_KEY is not set; tools will fail until it is configured")

    logger.info(
        f"Spider services initialised (api={config.api_url}, max_sessions={config.max_sessions}, "
        f"idle_timeout={config.session_idle_timeout}s)"
    )
    return SpiderServices(api=api, sessions=sessions, config=config)
