"""Remote browser connection to browser.spider.cloud.

The remote browser runs in Spider's cloud with anti-bot protection and proxy
rotation built in. It is reached over a CDP WebSocket, so any CDP client
works; here Playwright's ``connect_over_cdp`` is used.

Public connection endpoint: wss://browser.spider.cloud/v1/browser

NAVIGATION RETRY (``RemoteBrowser.goto``):
    A navigation answered with 403/429/503, or one that fails outright, is
    retried on a fresh connection with the stealth level raised by one
    (0 -> 1 -> 2 -> 3). Pages reached through ``RemoteBrowser.page`` after a
    retry belong to the new connection.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

from spider_mcp.exceptions import BrowserConnectionError
from spider_mcp.models import NavigationResult
from spider_mcp.utils import redact_token

if TYPE_CHECKING:
    from playwright.async_api import Browser, Page, Playwright

LOGGER = logging.getLogger(__name__)

BROWSER_WS_BASE = "wss://browser.spider.cloud/v1/browser"
MAX_STEALTH = 3

# Status codes that suggest the remote was blocked by the target site
BLOCKED_STATUS_CODES = frozenset({403, 429, 503})


@dataclass
class BrowserOptions:
    """Connection options for a remote browser."""

    engine: str | None = None
    stealth: int | None = None
    country: str | None = None
    mode: str | None = None

    def query_params(self, api_key: str) -> dict[str, str]:
        """Build the query string parameters understood by the endpoint."""
        params = {"token": api_key}
        if self.engine:
            params["browser"] = self.engine
        if self.stealth is not None:
            params["s"] = str(self.stealth)
        if self.country:
            params["country"] = self.country
        if self.mode:
            params["mode"] = self.mode
        return params


def _engine_from_version(version: str | None) -> str | None:
    """Map a CDP ``Browser.version`` string to an engine name."""
    if not version:
        return None
    lowered = version.lower()
    if "firefox" in lowered:
        return "firefox"
    if "chrom" in lowered:
        return "chrome"
    return None


class RemoteBrowser:
    """One CDP connection to a cloud browser.

    Usage:
        browser = RemoteBrowser(api_key, BrowserOptions(engine="chrome", stealth=1))
        await browser.connect()
        result = await browser.goto("https://example.com")
        html = await browser.page.content()
        await browser.close()
    """

    def __init__(
        self,
        api_key: str,
        options: BrowserOptions | None = None,
        endpoint: str = BROWSER_WS_BASE,
        timeout_ms: int = 30000,
        max_attempts: int = 3,
    ):
        """Initialise a remote browser handle (not yet connected).

        Args:
            api_key: Spider API key, sent as the ``token`` query parameter.
            options: Engine, stealth level, country and mode.
            endpoint: CDP WebSocket base URL.
            timeout_ms: Connect and navigation timeout.
            max_attempts: Total navigation attempts in ``goto``.
        """
        self._api_key = api_key
        self.options = options or BrowserOptions()
        self.endpoint = endpoint
        self.timeout_ms = timeout_ms
        self.max_attempts = max(1, max_attempts)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._page: Page | None = None
        self._listeners: list[Callable[[], None]] = []
        self._disconnect_fired = False
        self._closing = False

    @property
    def ws_url(self) -> str:
        return f"{self.endpoint}?{urlencode(self.options.query_params(self._api_key))}"

    @property
    def page(self) -> Page:
        """The page driven by this connection."""
        if self._page is None:
            raise RuntimeError("Remote browser not connected")
        return self._page

    @property
    def is_connected(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    @property
    def engine(self) -> str:
        """Engine actually in use.

        Echoes the requested engine unless ``auto`` (or nothing) was asked for
        and the remote reported something concrete.
        """
        requested = self.options.engine
        if requested and requested != "auto":
            return requested
        version = self._browser.version if self._browser is not None else None
        return _engine_from_version(version) or requested or "auto"

    def on_disconnect(self, callback: Callable[[], None]) -> None:
        """Register a callback fired at most once when the connection drops unexpectedly."""
        self._listeners.append(callback)

    async def connect(self) -> None:
        """Open the CDP connection and pick (or create) the working page.

        Raises:
            BrowserConnectionError: If the remote browser cannot be reached.
        """
        from playwright.async_api import async_playwright

        LOGGER.debug("Connecting remote browser: %s", redact_token(self.ws_url))
        try:
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            browser = await self._playwright.chromium.connect_over_cdp(self.ws_url, timeout=self.timeout_ms)
            context = browser.contexts[0] if browser.contexts else await browser.new_context()
            page = context.pages[0] if context.pages else await context.new_page()
        except Exception as e:
            await self._stop_playwright()
            raise BrowserConnectionError(
                f"Failed to connect to remote browser: {e}",
                engine=self.options.engine,
            ) from e

        browser.on("disconnected", self._handle_disconnect)
        self._browser = browser
        self._page = page
        LOGGER.debug("Remote browser connected (engine=%s, stealth=%s)", self.engine, self.options.stealth)

    def _handle_disconnect(self, browser: Any = None) -> None:
        if self._closing or self._disconnect_fired:
            return
        if browser is not None and browser is not self._browser:
            return
        self._disconnect_fired = True
        LOGGER.info("Remote browser disconnected unexpectedly")
        for callback in list(self._listeners):
            try:
                callback()
            except Exception as e:
                LOGGER.error(f"Disconnect callback failed: {e}", exc_info=True)

    async def _reconnect(self, stealth: int) -> None:
        """Replace the connection with one at a different stealth level."""
        old = self._browser
        self._browser = None
        self._page = None
        if old is not None:
            old.remove_listener("disconnected", self._handle_disconnect)
            try:
                await old.close()
            except Exception as e:
                LOGGER.debug(f"Ignoring error closing previous connection: {e}")
        self.options.stealth = stealth
        try:
            await self.connect()
        except BrowserConnectionError:
            # No live connection is left behind; owners must drop this browser
            self._handle_disconnect()
            raise

    async def goto(self, url: str, wait_until: str = "load") -> NavigationResult:
        """Navigate to ``url``, escalating stealth and reconnecting when blocked.

        Args:
            url: Destination URL.
            wait_until: Playwright load state to wait for.

        Returns:
            NavigationResult with the final URL, title and HTTP status.

        Raises:
            BrowserConnectionError: If a reconnect during retry fails.
            playwright.async_api.Error: If the last attempt fails.
        """
        from playwright.async_api import Error as PlaywrightError

        attempt = 0
        while True:
            attempt += 1
            stealth = self.options.stealth or 0
            try:
                response = await self.page.goto(url, wait_until=wait_until, timeout=self.timeout_ms)
            except PlaywrightError as e:
                if attempt >= self.max_attempts:
                    raise
                LOGGER.info(f"Navigation to {url} failed ({e}), retrying with stealth {min(stealth + 1, MAX_STEALTH)}")
                await self._reconnect(min(stealth + 1, MAX_STEALTH))
                continue

            status = response.status if response is not None else None
            if status in BLOCKED_STATUS_CODES and attempt < self.max_attempts:
                LOGGER.info(f"Navigation to {url} blocked (HTTP {status}), retrying with higher stealth")
                await self._reconnect(min(stealth + 1, MAX_STEALTH))
                continue

            return NavigationResult(
                url=self.page.url,
                title=await self.page.title(),
                status=status,
                attempts=attempt,
                stealth=self.options.stealth or 0,
            )

    async def close(self) -> None:
        """Close the connection. Safe to call multiple times."""
        self._closing = True
        browser, self._browser = self._browser, None
        self._page = None
        try:
            if browser is not None:
                await browser.close()
        finally:
            await self._stop_playwright()

    async def _stop_playwright(self) -> None:
        if self._playwright is not None:
            playwright, self._playwright = self._playwright, None
            await playwright.stop()


async def connect_remote_browser(
    api_key: str,
    options: BrowserOptions,
    *,
    endpoint: str = BROWSER_WS_BASE,
    timeout_ms: int = 30000,
    max_attempts: int = 3,
) -> RemoteBrowser:
    """Create and connect a RemoteBrowser.

    Raises:
        BrowserConnectionError: If the connection cannot be established.
    """
    browser = RemoteBrowser(
        api_key,
        options,
        endpoint=endpoint,
        timeout_ms=timeout_ms,
        max_attempts=max_attempts,
    )
    await browser.connect()
    return browser
