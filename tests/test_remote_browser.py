"""Tests for the remote browser connection."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError

from spider_mcp.exceptions import BrowserConnectionError, SessionNotFoundError
from spider_mcp.services.remote_browser import (
    BROWSER_WS_BASE,
    BrowserOptions,
    RemoteBrowser,
    _engine_from_version,
    connect_remote_browser,
)
from spider_mcp.services.sessions import BrowserSessionManager


def _response(status: int) -> MagicMock:
    response = MagicMock()
    response.status = status
    return response


def _connected(options: BrowserOptions | None = None, max_attempts: int = 3) -> tuple[RemoteBrowser, MagicMock]:
    """RemoteBrowser with a fake page and a reconnect that only records the stealth level."""
    browser = RemoteBrowser("sk-test", options, max_attempts=max_attempts)
    page = MagicMock()
    page.url = "https://example.com/"
    page.title = AsyncMock(return_value="Example Domain")
    browser._page = page

    async def reconnect(stealth: int) -> None:
        browser.options.stealth = stealth

    browser._reconnect = AsyncMock(side_effect=reconnect)
    return browser, page


def _cdp_browser() -> MagicMock:
    page = MagicMock()
    page.url = "https://example.com/"
    cdp_browser = MagicMock(contexts=[MagicMock(pages=[page])], version="Chrome/120")
    cdp_browser.close = AsyncMock()
    return cdp_browser


def _playwright(*connect_results) -> tuple[MagicMock, MagicMock]:
    """Playwright driver whose successive CDP connects return (or raise) ``connect_results``."""
    playwright = MagicMock()
    playwright.chromium.connect_over_cdp = AsyncMock(side_effect=list(connect_results))
    playwright.stop = AsyncMock()
    starter = MagicMock()
    starter.start = AsyncMock(return_value=playwright)
    return playwright, starter


class TestBrowserOptions:
    def test_token_only_by_default(self):
        assert BrowserOptions().query_params("sk-test") == {"token": "sk-test"}

    def test_all_options(self):
        params = BrowserOptions(engine="firefox", stealth=2, country="us", mode="cdp").query_params("sk-test")
        assert params == {"token": "sk-test", "browser": "firefox", "s": "2", "country": "us", "mode": "cdp"}

    def test_stealth_zero_is_sent(self):
        assert BrowserOptions(stealth=0).query_params("k")["s"] == "0"

    def test_ws_url(self):
        browser = RemoteBrowser("sk-test", BrowserOptions(engine="chrome"))
        assert browser.ws_url == f"{BROWSER_WS_BASE}?token=sk-test&browser=chrome"


class TestEngineResolution:
    @pytest.mark.parametrize(
        ("version", "expected"),
        [
            ("Chrome/120.0.6099.71", "chrome"),
            ("HeadlessChrome/119.0", "chrome"),
            ("Chromium/118", "chrome"),
            ("Firefox/121.0", "firefox"),
            ("Something/1.0", None),
            (None, None),
            ("", None),
        ],
    )
    def test_engine_from_version(self, version, expected):
        assert _engine_from_version(version) == expected

    def test_explicit_engine_is_echoed(self):
        browser = RemoteBrowser("k", BrowserOptions(engine="chrome-new"))
        browser._browser = MagicMock(version="Chrome/120")
        assert browser.engine == "chrome-new"

    def test_auto_resolves_from_remote(self):
        browser = RemoteBrowser("k", BrowserOptions(engine="auto"))
        browser._browser = MagicMock(version="Firefox/121.0")
        assert browser.engine == "firefox"

    def test_auto_without_connection(self):
        assert RemoteBrowser("k", BrowserOptions(engine="auto")).engine == "auto"
        assert RemoteBrowser("k").engine == "auto"


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_uses_existing_page(self):
        page = MagicMock()
        context = MagicMock(pages=[page])
        cdp_browser = MagicMock(contexts=[context], version="Chrome/120")
        playwright = MagicMock()
        playwright.chromium.connect_over_cdp = AsyncMock(return_value=cdp_browser)
        starter = MagicMock()
        starter.start = AsyncMock(return_value=playwright)

        with patch("playwright.async_api.async_playwright", return_value=starter):
            browser = await connect_remote_browser("sk-test", BrowserOptions(stealth=1), timeout_ms=5000)

        url = playwright.chromium.connect_over_cdp.call_args.args[0]
        assert url.startswith(BROWSER_WS_BASE)
        assert "token=sk-test" in url
        assert "s=1" in url
        assert playwright.chromium.connect_over_cdp.call_args.kwargs["timeout"] == 5000
        assert browser.page is page
        assert browser.engine == "chrome"
        cdp_browser.on.assert_called_once_with("disconnected", browser._handle_disconnect)

    @pytest.mark.asyncio
    async def test_connect_failure_raises_and_stops_playwright(self):
        playwright = MagicMock()
        playwright.chromium.connect_over_cdp = AsyncMock(side_effect=RuntimeError("401 Unauthorized"))
        playwright.stop = AsyncMock()
        starter = MagicMock()
        starter.start = AsyncMock(return_value=playwright)

        with patch("playwright.async_api.async_playwright", return_value=starter):
            with pytest.raises(BrowserConnectionError, match="Failed to connect to remote browser"):
                await connect_remote_browser("sk-test", BrowserOptions())

        playwright.stop.assert_awaited_once()

    def test_page_before_connect_raises(self):
        with pytest.raises(RuntimeError, match="not connected"):
            _ = RemoteBrowser("k").page


class TestGoto:
    @pytest.mark.asyncio
    async def test_success_first_try(self):
        browser, page = _connected()
        page.goto = AsyncMock(return_value=_response(200))

        result = await browser.goto("https://example.com")

        assert result.status == 200
        assert result.attempts == 1
        assert result.title == "Example Domain"
        browser._reconnect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_blocked_response_escalates_stealth(self):
        browser, page = _connected()
        page.goto = AsyncMock(side_effect=[_response(403), _response(429), _response(200)])

        result = await browser.goto("https://example.com")

        assert result.status == 200
        assert result.attempts == 3
        assert result.stealth == 2
        assert [c.args[0] for c in browser._reconnect.await_args_list] == [1, 2]

    @pytest.mark.asyncio
    async def test_stealth_is_capped(self):
        browser, page = _connected(BrowserOptions(stealth=3))
        page.goto = AsyncMock(side_effect=[_response(503), _response(200)])

        result = await browser.goto("https://example.com")

        assert result.stealth == 3
        browser._reconnect.assert_awaited_once_with(3)

    @pytest.mark.asyncio
    async def test_blocked_on_last_attempt_is_returned(self):
        browser, page = _connected(max_attempts=2)
        page.goto = AsyncMock(return_value=_response(403))

        result = await browser.goto("https://example.com")

        assert result.status == 403
        assert result.attempts == 2

    @pytest.mark.asyncio
    async def test_navigation_error_is_retried(self):
        browser, page = _connected()
        page.goto = AsyncMock(side_effect=[PlaywrightError("net::ERR_CONNECTION_RESET"), _response(200)])

        result = await browser.goto("https://example.com")

        assert result.attempts == 2
        assert result.stealth == 1

    @pytest.mark.asyncio
    async def test_navigation_error_on_last_attempt_raises(self):
        browser, page = _connected(max_attempts=1)
        page.goto = AsyncMock(side_effect=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))

        with pytest.raises(PlaywrightError):
            await browser.goto("https://nope.invalid")


class TestDisconnectAndClose:
    def test_disconnect_fires_listeners_once(self):
        browser = RemoteBrowser("k")
        cdp_browser = MagicMock()
        browser._browser = cdp_browser
        callback = MagicMock()
        browser.on_disconnect(callback)

        browser._handle_disconnect(cdp_browser)
        browser._handle_disconnect(cdp_browser)

        callback.assert_called_once_with()

    def test_disconnect_of_replaced_connection_is_ignored(self):
        browser = RemoteBrowser("k")
        browser._browser = MagicMock()
        callback = MagicMock()
        browser.on_disconnect(callback)

        browser._handle_disconnect(MagicMock())

        callback.assert_not_called()

    def test_failing_listener_does_not_block_others(self):
        browser = RemoteBrowser("k")
        second = MagicMock()
        browser.on_disconnect(MagicMock(side_effect=RuntimeError("boom")))
        browser.on_disconnect(second)

        browser._handle_disconnect()

        second.assert_called_once()

    @pytest.mark.asyncio
    async def test_close_is_idempotent_and_silences_listeners(self):
        browser = RemoteBrowser("k")
        cdp_browser = MagicMock()
        cdp_browser.close = AsyncMock()
        playwright = MagicMock()
        playwright.stop = AsyncMock()
        browser._browser = cdp_browser
        browser._playwright = playwright
        callback = MagicMock()
        browser.on_disconnect(callback)

        await browser.close()
        browser._handle_disconnect(cdp_browser)
        await browser.close()

        cdp_browser.close.assert_awaited_once()
        playwright.stop.assert_awaited_once()
        callback.assert_not_called()
        assert not browser.is_connected

    @pytest.mark.asyncio
    async def test_failed_reconnect_notifies_listeners(self):
        browser = RemoteBrowser("k")
        playwright, _ = _playwright(RuntimeError("503 Service Unavailable"))
        browser._playwright = playwright
        browser._browser = _cdp_browser()
        callback = MagicMock()
        browser.on_disconnect(callback)

        with pytest.raises(BrowserConnectionError):
            await browser._reconnect(2)

        callback.assert_called_once_with()
        playwright.stop.assert_awaited_once()


class TestManagedTeardown:
    """Abnormal endings release the local Playwright driver and the session slot."""

    @pytest.mark.asyncio
    async def test_remote_drop_stops_playwright(self):
        cdp_browser = _cdp_browser()
        playwright, starter = _playwright(cdp_browser)
        manager = BrowserSessionManager()

        with patch("playwright.async_api.async_playwright", return_value=starter):
            opened = await manager.open("sk-test")
        manager.get_browser(opened.session_id)._handle_disconnect(cdp_browser)

        assert manager.session_count() == 0
        await manager.close_all()
        playwright.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_stealth_reconnect_drops_session(self):
        cdp_browser = _cdp_browser()
        cdp_browser.contexts[0].pages[0].goto = AsyncMock(side_effect=PlaywrightError("net::ERR_CONNECTION_RESET"))
        playwright, starter = _playwright(cdp_browser, RuntimeError("503 Service Unavailable"))
        manager = BrowserSessionManager()

        with patch("playwright.async_api.async_playwright", return_value=starter):
            opened = await manager.open("sk-test")
            with pytest.raises(BrowserConnectionError):
                await manager.get_browser(opened.session_id).goto("https://example.com")

        assert manager.session_count() == 0
        with pytest.raises(SessionNotFoundError):
            manager.get_page(opened.session_id)
        await manager.close_all()
        playwright.stop.assert_awaited_once()
