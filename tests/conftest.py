"""Pytest configuration and shared fixtures for spider_mcp tests."""

import asyncio
from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from spider_mcp.models import NavigationResult
from spider_mcp.services.remote_browser import BrowserOptions


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Pure logic tests with no I/O, network, or browser")
    config.addinivalue_line("markers", "integration: Tests using mocked HTTP transports or fake connectors")
    config.addinivalue_line(
        "markers",
        "e2e: End-to-end tests against the live Spider API or remote browser",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """
    Apply default markers to tests without explicit markers.

    Unmarked tests default to unit.
    """
    for item in items:
        marker_names = [m.name for m in item.iter_markers()]
        if any(m in marker_names for m in ("unit", "integration", "e2e")):
            continue
        item.add_marker(pytest.mark.unit)


class FakeBrowser:
    """Stands in for RemoteBrowser inside the session manager."""

    def __init__(self, options: BrowserOptions, close_error: Exception | None = None):
        self.options = options
        self.page = MagicMock(name="page")
        self.close_calls = 0
        self.close_error = close_error
        self._listeners: list[Callable[[], None]] = []

    @property
    def engine(self) -> str:
        return self.options.engine or "chrome"

    def on_disconnect(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    async def goto(self, url: str, wait_until: str = "load") -> NavigationResult:
        self.page.url = url
        return NavigationResult(url=url, title="Example Domain", status=200, stealth=self.options.stealth or 0)

    def drop(self) -> None:
        """Simulate the remote end closing the connection."""
        for callback in list(self._listeners):
            callback()

    async def close(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


class FakeConnector:
    """Records connections and hands out FakeBrowser instances."""

    def __init__(self) -> None:
        self.browsers: list[FakeBrowser] = []
        self.calls: list[tuple[str, BrowserOptions]] = []
        self.error: Exception | None = None
        self.close_error: Exception | None = None
        self.page: MagicMock | None = None

    async def __call__(self, api_key: str, options: BrowserOptions) -> FakeBrowser:
        self.calls.append((api_key, options))
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        browser = FakeBrowser(options, close_error=self.close_error)
        if self.page is not None:
            browser.page = self.page
        self.browsers.append(browser)
        return browser


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_page() -> MagicMock:
    """Playwright page double with async methods."""
    page = MagicMock(name="page")
    page.url = "https://example.com/"
    page.title = AsyncMock(return_value="Example Domain")
    page.content = AsyncMock(return_value="<html><body><h1>Example</h1></body></html>")
    page.evaluate = AsyncMock(return_value="Example")
    page.wait_for_selector = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.click = AsyncMock()
    page.fill = AsyncMock()
    page.screenshot = AsyncMock(return_value=b"\x89PNG\r\n\x1a\nfake")
    return page
