"""Pytest configuration and fixtures for Spider MCP server tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from spider_mcp.mcp.api_client import SpiderServices
from spider_mcp.mcp.config import SpiderSettings
from spider_mcp.services.api import API_BASE
from spider_mcp.services.sessions import BrowserSessionManager


@pytest.fixture
def test_settings() -> SpiderSettings:
    """Settings with a key and a small result limit."""
    return SpiderSettings(api_key="sk-test", max_content_length=1000)


@pytest.fixture
def mock_api() -> MagicMock:
    """Create mock Spider REST client."""
    mock = MagicMock()
    mock.api_key = "sk-test"
    mock.base_url = API_BASE
    mock.request = AsyncMock(
        return_value=[
            {
                "url": "https://example.com",
                "content": "# Example Domain\n\nThis domain is for use in examples.",
                "status": 200,
                "costs": {"total_cost": 0.0001},
            }
        ]
    )
    mock.get_credits = AsyncMock(return_value={"data": {"credits": 5000}})
    mock.close = AsyncMock()
    return mock


@pytest_asyncio.fixture
async def sessions(connector, clock, mock_page) -> BrowserSessionManager:
    """Real session manager backed by the fake connector."""
    connector.page = mock_page
    manager = BrowserSessionManager(connector=connector, clock=clock)
    yield manager
    await manager.close_all()


@pytest.fixture
def mock_api_client(mock_api, sessions, test_settings) -> SpiderServices:
    """Create SpiderServices with a mock REST client and a real session manager."""
    return SpiderServices(api=mock_api, sessions=sessions, config=test_settings)
