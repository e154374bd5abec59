"""Tests for the REST-backed tools, health, resources and prompts."""

import json

import pytest

from spider_mcp.exceptions import ConfigurationError, ProviderError
from spider_mcp.mcp.exceptions import SpiderClientError, SpiderValidationError
from spider_mcp.mcp.mcp_common.exceptions import MCPPaymentRequiredError, MCPUnauthorizedError
from spider_mcp.mcp.prompts import get_browser_session_prompt, get_handle_errors_prompt, get_select_tool_prompt
from spider_mcp.mcp.resources import get_capabilities_resource, get_sessions_resource
from spider_mcp.mcp.tools.ai import spider_ai_crawl, spider_ai_search
from spider_mcp.mcp.tools.core import (
    spider_crawl,
    spider_get_credits,
    spider_links,
    spider_scrape,
    spider_search,
    spider_transform,
)
from spider_mcp.mcp.tools.health import spider_health
from spider_mcp.utils import TRUNCATION_NOTICE


def _sent(mock_api_client) -> tuple:
    call = mock_api_client.api.request.call_args
    return call.args, call.kwargs


class TestCrawlAndScrape:
    @pytest.mark.asyncio
    async def test_crawl_sends_only_set_params(self, mock_api_client):
        result = await spider_crawl(
            api_client=mock_api_client,
            url="https://example.com",
            limit=5,
            return_format="markdown",
        )

        (method, path, body), kwargs = _sent(mock_api_client)
        assert (method, path) == ("POST", "/crawl")
        assert body == {"url": "https://example.com", "limit": 5, "return_format": "markdown"}
        assert kwargs == {"stream": True}
        assert json.loads(result)[0]["url"] == "https://example.com"

    @pytest.mark.asyncio
    async def test_crawl_extra_params_passthrough(self, mock_api_client):
        await spider_crawl(
            api_client=mock_api_client,
            url="https://example.com",
            limit=2,
            extra_params={"budget": {"*": 10}, "limit": 99},
        )

        (_, _, body), _ = _sent(mock_api_client)
        assert body["budget"] == {"*": 10}
        assert body["limit"] == 2

    @pytest.mark.asyncio
    async def test_crawl_rejects_negative_limit(self, mock_api_client):
        with pytest.raises(SpiderValidationError, match="limit"):
            await spider_crawl(api_client=mock_api_client, url="https://example.com", limit=-1)
        mock_api_client.api.request.assert_not_called()

    @pytest.mark.asyncio
    async def test_scrape_accepts_format_list(self, mock_api_client):
        await spider_scrape(
            api_client=mock_api_client,
            url="https://example.com",
            return_format=["markdown", "raw"],
            request="chrome",
        )

        (_, path, body), _ = _sent(mock_api_client)
        assert path == "/scrape"
        assert body["return_format"] == ["markdown", "raw"]
        assert body["request"] == "chrome"

    @pytest.mark.asyncio
    async def test_scrape_rejects_unknown_format(self, mock_api_client):
        with pytest.raises(SpiderValidationError, match="return_format"):
            await spider_scrape(api_client=mock_api_client, url="https://example.com", return_format="pdf")

    @pytest.mark.asyncio
    async def test_scrape_rejects_invalid_url(self, mock_api_client):
        with pytest.raises(SpiderValidationError, match="url"):
            await spider_scrape(api_client=mock_api_client, url="example.com")

    @pytest.mark.asyncio
    async def test_large_result_is_truncated(self, mock_api_client):
        mock_api_client.api.request.return_value = [{"content": "x" * 5000}]

        result = await spider_scrape(api_client=mock_api_client, url="https://example.com")

        assert result.endswith(TRUNCATION_NOTICE)
        assert len(result) == 1000 + len(TRUNCATION_NOTICE)


class TestSearchAndLinks:
    @pytest.mark.asyncio
    async def test_search(self, mock_api_client):
        await spider_search(api_client=mock_api_client, search="web crawlers", num=3, fetch_page_content=True)

        (_, path, body), _ = _sent(mock_api_client)
        assert path == "/search"
        assert body == {"search": "web crawlers", "num": 3, "fetch_page_content": True}

    @pytest.mark.asyncio
    async def test_search_rejects_empty_query(self, mock_api_client):
        with pytest.raises(SpiderValidationError, match="search cannot be empty"):
            await spider_search(api_client=mock_api_client, search="  ")

    @pytest.mark.asyncio
    async def test_links(self, mock_api_client):
        await spider_links(api_client=mock_api_client, url="https://example.com", limit=0)

        (_, path, body), _ = _sent(mock_api_client)
        assert path == "/links"
        assert body == {"url": "https://example.com", "limit": 0}


class TestTransformAndCredits:
    @pytest.mark.asyncio
    async def test_transform(self, mock_api_client):
        data = [{"html": "<h1>Hi</h1>", "url": "https://example.com"}]
        await spider_transform(api_client=mock_api_client, data=data, return_format="markdown")

        (_, path, body), _ = _sent(mock_api_client)
        assert path == "/transform"
        assert body == {"data": data, "return_format": "markdown"}

    @pytest.mark.asyncio
    async def test_transform_requires_html(self, mock_api_client):
        with pytest.raises(SpiderValidationError, match="data\\[0\\]"):
            await spider_transform(api_client=mock_api_client, data=[{"url": "https://example.com"}])

    @pytest.mark.asyncio
    async def test_transform_requires_documents(self, mock_api_client):
        with pytest.raises(SpiderValidationError, match="at least one document"):
            await spider_transform(api_client=mock_api_client, data=[])

    @pytest.mark.asyncio
    async def test_credits_uses_plain_get(self, mock_api_client):
        mock_api_client.api.request.return_value = {"data": {"credits": 5000}}

        result = await spider_get_credits(api_client=mock_api_client)

        (method, path, body), kwargs = _sent(mock_api_client)
        assert (method, path, body) == ("GET", "/data/credits", None)
        assert kwargs == {"stream": False}
        assert json.loads(result) == {"data": {"credits": 5000}}


class TestAiTools:
    @pytest.mark.asyncio
    async def test_ai_crawl(self, mock_api_client):
        await spider_ai_crawl(api_client=mock_api_client, url="https://example.com", prompt="Find pricing", limit=3)

        (_, path, body), _ = _sent(mock_api_client)
        assert path == "/ai/crawl"
        assert body["prompt"] == "Find pricing"

    @pytest.mark.asyncio
    async def test_ai_crawl_requires_prompt(self, mock_api_client):
        with pytest.raises(SpiderValidationError, match="prompt"):
            await spider_ai_crawl(api_client=mock_api_client, url="https://example.com", prompt="")

    @pytest.mark.asyncio
    async def test_ai_search_prompt_optional(self, mock_api_client):
        await spider_ai_search(api_client=mock_api_client, search="rust web frameworks")

        (_, path, body), _ = _sent(mock_api_client)
        assert path == "/ai/search"
        assert "prompt" not in body


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_missing_api_key(self, mock_api_client):
        mock_api_client.api.request.side_effect = ConfigurationError("SPIDER_API_KEY environment variable is required")

        with pytest.raises(SpiderClientError, match="Configuration error"):
            await spider_scrape(api_client=mock_api_client, url="https://example.com")

    @pytest.mark.asyncio
    async def test_unauthorized(self, mock_api_client):
        mock_api_client.api.request.side_effect = ProviderError("Spider API error 401: bad key", status_code=401)

        with pytest.raises(MCPUnauthorizedError):
            await spider_links(api_client=mock_api_client, url="https://example.com")

    @pytest.mark.asyncio
    async def test_payment_required(self, mock_api_client):
        mock_api_client.api.request.side_effect = ProviderError("Spider API error 402: no credits", status_code=402)

        with pytest.raises(MCPPaymentRequiredError) as exc_info:
            await spider_crawl(api_client=mock_api_client, url="https://example.com")
        assert exc_info.value.endpoint == "/crawl"
        assert exc_info.value.correlation_id


class TestHealth:
    @pytest.mark.asyncio
    async def test_healthy_with_key(self, mock_api_client):
        result = await spider_health(api_client=mock_api_client)

        assert result["status"] == "healthy"
        assert result["services"]["browser_sessions"]["max"] == 5
        assert result["services"]["browser_sessions"]["active"] == 0
        assert result["config"]["max_content_length"] == 1000
        assert "sk-test" not in json.dumps(result)

    @pytest.mark.asyncio
    async def test_degraded_without_key(self, mock_api_client):
        mock_api_client.settings.api_key = None
        result = await spider_health(api_client=mock_api_client)
        assert result["status"] == "degraded"


class TestResourcesAndPrompts:
    @pytest.mark.asyncio
    async def test_capabilities_without_services(self):
        data = json.loads(await get_capabilities_resource())
        assert "spider_browser_open" in data["tools"]["browser"]
        assert "markdown" in data["return_formats"]
        assert data["limits"]["browser_sessions"] == {}

    @pytest.mark.asyncio
    async def test_capabilities_with_services(self, mock_api_client):
        data = json.loads(await get_capabilities_resource(mock_api_client))
        assert data["limits"]["browser_sessions"]["max_concurrent"] == 5
        assert data["limits"]["max_result_characters"] == 1000

    @pytest.mark.asyncio
    async def test_sessions_resource(self, mock_api_client, connector):
        opened = await mock_api_client.sessions.open("sk-test")

        data = json.loads(await get_sessions_resource(mock_api_client))

        assert data["active"] == 1
        assert data["sessions"][0]["session_id"] == opened.session_id

    @pytest.mark.asyncio
    async def test_prompts_mention_tools(self):
        assert "spider_scrape" in await get_select_tool_prompt()
        assert "spider_browser_close" in await get_browser_session_prompt()
        assert "spider_browser_close" in await get_handle_errors_prompt()
