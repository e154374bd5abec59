"""
AI-guided Spider tools.

These endpoints take a plain-English ``prompt`` alongside the usual
options and require an active AI subscription
(https://spider.cloud/ai/pricing). Without one the API answers with an
error that is passed back to the caller unchanged.
"""

from typing import Any, Literal

from spider_mcp.mcp.api_client import SpiderServices
from spider_mcp.mcp.exceptions import SpiderValidationError, log_tool_exception, map_exception
from spider_mcp.mcp.mcp_common.correlation import generate_correlation_id, get_correlation_id
from spider_mcp.mcp.tools._common import call_spider, check_return_format
from spider_mcp.mcp.validators import (
    validate_positive_int,
    validate_prompt,
    validate_query,
    validate_request_type,
    validate_url,
)
from spider_mcp.utils import compact_params


async def spider_ai_crawl(
    api_client: SpiderServices,
    url: str,
    prompt: str,
    limit: int | None = None,
    return_format: str | list[str] | None = None,
    request: Literal["http", "chrome", "smart"] | None = None,
    proxy_enabled: bool | None = None,
    cookies: str | None = None,
    extra_params: dict[str, Any] | None = None,
) -> str:
    """
    AI-guided website crawling. Requires an AI subscription.

    Describe what you want in plain English and the crawl is optimised for it.

    Args:
        api_client: Injected SpiderServices instance
        url: URL to crawl
        prompt: Instructions, e.g. "Find all product pages and extract pricing info"
        limit: Maximum pages to crawl
        return_format: Output format or list of formats
        request: http, chrome or smart
        proxy_enabled: Enable premium proxies
        cookies: HTTP cookies
        extra_params: Any other Spider option, sent as-is

    Returns:
        Pretty-printed JSON of the crawl results
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        body = compact_params(
            {
                "url": validate_url(url),
                "prompt": validate_prompt(prompt),
                "limit": validate_positive_int(limit, "limit", allow_zero=True),
                "return_format": check_return_format(return_format),
                "request": validate_request_type(request),
                "proxy_enabled": proxy_enabled,
                "cookies": cookies,
            },
            extra_params,
        )
        return await call_spider(api_client, "/ai/crawl", body)

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_ai_crawl", e, correlation_id)
        raise map_exception(e, endpoint="/ai/crawl", correlation_id=correlation_id) from e


async def spider_ai_scrape(
    api_client: SpiderServices,
    url: str,
    prompt: str,
    return_format: str | list[str] | None = None,
    request: Literal["http", "chrome", "smart"] | None = None,
    proxy_enabled: bool | None = None,
    cookies: str | None = None,
    extra_params: dict[str, Any] | None = None,
) -> str:
    """
    Extract structured data from a page using plain English. Requires an AI subscription.

    Describe the data you need and get clean JSON back, no CSS selectors needed.

    Args:
        api_client: Injected SpiderServices instance
        url: URL to scrape
        prompt: e.g. "Extract the article title, author, publish date and main text"
        return_format: Output format or list of formats
        request: http, chrome or smart
        proxy_enabled: Enable premium proxies
        cookies: HTTP cookies
        extra_params: Any other Spider option, sent as-is

    Returns:
        Pretty-printed JSON of the extracted data
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        body = compact_params(
            {
                "url": validate_url(url),
                "prompt": validate_prompt(prompt),
                "return_format": check_return_format(return_format),
                "request": validate_request_type(request),
                "proxy_enabled": proxy_enabled,
                "cookies": cookies,
            },
            extra_params,
        )
        return await call_spider(api_client, "/ai/scrape", body)

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_ai_scrape", e, correlation_id)
        raise map_exception(e, endpoint="/ai/scrape", correlation_id=correlation_id) from e


async def spider_ai_search(
    api_client: SpiderServices,
    search: str,
    prompt: str | None = None,
    num: int | None = None,
    fetch_page_content: bool | None = None,
    country: str | None = None,
    language: str | None = None,
    tbs: str | None = None,
    return_format: str | list[str] | None = None,
    extra_params: dict[str, Any] | None = None,
) -> str:
    """
    AI-enhanced web search with intent understanding and relevance ranking.

    Requires an AI subscription.

    Args:
        api_client: Injected SpiderServices instance
        search: Search query
        prompt: Extra guidance for filtering or ranking results
        num: Maximum results
        fetch_page_content: Fetch full page content from results
        country: Two-letter country code
        language: Two-letter language code
        tbs: Time range filter (e.g. qdr:w)
        return_format: Format for fetched page content
        extra_params: Any other Spider option, sent as-is

    Returns:
        Pretty-printed JSON of the ranked results
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        body = compact_params(
            {
                "search": validate_query(search, "search"),
                "prompt": validate_prompt(prompt) if prompt is not None else None,
                "num": validate_positive_int(num, "num"),
                "fetch_page_content": fetch_page_content,
                "country": country,
                "language": language,
                "tbs": tbs,
                "return_format": check_return_format(return_format),
            },
            extra_params,
        )
        return await call_spider(api_client, "/ai/search", body)

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_ai_search", e, correlation_id)
        raise map_exception(e, endpoint="/ai/search", correlation_id=correlation_id) from e


async def spider_ai_browser(
    api_client: SpiderServices,
    url: str,
    prompt: str,
    return_format: str | list[str] | None = None,
    proxy_enabled: bool | None = None,
    cookies: str | None = None,
    extra_params: dict[str, Any] | None = None,
) -> str:
    """
    Browser automation described in natural language. Requires an AI subscription.

    Spider drives the browser for you: click buttons, fill forms, navigate.
    For step-by-step control use the spider_browser_* tools instead.

    Args:
        api_client: Injected SpiderServices instance
        url: Starting URL
        prompt: e.g. "Click the Sign In button, enter email, submit the form"
        return_format: Output format
        proxy_enabled: Enable premium proxies
        cookies: HTTP cookies
        extra_params: Any other Spider option, sent as-is

    Returns:
        Pretty-printed JSON of the automation result
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        body = compact_params(
            {
                "url": validate_url(url),
                "prompt": validate_prompt(prompt),
                "return_format": check_return_format(return_format),
                "proxy_enabled": proxy_enabled,
                "cookies": cookies,
            },
            extra_params,
        )
        return await call_spider(api_client, "/ai/browser", body)

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_ai_browser", e, correlation_id)
        raise map_exception(e, endpoint="/ai/browser", correlation_id=correlation_id) from e


async def spider_ai_links(
    api_client: SpiderServices,
    url: str,
    prompt: str,
    limit: int | None = None,
    return_format: str | list[str] | None = None,
    request: Literal["http", "chrome", "smart"] | None = None,
    extra_params: dict[str, Any] | None = None,
) -> str:
    """
    AI link extraction and filtering. Requires an AI subscription.

    Args:
        api_client: Injected SpiderServices instance
        url: URL to extract links from
        prompt: e.g. "Find all documentation links and API reference pages"
        limit: Maximum links
        return_format: Output format
        request: http, chrome or smart
        extra_params: Any other Spider option, sent as-is

    Returns:
        Pretty-printed JSON of the matching links
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        body = compact_params(
            {
                "url": validate_url(url),
                "prompt": validate_prompt(prompt),
                "limit": validate_positive_int(limit, "limit", allow_zero=True),
                "return_format": check_return_format(return_format),
                "request": validate_request_type(request),
            },
            extra_params,
        )
        return await call_spider(api_client, "/ai/links", body)

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_ai_links", e, correlation_id)
        raise map_exception(e, endpoint="/ai/links", correlation_id=correlation_id) from e
