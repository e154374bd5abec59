"""
Core Spider API tools: crawl, scrape, search, links, screenshot, unblocker,
transform and credits.

Commonly used options are explicit parameters. Anything else the Spider API
accepts (https://spider.cloud/docs/api) can be passed through
``extra_params``, e.g. ``{"budget": {"*": 100}, "automation": {...}}``.
Parameters left unset are not sent, so the API applies its own defaults.
"""

from typing import Any, Literal

from spider_mcp.mcp.api_client import SpiderServices
from spider_mcp.mcp.exceptions import SpiderValidationError, log_tool_exception, map_exception
from spider_mcp.mcp.mcp_common.correlation import generate_correlation_id, get_correlation_id
from spider_mcp.mcp.tools._common import call_spider, check_return_format
from spider_mcp.mcp.validators import (
    validate_positive_int,
    validate_query,
    validate_request_type,
    validate_url,
)
from spider_mcp.utils import compact_params

ProxyPool = Literal["residential", "mobile", "isp", "datacenter"]


async def spider_crawl(
    api_client: SpiderServices,
    url: str,
    limit: int | None = None,
    depth: int | None = None,
    return_format: str | list[str] | None = None,
    request: Literal["http", "chrome", "smart"] | None = None,
    readability: bool | None = None,
    root_selector: str | None = None,
    exclude_selector: str | None = None,
    return_page_links: bool | None = None,
    metadata: bool | None = None,
    subdomains: bool | None = None,
    blacklist: list[str] | None = None,
    whitelist: list[str] | None = None,
    proxy_enabled: bool | None = None,
    proxy: ProxyPool | None = None,
    country_code: str | None = None,
    cookies: str | None = None,
    delay: int | None = None,
    extra_params: dict[str, Any] | None = None,
) -> str:
    """
    Crawl a website and extract content from multiple pages.

    Follows links up to the given depth/limit. Returns content in markdown,
    HTML, text, or other formats. Powered by Spider's smart JS rendering.

    **Prefer other tools when:**
    - You only need one page → use spider_scrape (faster, cheaper)
    - You only need URLs → use spider_links

    Args:
        api_client: Injected SpiderServices instance
        url: Start URL. Comma-separate for multiple URLs.
        limit: Maximum pages to crawl. 0 for unlimited. Keep this small to
            control cost and response size.
        depth: Maximum crawl depth from the start URL (API default: 25)
        return_format: markdown, commonmark, raw, text, xml, bytes or empty,
            or a list of these (API default: raw)
        request: http (fast), chrome (JS rendering) or smart (auto-detect)
        readability: Use the readability algorithm for cleaner content
        root_selector: CSS selector scoping extraction (e.g. "#main-content")
        exclude_selector: CSS selector for elements to drop from output
        return_page_links: Include links found on each page
        metadata: Collect page metadata (title, description, keywords)
        subdomains: Follow subdomains
        blacklist: URL path patterns to exclude (regex supported)
        whitelist: URL path patterns to include (regex supported)
        proxy_enabled: Enable premium proxies (credit cost x1.5)
        proxy: Proxy pool: residential, mobile, isp or datacenter
        country_code: ISO country code for geo-located proxies (e.g. "gb")
        cookies: HTTP cookies for authenticated crawling
        delay: Delay between requests in ms (max 60000); disables concurrency
        extra_params: Any other Spider crawl option, sent as-is

    Returns:
        Pretty-printed JSON of the crawled pages, truncated at 200K characters
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        body = compact_params(
            {
                "url": validate_url(url),
                "limit": validate_positive_int(limit, "limit", allow_zero=True),
                "depth": validate_positive_int(depth, "depth", allow_zero=True),
                "return_format": check_return_format(return_format),
                "request": validate_request_type(request),
                "readability": readability,
                "root_selector": root_selector,
                "exclude_selector": exclude_selector,
                "return_page_links": return_page_links,
                "metadata": metadata,
                "subdomains": subdomains,
                "blacklist": blacklist,
                "whitelist": whitelist,
                "proxy_enabled": proxy_enabled,
                "proxy": proxy,
                "country_code": country_code,
                "cookies": cookies,
                "delay": validate_positive_int(delay, "delay", allow_zero=True),
            },
            extra_params,
        )
        return await call_spider(api_client, "/crawl", body)

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_crawl", e, correlation_id)
        raise map_exception(e, endpoint="/crawl", correlation_id=correlation_id) from e


async def spider_scrape(
    api_client: SpiderServices,
    url: str,
    return_format: str | list[str] | None = None,
    request: Literal["http", "chrome", "smart"] | None = None,
    readability: bool | None = None,
    root_selector: str | None = None,
    exclude_selector: str | None = None,
    return_page_links: bool | None = None,
    return_json_data: bool | None = None,
    metadata: bool | None = None,
    screenshot: bool | None = None,
    proxy_enabled: bool | None = None,
    proxy: ProxyPool | None = None,
    country_code: str | None = None,
    cookies: str | None = None,
    extra_params: dict[str, Any] | None = None,
) -> str:
    """
    Scrape a single page and extract its content.

    No link following: fetches and processes one URL. Faster and cheaper than
    crawling. Supports all output formats and optional screenshot capture.

    **Common patterns:**
    - Clean article text: return_format="markdown", readability=True
    - JS-heavy pages: request="chrome"
    - Bot-protected pages that fail here → use spider_unblocker

    Args:
        api_client: Injected SpiderServices instance
        url: The URL to scrape
        return_format: Output format or list of formats (API default: raw)
        request: http (fast), chrome (JS rendering) or smart (auto-detect)
        readability: Use the readability algorithm for cleaner content
        root_selector: CSS selector scoping extraction
        exclude_selector: CSS selector for elements to drop from output
        return_page_links: Include links found on the page
        return_json_data: Extract JSON-LD and other structured data
        metadata: Collect page metadata (title, description, keywords)
        screenshot: Also capture a screenshot
        proxy_enabled: Enable premium proxies (credit cost x1.5)
        proxy: Proxy pool: residential, mobile, isp or datacenter
        country_code: ISO country code for geo-located proxies
        cookies: HTTP cookies for authenticated scraping
        extra_params: Any other Spider scrape option, sent as-is

    Returns:
        Pretty-printed JSON of the scraped page
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        body = compact_params(
            {
                "url": validate_url(url),
                "return_format": check_return_format(return_format),
                "request": validate_request_type(request),
                "readability": readability,
                "root_selector": root_selector,
                "exclude_selector": exclude_selector,
                "return_page_links": return_page_links,
                "return_json_data": return_json_data,
                "metadata": metadata,
                "screenshot": screenshot,
                "proxy_enabled": proxy_enabled,
                "proxy": proxy,
                "country_code": country_code,
                "cookies": cookies,
            },
            extra_params,
        )
        return await call_spider(api_client, "/scrape", body)

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_scrape", e, correlation_id)
        raise map_exception(e, endpoint="/scrape", correlation_id=correlation_id) from e


async def spider_search(
    api_client: SpiderServices,
    search: str,
    num: int | None = None,
    search_limit: int | None = None,
    fetch_page_content: bool | None = None,
    country: str | None = None,
    location: str | None = None,
    language: str | None = None,
    tbs: str | None = None,
    page: int | None = None,
    quick_search: bool | None = None,
    return_format: str | list[str] | None = None,
    request: Literal["http", "chrome", "smart"] | None = None,
    extra_params: dict[str, Any] | None = None,
) -> str:
    """
    Search the web and optionally fetch full page content from results.

    Set fetch_page_content=True to get full page data, not just URLs.

    Args:
        api_client: Injected SpiderServices instance
        search: Search query
        num: Maximum results to return
        search_limit: Maximum result URLs to fetch. 0 for all.
        fetch_page_content: Fetch full content from each result page (default: false)
        country: Two-letter country code (e.g. "us")
        location: Location name (e.g. "United Kingdom")
        language: Two-letter language code (e.g. "en")
        tbs: Time range: qdr:h (hour), qdr:d (24h), qdr:w (week), qdr:m (month), qdr:y (year)
        page: Result page number
        quick_search: Prioritise speed over completeness
        return_format: Format for fetched page content
        request: Request type used when fetching result pages
        extra_params: Any other Spider search option, sent as-is

    Returns:
        Pretty-printed JSON of the search results
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        body = compact_params(
            {
                "search": validate_query(search, "search"),
                "num": validate_positive_int(num, "num"),
                "search_limit": validate_positive_int(search_limit, "search_limit", allow_zero=True),
                "fetch_page_content": fetch_page_content,
                "country": country,
                "location": location,
                "language": language,
                "tbs": tbs,
                "page": validate_positive_int(page, "page"),
                "quick_search": quick_search,
                "return_format": check_return_format(return_format),
                "request": validate_request_type(request),
            },
            extra_params,
        )
        return await call_spider(api_client, "/search", body)

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_search", e, correlation_id)
        raise map_exception(e, endpoint="/search", correlation_id=correlation_id) from e


async def spider_links(
    api_client: SpiderServices,
    url: str,
    limit: int | None = None,
    return_format: str | list[str] | None = None,
    request: Literal["http", "chrome", "smart"] | None = None,
    extra_params: dict[str, Any] | None = None,
) -> str:
    """
    Extract all links from a page without fetching their content.

    Fast way to discover URLs on a site for further processing.

    Args:
        api_client: Injected SpiderServices instance
        url: URL to extract links from
        limit: Maximum links to return
        return_format: Output format
        request: http, chrome or smart
        extra_params: Any other Spider links option, sent as-is

    Returns:
        Pretty-printed JSON of the discovered links
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        body = compact_params(
            {
                "url": validate_url(url),
                "limit": validate_positive_int(limit, "limit", allow_zero=True),
                "return_format": check_return_format(return_format),
                "request": validate_request_type(request),
            },
            extra_params,
        )
        return await call_spider(api_client, "/links", body)

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_links", e, correlation_id)
        raise map_exception(e, endpoint="/links", correlation_id=correlation_id) from e


async def spider_screenshot(
    api_client: SpiderServices,
    url: str,
    full_page: bool | None = None,
    omit_background: bool | None = None,
    block_images: bool | None = None,
    viewport: dict[str, Any] | None = None,
    cookies: str | None = None,
    country_code: str | None = None,
    timeout: int | None = None,
    extra_params: dict[str, Any] | None = None,
) -> str:
    """
    Capture a screenshot of a web page via the API.

    Returns base64-encoded PNG data inside the JSON response. For screenshots
    of an interactive session use spider_browser_screenshot instead.

    Args:
        api_client: Injected SpiderServices instance
        url: URL to screenshot
        full_page: Capture the full scrollable page (API default: true)
        omit_background: Transparent background
        block_images: Block images before capturing
        viewport: Device viewport, e.g. {"width": 1280, "height": 800}
        cookies: HTTP cookies
        country_code: ISO country code for the proxy
        timeout: Request timeout in ms
        extra_params: Any other Spider screenshot option (e.g. cdp_params), sent as-is

    Returns:
        Pretty-printed JSON including the base64 image
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        body = compact_params(
            {
                "url": validate_url(url),
                "full_page": full_page,
                "omit_background": omit_background,
                "block_images": block_images,
                "viewport": viewport,
                "cookies": cookies,
                "country_code": country_code,
                "timeout": validate_positive_int(timeout, "timeout"),
            },
            extra_params,
        )
        return await call_spider(api_client, "/screenshot", body)

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_screenshot", e, correlation_id)
        raise map_exception(e, endpoint="/screenshot", correlation_id=correlation_id) from e


async def spider_unblocker(
    api_client: SpiderServices,
    url: str,
    return_format: str | list[str] | None = None,
    request: Literal["http", "chrome", "smart"] | None = None,
    readability: bool | None = None,
    root_selector: str | None = None,
    proxy: ProxyPool | None = None,
    country_code: str | None = None,
    cookies: str | None = None,
    screenshot: bool | None = None,
    extra_params: dict[str, Any] | None = None,
) -> str:
    """
    Access content from bot-protected websites.

    Uses advanced anti-bot bypass with fingerprinting and proxy rotation.
    Costs 10-40 extra credits per successful unblock on top of the scrape cost,
    so try spider_scrape first.

    Args:
        api_client: Injected SpiderServices instance
        url: The protected URL
        return_format: Output format or list of formats
        request: http, chrome or smart
        readability: Use the readability algorithm for cleaner content
        root_selector: CSS selector scoping extraction
        proxy: Proxy pool: residential, mobile, isp or datacenter
        country_code: ISO country code for geo-located proxies
        cookies: HTTP cookies
        screenshot: Also capture a screenshot
        extra_params: Any other Spider option, sent as-is

    Returns:
        Pretty-printed JSON of the unblocked page
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        body = compact_params(
            {
                "url": validate_url(url),
                "return_format": check_return_format(return_format),
                "request": validate_request_type(request),
                "readability": readability,
                "root_selector": root_selector,
                "proxy": proxy,
                "country_code": country_code,
                "cookies": cookies,
                "screenshot": screenshot,
            },
            extra_params,
        )
        return await call_spider(api_client, "/unblocker", body)

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_unblocker", e, correlation_id)
        raise map_exception(e, endpoint="/unblocker", correlation_id=correlation_id) from e


async def spider_transform(
    api_client: SpiderServices,
    data: list[dict[str, Any]],
    return_format: str | list[str] | None = None,
    readability: bool | None = None,
    clean: bool | None = None,
    clean_full: bool | None = None,
) -> str:
    """
    Transform HTML to markdown, text, or other formats without fetching anything.

    Use when you already have HTML (for example from spider_browser_content)
    and need to convert it.

    Args:
        api_client: Injected SpiderServices instance
        data: Documents to transform, each {"html": "...", "url": "optional source URL"}
        return_format: Target format (e.g. "markdown")
        readability: Apply readability preprocessing
        clean: Clean output for AI consumption (strip nav, footers)
        clean_full: Aggressively clean HTML attributes

    Returns:
        Pretty-printed JSON of the transformed documents
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        if not data:
            raise SpiderValidationError("data must contain at least one document", field="data", value=data)
        for index, document in enumerate(data):
            if not isinstance(document, dict) or not isinstance(document.get("html"), str):
                raise SpiderValidationError(
                    f"data[{index}] must be an object with an 'html' string",
                    field="data",
                    value=document,
                )

        body = compact_params(
            {
                "data": data,
                "return_format": check_return_format(return_format),
                "readability": readability,
                "clean": clean,
                "clean_full": clean_full,
            }
        )
        return await call_spider(api_client, "/transform", body)

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_transform", e, correlation_id)
        raise map_exception(e, endpoint="/transform", correlation_id=correlation_id) from e


async def spider_get_credits(api_client: SpiderServices) -> str:
    """
    Check the available Spider API credit balance.

    Returns:
        Pretty-printed JSON with the credits remaining on the account
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        return await call_spider(api_client, "/data/credits", method="GET", stream=False)
    except Exception as e:
        log_tool_exception("spider_get_credits", e, correlation_id)
        raise map_exception(e, endpoint="/data/credits", correlation_id=correlation_id) from e
