"""
Browser automation tools backed by the session manager.

``spider_browser_open`` connects a cloud browser over CDP and returns a
session id; every other tool takes that id. Sessions close after 5 minutes
without activity, and at most 5 may be open at once.
"""

import asyncio
from typing import Any, Literal

from fastmcp.utilities.types import Image

from spider_mcp.mcp.api_client import SpiderServices
from spider_mcp.mcp.exceptions import SpiderValidationError, log_tool_exception, map_exception
from spider_mcp.mcp.mcp_common.correlation import generate_correlation_id, get_correlation_id
from spider_mcp.mcp.validators import (
    validate_engine,
    validate_expression,
    validate_selector,
    validate_session_id,
    validate_stealth,
    validate_timeout,
    validate_url,
)

DEFAULT_ELEMENT_TIMEOUT_MS = 10000
DEFAULT_WAIT_TIMEOUT_MS = 30000

# Pause after a click so triggered navigation or DOM updates can start
CLICK_SETTLE_SECONDS = 0.5

PAGE_TEXT_EXPRESSION = 'document.body.innerText || document.body.textContent || ""'

OPEN_NOTE = "Use this session_id with other spider_browser_* tools. Close with spider_browser_close when done."


async def spider_browser_open(
    api_client: SpiderServices,
    browser: Literal["chrome", "chrome-new", "firefox", "auto"] | None = None,
    stealth: int | None = None,
    country: str | None = None,
) -> dict:
    """
    Open a new remote browser session in Spider's cloud.

    Returns a session_id for use with the other spider_browser_* tools. The
    browser comes with anti-bot protection and proxy rotation. Sessions close
    automatically after 5 minutes of inactivity; at most 5 can be open at
    once. Always close sessions with spider_browser_close when done to avoid
    unnecessary charges.

    Args:
        api_client: Injected SpiderServices instance
        browser: Engine: auto (recommended), chrome, chrome-new (dedicated) or firefox
        stealth: Stealth/proxy level 0-3. 0=auto, 1=standard, 2=residential, 3=premium
        country: ISO country code for the browser's proxy exit (e.g. "us")

    Returns:
        {"session_id", "browser", "active_sessions", "note", "correlation_id"}
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        engine = validate_engine(browser)
        level = validate_stealth(stealth)

        opened = await api_client.sessions.open(api_client.api_key, engine=engine, stealth=level, country=country)

        return {
            "session_id": opened.session_id,
            "browser": opened.engine,
            "active_sessions": api_client.sessions.session_count(),
            "note": OPEN_NOTE,
            "correlation_id": correlation_id,
        }

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_browser_open", e, correlation_id)
        raise map_exception(e, endpoint="browser/open", correlation_id=correlation_id) from e


async def spider_browser_navigate(api_client: SpiderServices, session_id: str, url: str) -> dict:
    """
    Navigate the browser to a URL and wait for the page to load.

    A blocked response (403/429/503) or failed navigation is retried on a
    fresh connection with a higher stealth level.

    Args:
        api_client: Injected SpiderServices instance
        session_id: Session ID from spider_browser_open
        url: URL to navigate to

    Returns:
        {"url", "title", "status", "attempts", "stealth", "correlation_id"}
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        sid = validate_session_id(session_id)
        target = validate_url(url)

        result = await api_client.sessions.get_browser(sid).goto(target)

        return {**result.model_dump(), "correlation_id": correlation_id}

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_browser_navigate", e, correlation_id)
        raise map_exception(e, endpoint="browser/navigate", correlation_id=correlation_id) from e


async def spider_browser_click(
    api_client: SpiderServices,
    session_id: str,
    selector: str,
    timeout: int = DEFAULT_ELEMENT_TIMEOUT_MS,
) -> dict:
    """
    Click an element on the page. Waits for the element to appear first.

    Args:
        api_client: Injected SpiderServices instance
        session_id: Session ID from spider_browser_open
        selector: CSS selector, e.g. "button.submit", "#login-btn", "a[href='/pricing']"
        timeout: Maximum wait for the element in ms (default: 10000)

    Returns:
        {"clicked", "current_url", "correlation_id"}
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        sid = validate_session_id(session_id)
        css = validate_selector(selector)
        wait_ms = validate_timeout(timeout)

        page = api_client.sessions.get_page(sid)
        await page.wait_for_selector(css, timeout=wait_ms)
        await page.click(css)
        await asyncio.sleep(CLICK_SETTLE_SECONDS)

        return {"clicked": css, "current_url": page.url, "correlation_id": correlation_id}

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_browser_click", e, correlation_id)
        raise map_exception(e, endpoint="browser/click", correlation_id=correlation_id) from e


async def spider_browser_fill(
    api_client: SpiderServices,
    session_id: str,
    selector: str,
    value: str,
    timeout: int = DEFAULT_ELEMENT_TIMEOUT_MS,
) -> dict:
    """
    Fill a form field. Existing content is replaced.

    Works for text inputs, textareas and contenteditable elements.

    Args:
        api_client: Injected SpiderServices instance
        session_id: Session ID from spider_browser_open
        selector: CSS selector of the field, e.g. "input[name='email']"
        value: Text to put in the field
        timeout: Maximum wait for the element in ms (default: 10000)

    Returns:
        {"filled", "value_length", "correlation_id"}
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        sid = validate_session_id(session_id)
        css = validate_selector(selector)
        wait_ms = validate_timeout(timeout)
        if not isinstance(value, str):
            raise SpiderValidationError("value must be a string", field="value", value=value)

        page = api_client.sessions.get_page(sid)
        await page.wait_for_selector(css, timeout=wait_ms)
        await page.fill(css, value)

        return {"filled": css, "value_length": len(value), "correlation_id": correlation_id}

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_browser_fill", e, correlation_id)
        raise map_exception(e, endpoint="browser/fill", correlation_id=correlation_id) from e


async def spider_browser_screenshot(api_client: SpiderServices, session_id: str) -> Image:
    """
    Take a PNG screenshot of the current page.

    Use for visual verification, debugging, or capturing page state.

    Args:
        api_client: Injected SpiderServices instance
        session_id: Session ID from spider_browser_open

    Returns:
        PNG image content
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        sid = validate_session_id(session_id)
        page = api_client.sessions.get_page(sid)
        data = await page.screenshot(type="png")
        return Image(data=data, format="png")

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_browser_screenshot", e, correlation_id)
        raise map_exception(e, endpoint="browser/screenshot", correlation_id=correlation_id) from e


async def spider_browser_content(
    api_client: SpiderServices,
    session_id: str,
    format: Literal["html", "text"] = "html",
) -> dict:
    """
    Get the current page content as full HTML or visible text.

    Large pages can be converted with spider_transform afterwards.

    Args:
        api_client: Injected SpiderServices instance
        session_id: Session ID from spider_browser_open
        format: html (full DOM, default) or text (visible text only)

    Returns:
        {"url", "title", "content", "length", "truncated", "correlation_id"}
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        sid = validate_session_id(session_id)
        if format not in ("html", "text"):
            raise SpiderValidationError("format must be 'html' or 'text'", field="format", value=format)

        page = api_client.sessions.get_page(sid)
        if format == "text":
            content = await page.evaluate(PAGE_TEXT_EXPRESSION) or ""
        else:
            content = await page.content()

        limit = api_client.max_content_length
        return {
            "url": page.url,
            "title": await page.title(),
            "content": content[:limit],
            "length": len(content),
            "truncated": len(content) > limit,
            "correlation_id": correlation_id,
        }

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_browser_content", e, correlation_id)
        raise map_exception(e, endpoint="browser/content", correlation_id=correlation_id) from e


async def spider_browser_evaluate(api_client: SpiderServices, session_id: str, expression: str) -> dict:
    """
    Run JavaScript in the page and return the result.

    The expression runs in the page context with DOM access. Wrap multi-line
    code in a function: (function() { ... })()

    Args:
        api_client: Injected SpiderServices instance
        session_id: Session ID from spider_browser_open
        expression: JavaScript expression to evaluate

    Returns:
        {"result", "correlation_id"}
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        sid = validate_session_id(session_id)
        script = validate_expression(expression)

        page = api_client.sessions.get_page(sid)
        result: Any = await page.evaluate(script)

        return {"result": result, "correlation_id": correlation_id}

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_browser_evaluate", e, correlation_id)
        raise map_exception(e, endpoint="browser/evaluate", correlation_id=correlation_id) from e


async def spider_browser_wait_for(
    api_client: SpiderServices,
    session_id: str,
    selector: str | None = None,
    navigation: bool = False,
    timeout: int = DEFAULT_WAIT_TIMEOUT_MS,
) -> dict:
    """
    Wait for a condition on the page.

    Use after navigation or actions that load content dynamically. Waits for
    the selector if given, else for the next navigation if navigation=True,
    else for the network to go idle.

    Args:
        api_client: Injected SpiderServices instance
        session_id: Session ID from spider_browser_open
        selector: CSS selector that must appear in the DOM
        navigation: Wait for the next navigation to complete
        timeout: Maximum wait in ms (default: 30000)

    Returns:
        {"waited_for", ..., "correlation_id"}
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        sid = validate_session_id(session_id)
        wait_ms = validate_timeout(timeout)

        page = api_client.sessions.get_page(sid)

        if selector:
            await page.wait_for_selector(selector, timeout=wait_ms)
            return {"waited_for": f"selector: {selector}", "correlation_id": correlation_id}

        if navigation:
            async with page.expect_navigation(timeout=wait_ms):
                pass
            return {
                "waited_for": "navigation",
                "url": page.url,
                "title": await page.title(),
                "correlation_id": correlation_id,
            }

        await page.wait_for_load_state("networkidle", timeout=wait_ms)
        return {"waited_for": "network_idle", "correlation_id": correlation_id}

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_browser_wait_for", e, correlation_id)
        raise map_exception(e, endpoint="browser/wait_for", correlation_id=correlation_id) from e


async def spider_browser_close(api_client: SpiderServices, session_id: str) -> dict:
    """
    Close a browser session and release its resources.

    Always call this when done with a session to stop billing. Closing an
    unknown or already closed session succeeds and changes nothing.

    Args:
        api_client: Injected SpiderServices instance
        session_id: Session ID from spider_browser_open

    Returns:
        {"closed", "remaining_sessions", "correlation_id"}
    """
    correlation_id = get_correlation_id() or generate_correlation_id()

    try:
        sid = validate_session_id(session_id)
        await api_client.sessions.close(sid)

        return {
            "closed": sid,
            "remaining_sessions": api_client.sessions.session_count(),
            "correlation_id": correlation_id,
        }

    except SpiderValidationError:
        raise
    except Exception as e:
        log_tool_exception("spider_browser_close", e, correlation_id)
        raise map_exception(e, endpoint="browser/close", correlation_id=correlation_id) from e
