"""MCP prompts for the Spider server.

Workflow guidance for agents choosing between Spider tools.
"""


async def get_select_tool_prompt() -> str:
    """Guide for choosing the right Spider tool."""
    return """# Choosing a Spider Tool

| Need | Tool |
|------|------|
| Content of one known URL | `spider_scrape` |
| Many pages from one site | `spider_crawl` (set `limit`!) |
| URLs on a page, no content | `spider_links` |
| Find pages about a topic | `spider_search` |
| Page blocked by anti-bot | `spider_unblocker` |
| HTML you already have → markdown | `spider_transform` |
| Log in, click, fill forms step by step | `spider_browser_*` |
| Describe the job in plain English | `spider_ai_*` (AI subscription) |

## Keeping results small
- Results over 200K characters are truncated. Use `limit`, `depth`,
  `root_selector` and `return_format="markdown"` to stay under it.
- `extra_params` passes any other Spider API option through unchanged.

## Credits
- `spider_get_credits` shows the balance.
- `proxy_enabled`, premium `proxy` pools and `spider_unblocker` cost more.
"""


async def get_browser_session_prompt() -> str:
    """Guide for driving a remote browser session."""
    return """# Driving a Spider Browser Session

1. `spider_browser_open(browser="auto")` → keep the `session_id`.
2. `spider_browser_navigate(session_id, url)`.
3. Interact:
   - `spider_browser_click(session_id, selector)`
   - `spider_browser_fill(session_id, selector, value)`
   - `spider_browser_wait_for(session_id, selector=...)` for dynamic content
4. Read:
   - `spider_browser_content(session_id, format="text")`
   - `spider_browser_screenshot(session_id)`
   - `spider_browser_evaluate(session_id, expression)`
5. **Always** `spider_browser_close(session_id)` when done.

## Limits
- At most 5 sessions at once. Opening a 6th fails until one is closed.
- A session unused for 5 minutes is closed automatically. If a tool reports
  "Browser session not found", open a new session.

## When a site blocks you
- Navigation retries automatically with higher stealth.
- Open the session with `stealth=2` (residential) or `stealth=3` (premium)
  for heavily protected sites.
"""


async def get_handle_errors_prompt() -> str:
    """Guide for troubleshooting Spider tool errors."""
    return """# Handling Spider Errors

- **SPIDER_API_KEY environment variable is required**: set the key
  (https://spider.cloud/api-keys) in the MCP server environment.
- **Spider API error 401**: the key is invalid.
- **Spider API error 402**: out of credits; check `spider_get_credits`.
- **Spider API error 429**: rate limited; wait and retry.
- **Maximum 5 concurrent browser sessions reached**: close a session with
  `spider_browser_close`.
- **Browser session not found**: the session expired or was closed; open a
  new one.
- **Browser action timed out**: the selector never appeared; check it with
  `spider_browser_content` or raise `timeout`.

Every error includes a correlation id (`cid=...`) matching the server log.
"""
