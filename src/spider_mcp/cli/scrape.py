"""Scraping and crawling commands."""

from pathlib import Path

import click

from spider_mcp.cli._common import app, emit, output_option, run_api_call
from spider_mcp.models import REQUEST_TYPES, RETURN_FORMATS
from spider_mcp.utils import compact_params

return_format_option = click.option(
    "--format",
    "-f",
    "return_format",
    type=click.Choice(RETURN_FORMATS, case_sensitive=False),
    default="markdown",
    show_default=True,
    help="Content format returned by the API.",
)
request_option = click.option(
    "--request",
    "-r",
    type=click.Choice(REQUEST_TYPES, case_sensitive=False),
    default=None,
    help="http (fast), chrome (JS rendering) or smart (auto-detect).",
)


@app.command("scrape", help="Scrape a single URL.")
@click.argument("url")
@return_format_option
@request_option
@click.option("--readability/--no-readability", default=None, help="Use the readability algorithm.")
@output_option
def scrape_url(url: str, return_format: str, request: str | None, readability: bool | None, output: Path | None) -> None:
    """Scrape a single URL.

    Examples:
        spider scrape https://example.com
        spider scrape https://example.com --format text --output page.json
        spider scrape https://spa-site.com --request chrome
    """
    body = compact_params({"url": url, "return_format": return_format, "request": request, "readability": readability})
    emit(run_api_call(lambda client: client.request("POST", "/scrape", body, stream=True)), output)


@app.command("crawl", help="Crawl a website following links.")
@click.argument("url")
@click.option("--limit", "-l", type=int, default=10, show_default=True, help="Maximum pages to crawl (0 = unlimited).")
@click.option("--depth", "-d", type=int, default=None, help="Maximum crawl depth.")
@return_format_option
@request_option
@output_option
def crawl_site(
    url: str,
    limit: int,
    depth: int | None,
    return_format: str,
    request: str | None,
    output: Path | None,
) -> None:
    """Crawl a website.

    Examples:
        spider crawl https://example.com --limit 5
        spider crawl https://example.com --limit 50 --depth 2 --output site.json
    """
    if limit < 0:
        raise click.BadParameter("must be >= 0", param_hint="--limit")
    body = compact_params(
        {"url": url, "limit": limit, "depth": depth, "return_format": return_format, "request": request}
    )
    emit(run_api_call(lambda client: client.request("POST", "/crawl", body, stream=True)), output)


@app.command("links", help="List the links on a page.")
@click.argument("url")
@click.option("--limit", "-l", type=int, default=None, help="Maximum links to return.")
@output_option
def list_links(url: str, limit: int | None, output: Path | None) -> None:
    """List links found on a page without fetching them.

    Examples:
        spider links https://example.com
    """
    body = compact_params({"url": url, "limit": limit})
    emit(run_api_call(lambda client: client.request("POST", "/links", body, stream=True)), output)
