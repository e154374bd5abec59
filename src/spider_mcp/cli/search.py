"""Search command."""

from pathlib import Path

import click

from spider_mcp.cli._common import app, emit, output_option, run_api_call
from spider_mcp.utils import compact_params


@app.command("search", help="Search the web.")
@click.argument("query")
@click.option("--num", "-n", type=int, default=5, show_default=True, help="Maximum results.")
@click.option("--fetch-content/--no-fetch-content", default=False, show_default=True, help="Fetch each result page.")
@click.option("--country", type=str, default=None, help="Two-letter country code (e.g. us).")
@click.option("--language", type=str, default=None, help="Two-letter language code (e.g. en).")
@output_option
def search_web(
    query: str,
    num: int,
    fetch_content: bool,
    country: str | None,
    language: str | None,
    output: Path | None,
) -> None:
    """Search the web.

    Examples:
        spider search "python async crawler"
        spider search "rust web frameworks" --num 10 --fetch-content --output results.json
    """
    if not query.strip():
        raise click.BadParameter("cannot be empty", param_hint="QUERY")
    body = compact_params(
        {
            "search": query,
            "num": num,
            "fetch_page_content": fetch_content,
            "country": country,
            "language": language,
        }
    )
    emit(run_api_call(lambda client: client.request("POST", "/search", body, stream=True)), output)
