"""Common CLI utilities and the main app group."""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import click
import httpx
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from spider_mcp.exceptions import SpiderError
from spider_mcp.services.api import SpiderClient

console = Console(stderr=True)
_configured = False

load_dotenv()


def configure_logging(*, verbose: bool = False) -> None:
    """Configure logging with Rich handler. Call once at startup."""
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
            )
        ],
        force=True,
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    _configured = True


def run_api_call(call: Callable[[SpiderClient], Awaitable[Any]], api_key: str | None = None) -> Any:
    """
    Run one API call with a fresh client, exiting with status 1 on failure.

    Args:
        call: Coroutine function receiving the client
        api_key: Explicit key; falls back to SPIDER_API_KEY

    Returns:
        Whatever ``call`` returns
    """

    async def run() -> Any:
        async with SpiderClient(api_key=api_key) as client:
            return await call(client)

    try:
        return asyncio.run(run())
    except SpiderError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from e
    except httpx.HTTPError as e:
        click.echo(f"Error: request failed: {e}", err=True)
        raise SystemExit(1) from e


def emit(data: Any, output: Path | None) -> None:
    """Print ``data`` as JSON, or write it to ``output``."""
    text = json.dumps(data, indent=2, ensure_ascii=False)
    if output:
        output.write_text(text + "\n", encoding="utf-8")
        click.echo(f"Wrote {output}", err=True)
    else:
        click.echo(text)


def output_option(func: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "--output",
        "-o",
        type=click.Path(file_okay=True, dir_okay=False, path_type=Path),
        default=None,
        help="Write the JSON result to this file instead of stdout.",
    )(func)


@click.group(help="Spider cloud crawling and search from the command line.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def app(verbose: bool) -> None:
    """
    Entry point for the spider CLI.

    Reads SPIDER_API_KEY from the environment or a .env file.
    """
    configure_logging(verbose=verbose)
