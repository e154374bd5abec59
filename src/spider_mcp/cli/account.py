"""Account commands."""

from pathlib import Path

from spider_mcp.cli._common import app, emit, output_option, run_api_call


@app.command("credits", help="Show the remaining credit balance.")
@output_option
def show_credits(output: Path | None) -> None:
    """Show the remaining Spider credit balance.

    Examples:
        spider credits
    """
    emit(run_api_call(lambda client: client.get_credits()), output)
