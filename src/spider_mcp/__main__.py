"""Allow ``python -m spider_mcp`` to run the CLI."""

from spider_mcp.cli import app

if __name__ == "__main__":
    app()
