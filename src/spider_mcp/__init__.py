"""spider-cloud-mcp - Spider cloud crawling and remote browsers as MCP tools."""

__version__ = "2.1.0"

__all__ = ["__version__"]
