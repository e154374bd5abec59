"""MCP server for Spider - Model Context Protocol integration."""
