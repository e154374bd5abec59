"""MCP tool functions. Each takes the SpiderServices container as ``api_client``."""
