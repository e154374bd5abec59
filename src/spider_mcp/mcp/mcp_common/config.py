"""
Settings validators shared by the MCP server configuration.

Usage:
    >>> validate_base_url("https://api.spider.cloud/", strip_trailing_slash=True)
    'https://api.spider.cloud'
    >>> parse_comma_separated("a, b, c")
    ['a', 'b', 'c']
"""

from urllib.parse import urlparse


def parse_comma_separated(v: str | list[str]) -> list[str]:
    """
    Parse a comma-separated string into a list of trimmed items.

    Lists pass through unchanged, so this works as a ``mode="before"``
    field validator for ALLOWED_ORIGINS and ALLOWED_HOSTS.
    """
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


def validate_base_url(
    v: str,
    field_name: str = "base_url",
    schemes: tuple[str, ...] = ("http", "https"),
    strip_trailing_slash: bool = False,
) -> str:
    """
    Validate a service URL.

    Args:
        v: URL to validate.
        field_name: Field name used in error messages.
        schemes: Accepted URL schemes (``("ws", "wss")`` for the browser endpoint).
        strip_trailing_slash: Remove a trailing slash from the result.

    Returns:
        The validated URL.

    Raises:
        ValueError: If the URL is empty, malformed, or uses another scheme.
    """
    if not v:
        raise ValueError(f"{field_name.upper()} cannot be empty")

    parsed = urlparse(v)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Invalid URL format for {field_name}: {v}")
    if parsed.scheme not in schemes:
        raise ValueError(f"{field_name} scheme must be one of {', '.join(schemes)}: {v}")

    return v.rstrip("/") if strip_trailing_slash else v
