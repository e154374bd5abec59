"""Data models for spider_mcp."""

from pydantic import BaseModel, ConfigDict, Field

# Engines accepted by browser.spider.cloud
BROWSER_ENGINES: tuple[str, ...] = ("chrome", "chrome-new", "firefox", "auto")

# Output formats accepted by the REST API
RETURN_FORMATS: tuple[str, ...] = ("markdown", "commonmark", "raw", "text", "xml", "bytes", "empty")

# Request strategies accepted by the REST API
REQUEST_TYPES: tuple[str, ...] = ("http", "chrome", "smart")


class OpenedSession(BaseModel):
    """Result of opening a remote browser session.

    ``engine`` is what was actually connected. When ``auto`` was requested
    and the remote reported a concrete engine, that engine is used instead.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
    engine: str = "auto"


class NavigationResult(BaseModel):
    """Where the page ended up after a navigation."""

    url: str
    title: str = ""
    status: int | None = None
    attempts: int = Field(default=1, ge=1)
    stealth: int = Field(default=0, ge=0, le=3)


class SessionSnapshot(BaseModel):
    """Read-only view of a live session for diagnostics."""

    session_id: str
    engine: str
    idle_seconds: float
    age_seconds: float
