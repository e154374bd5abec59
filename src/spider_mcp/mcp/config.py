"""
Configuration for the Spider MCP server.

Uses Pydantic Settings for type-safe environment variable loading.
"""

from functools import lru_cache
from typing import Annotated

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

import spider_mcp
from spider_mcp.mcp.mcp_common.config import parse_comma_separated, validate_base_url
from spider_mcp.mcp.mcp_common.logging import setup_server_logging
from spider_mcp.services.api import API_BASE
from spider_mcp.services.remote_browser import BROWSER_WS_BASE
from spider_mcp.services.sessions import MAX_SESSIONS, REAP_INTERVAL, SESSION_IDLE_TIMEOUT
from spider_mcp.utils import DEFAULT_MAX_CONTENT_LENGTH

load_dotenv()


class SpiderSettings(BaseSettings):
    """Spider MCP server settings."""

    model_config = SettingsConfigDict(
        env_prefix="SPIDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Credentials. Optional at startup; tools report a missing key per call.
    api_key: str | None = Field(default=None, description="Spider API key (https://spider.cloud/api-keys)")

    # Endpoints
    api_url: str = Field(default=API_BASE, description="Spider REST API base URL")
    browser_url: str = Field(default=BROWSER_WS_BASE, description="Remote browser CDP WebSocket URL")

    # Timeouts
    request_timeout: float = Field(default=120.0, gt=0, le=600, description="REST request timeout (s)")
    browser_timeout: int = Field(default=30000, ge=1000, le=300000, description="Browser connect/navigation timeout (ms)")

    # Browser sessions
    max_sessions: int = Field(default=MAX_SESSIONS, ge=1, le=20, description="Concurrent browser session limit")
    session_idle_timeout: float = Field(
        default=SESSION_IDLE_TIMEOUT, gt=0, description="Seconds before an idle session is closed"
    )
    session_reap_interval: float = Field(default=REAP_INTERVAL, gt=0, description="Seconds between idle scans")

    # Tool output
    max_content_length: int = Field(
        default=DEFAULT_MAX_CONTENT_LENGTH, ge=1000, description="Maximum characters in a tool result"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # MCP Server Configuration (without SPIDER_ prefix)
    allowed_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"], alias="ALLOWED_ORIGINS")
    allowed_hosts: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"], alias="ALLOWED_HOSTS")
    service_name: str = Field(default="spider-cloud-mcp", alias="SERVICE_NAME")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        return validate_base_url(v, "api_url", strip_trailing_slash=True)

    @field_validator("browser_url")
    @classmethod
    def validate_browser_url(cls, v: str) -> str:
        return validate_base_url(v, "browser_url", schemes=("ws", "wss"), strip_trailing_slash=True)

    @field_validator("api_key")
    @classmethod
    def blank_api_key_is_none(cls, v: str | None) -> str | None:
        return v.strip() or None if v else None

    @field_validator("allowed_origins", "allowed_hosts", mode="before")
    @classmethod
    def validate_comma_separated(cls, v: str | list[str]) -> list[str]:
        """Parse comma-separated string into list."""
        return parse_comma_separated(v)


@lru_cache
def get_settings() -> SpiderSettings:
    """Get cached settings instance."""
    return SpiderSettings()


settings = get_settings()

ALLOWED_ORIGINS = settings.allowed_origins
ALLOWED_HOSTS = settings.allowed_hosts
SERVICE_NAME = settings.service_name
SERVICE_VERSION = spider_mcp.__version__

logger = setup_server_logging(SERVICE_NAME, SERVICE_VERSION, level=settings.log_level)
