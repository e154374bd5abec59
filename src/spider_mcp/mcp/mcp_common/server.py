"""
Server lifecycle for the MCP server.

``BaseMCPServer`` owns the FastMCP instance and runs the startup sequence:
create services, check the API, register tools, run the transport and
always clean up. Subclasses supply the services and the tool wiring.

Usage:
    >>> class CrawlServer(BaseMCPServer):
    ...     async def create_api_client(self):
    ...         return await create_spider_services()
    ...     def register_tools(self):
    ...         register_all_tools(self.mcp, self.api_client)
    >>> CrawlServer.main("Crawl server")
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from datetime import datetime, timezone
from functools import partial
from types import FrameType
from typing import Any, Literal, TypeAlias

import anyio
from fastmcp import FastMCP
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

Transport: TypeAlias = Literal["stdio", "http"]


def create_middleware(allowed_origins: list[str], allowed_hosts: list[str]) -> list[Middleware]:
    """Build the CORS and trusted-host middleware stack for HTTP transport."""
    return [
        Middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        ),
        Middleware(TrustedHostMiddleware, allowed_hosts=allowed_hosts),
    ]


async def setup_transport(
    mcp: FastMCP,
    transport: Transport = "stdio",
    host: str = "127.0.0.1",
    port: int = 5000,
    path: str = "/mcp",
    allowed_origins: list[str] | None = None,
    allowed_hosts: list[str] | None = None,
) -> None:
    """
    Run the MCP server on the requested transport.

    Args:
        mcp: FastMCP server instance
        transport: "stdio" (default for MCP hosts) or "http"
        host: Host to bind to (HTTP only)
        port: Port to bind to (HTTP only)
        path: Path for HTTP transport
        allowed_origins: Allowed CORS origins (default: ["*"])
        allowed_hosts: Allowed host headers (default: ["*"])

    Raises:
        ValueError: If the transport is not supported.
    """
    logger = logging.getLogger(__name__)

    transport_kwargs: dict[str, Any] = {}
    if transport == "stdio":
        logger.info("Starting MCP server via stdio...")
    elif transport == "http":
        transport_kwargs = {
            "host": host,
            "port": port,
            "path": path,
            "middleware": create_middleware(allowed_origins or ["*"], allowed_hosts or ["*"]),
        }
        logger.info(f"Starting MCP server via http on {host}:{port}{path}...")
    else:
        raise ValueError(f"Unsupported transport: {transport}")

    await mcp.run_async(transport=transport, **transport_kwargs)


def create_argument_parser(description: str, default_transport: Transport = "stdio") -> argparse.ArgumentParser:
    """Create the command-line parser shared by MCP server entry points."""
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--transport",
        type=str,
        default=default_transport,
        choices=["stdio", "http"],
        help=f"MCP transport protocol (stdio or http). Default: {default_transport}.",
    )
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Host for HTTP transport. Default: 127.0.0.1.")
    parser.add_argument("--port", type=int, default=5000, help="Port for HTTP transport. Default: 5000.")
    parser.add_argument("--path", type=str, default="/mcp", help="Path for HTTP transport. Default: /mcp.")
    return parser


class BaseMCPServer:
    """
    Base class for MCP servers with unified lifecycle management.

    Subclasses MUST implement:
    - create_api_client() -> Any: Create and return the service container
    - register_tools(): Register MCP tools, resources, and prompts

    Subclasses MAY override:
    - validate_credentials(): Fail startup on bad configuration
    - health_details(): Extra fields for the HTTP /health endpoint
    - cleanup(): Release resources on shutdown
    - get_allowed_origins() / get_allowed_hosts(): HTTP transport settings
    """

    logger: logging.Logger

    def __init__(self, server_name: str, instructions: str | None = None, server_version: str | None = None):
        """
        Initialise base server.

        Args:
            server_name: Name of the server
            instructions: Instructions for LLMs on when and how to use the tools
            server_version: Server package version; read from package metadata if omitted
        """
        self.server_name = server_name
        self.mcp = FastMCP(server_name, instructions=instructions)
        self.server_version = server_version or self._get_server_version()
        self.api_client: Any = None
        self.shutdown_event: asyncio.Event | None = None
        self._start_time = datetime.now(timezone.utc)
        self._setup_signal_handlers()
        self._register_health_endpoint()
        self._register_server_info_resource()

        if getattr(self, "logger", None) is None:
            self.logger = logging.getLogger(__name__)

        self.logger.info(f"Initialising {server_name}...")

    def _setup_signal_handlers(self) -> None:
        if sys.platform != "win32":
            signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum: int, frame: FrameType | None) -> None:
        self.logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        if self.shutdown_event:
            self.shutdown_event.set()
        raise KeyboardInterrupt

    def _get_server_version(self) -> str:
        from importlib.metadata import PackageNotFoundError, version

        try:
            return version(self.server_name)
        except PackageNotFoundError:
            return "unknown"

    def _uptime(self) -> float:
        return round((datetime.now(timezone.utc) - self._start_time).total_seconds(), 1)

    def _register_health_endpoint(self) -> None:
        server = self

        @self.mcp.custom_route("/health", methods=["GET"])
        async def health_endpoint(request: Request) -> JSONResponse:
            """HTTP health check endpoint for container orchestration."""
            return JSONResponse(
                {
                    "status": "healthy",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "server": server.server_name,
                    "uptime_seconds": server._uptime(),
                    **server.health_details(),
                }
            )

    def _register_server_info_resource(self) -> None:
        server = self

        @self.mcp.resource("server://info")
        def server_info() -> str:
            """Server name, version, Python version and uptime."""
            return json.dumps(
                {
                    "name": server.server_name,
                    "version": server.server_version,
                    "python_version": sys.version.split()[0],
                    "started_at": server._start_time.isoformat(),
                    "uptime_seconds": server._uptime(),
                },
                indent=2,
            )

    # =========================================================================
    # REQUIRED: Subclasses MUST implement these
    # =========================================================================

    async def create_api_client(self) -> Any:
        """Create and return the service container stored in ``self.api_client``."""
        raise NotImplementedError("Subclasses must implement create_api_client()")

    def register_tools(self) -> None:
        """Register MCP tools, resources, and prompts. ``self.api_client`` is set."""
        raise NotImplementedError("Subclasses must implement register_tools()")

    # =========================================================================
    # OPTIONAL: Subclasses MAY override these hooks
    # =========================================================================

    def validate_credentials(self) -> None:
        """Validate configuration before services are created. Default: no check."""

    def health_details(self) -> dict[str, Any]:
        """Extra fields merged into the /health response."""
        return {}

    async def cleanup(self) -> None:
        """Close the service container. Called from a finally block."""
        if self.api_client is not None and hasattr(self.api_client, "close"):
            try:
                await self.api_client.close()
                self.logger.info("Services closed")
            except Exception as e:
                self.logger.error(f"Error closing services: {e}", exc_info=True)
            finally:
                self.api_client = None
        self.logger.info("Cleanup complete")

    def get_allowed_origins(self) -> list[str]:
        return ["*"]

    def get_allowed_hosts(self) -> list[str]:
        return ["*"]

    # =========================================================================
    # CORE: Lifecycle methods
    # =========================================================================

    async def initialize_client(self) -> None:
        """Validate credentials, create services and check the API."""
        if self.api_client is not None:
            return

        try:
            self.validate_credentials()
            self.logger.info(f"Creating services for {self.server_name}...")
            self.api_client = await self.create_api_client()
            await self._test_connection()
        except Exception as e:
            self.logger.error(f"Failed to initialise services: {e}", exc_info=True)
            self.api_client = None
            raise

    async def _test_connection(self) -> None:
        """Probe the API. Failure is logged and startup continues."""
        if not hasattr(self.api_client, "test_connection"):
            return

        self.logger.info("Testing API connection...")
        try:
            if await self.api_client.test_connection():
                self.logger.info("Connection test passed - API is reachable and authenticated")
            else:
                self.logger.warning("Connection test failed - tool calls may fail until this is fixed")
        except Exception as e:
            self.logger.warning(f"Connection test failed: {e}. Server will start but operations may fail.")

    async def run_async_server(
        self,
        transport: Transport = "stdio",
        host: str = "127.0.0.1",
        port: int = 5000,
        path: str = "/mcp",
    ) -> None:
        """Initialise services, register tools and run the MCP server until it stops."""
        self.shutdown_event = asyncio.Event()

        try:
            await self.initialize_client()
            if self.api_client is None:
                raise RuntimeError("Services must be initialised before registering tools.")
            self.register_tools()
            await setup_transport(
                self.mcp,
                transport=transport,
                host=host,
                port=port,
                path=path,
                allowed_origins=self.get_allowed_origins(),
                allowed_hosts=self.get_allowed_hosts(),
            )
        except Exception as e:
            self.logger.error(f"Server error: {e}", exc_info=True)
            raise
        finally:
            await self.cleanup()

    @classmethod
    def main(cls, description: str, default_transport: Transport = "stdio", **server_kwargs: Any) -> None:
        """Parse arguments, create the server and run it with anyio."""
        args = create_argument_parser(description, default_transport=default_transport).parse_args()

        server = cls(**server_kwargs)
        exit_code = 0
        try:
            anyio.run(
                partial(
                    server.run_async_server,
                    transport=args.transport,
                    host=args.host,
                    port=args.port,
                    path=args.path,
                )
            )
            server.logger.info("Server finished gracefully.")
        except KeyboardInterrupt:
            server.logger.info("Server execution interrupted by user.")
        except Exception as e:
            server.logger.critical(f"Server failed: {e}", exc_info=True)
            exit_code = 1
        finally:
            server.logger.info(f"Server exiting with code {exit_code}.")
            if exit_code != 0:
                sys.exit(exit_code)
