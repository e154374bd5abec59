"""
Spider REST API client.

Authenticated requests to api.spider.cloud. Crawl/scrape style endpoints are
requested as JSONL and parsed line by line as the stream arrives; metadata
endpoints such as credits use plain JSON.
"""

import json
import logging
import os
from typing import Any, Literal, TypeAlias

import httpx

from spider_mcp.exceptions import ConfigurationError, ProviderError

LOGGER = logging.getLogger(__name__)

API_BASE = "https://api.spider.cloud"

HttpMethod: TypeAlias = Literal["GET", "POST"]


def get_api_key(api_key: str | None = None) -> str:
    """
    Resolve the Spider API key.

    Args:
        api_key: Explicit key. Falls back to the SPIDER_API_KEY env var.

    Returns:
        The API key.

    Raises:
        ConfigurationError: If no key is configured.
    """
    key = api_key or os.getenv("SPIDER_API_KEY")
    if not key:
        raise ConfigurationError(
            "SPIDER_API_KEY environment variable is required. Get your key at https://spider.cloud/api-keys",
            setting="SPIDER_API_KEY",
        )
    return key


def parse_jsonl_line(line: str) -> Any | None:
    """
    Decode one JSONL line.

    Returns None for blank or malformed lines, which are skipped by callers.
    """
    line = line.rstrip("\r").strip()
    if not line:
        return None
    try:
        return json.loads(line)
    except json.JSONDecodeError:
        LOGGER.debug("Skipping malformed JSONL line (%d chars)", len(line))
        return None


class SpiderClient:
    """
    Async client for the Spider REST API.

    Example usage:
        >>> client = SpiderClient(api_key="sk-...")
        >>> pages = await client.request("POST", "/scrape", {"url": "https://example.com"}, stream=True)
        >>> await client.close()
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = API_BASE,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialise the client.

        Args:
            api_key: Spider API key. Resolved lazily so the server can start
                without one and report the problem per tool call.
            base_url: API base URL.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    @property
    def api_key(self) -> str:
        """The configured API key, or ConfigurationError if missing."""
        return get_api_key(self._api_key)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={"User-Agent": "spider-cloud-mcp"},
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "SpiderClient":
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> bool:
        await self.close()
        return False

    def _headers(self, stream: bool) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/jsonl" if stream else "application/json",
        }

    async def request(
        self,
        method: HttpMethod,
        path: str,
        body: dict[str, Any] | None = None,
        *,
        stream: bool = False,
    ) -> Any:
        """
        Make an authenticated request to the Spider API.

        Args:
            method: HTTP method.
            path: Endpoint path, e.g. "/crawl".
            body: JSON body for POST requests.
            stream: Request JSONL and parse each line as it arrives.

        Returns:
            List of decoded records for streamed requests; otherwise the
            decoded JSON body, or the raw text if it is not JSON.

        Raises:
            ConfigurationError: If no API key is configured.
            ProviderError: If the API answers with a non-2xx status.
            httpx.HTTPError: On transport failures.
        """
        headers = self._headers(stream)
        client = await self._get_client()
        content = json.dumps(body).encode("utf-8") if body is not None else None

        LOGGER.debug("Spider API request: %s %s (stream=%s)", method, path, stream)

        if stream:
            results: list[Any] = []
            async with client.stream(method, path, headers=headers, content=content) as response:
                if response.is_error:
                    await response.aread()
                    self._raise_for_status(response, path)
                async for line in response.aiter_lines():
                    record = parse_jsonl_line(line)
                    if record is not None:
                        results.append(record)
            LOGGER.debug("Spider API %s returned %d records", path, len(results))
            return results

        response = await client.request(method, path, headers=headers, content=content)
        if response.is_error:
            self._raise_for_status(response, path)
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _raise_for_status(response: httpx.Response, path: str) -> None:
        text = response.text or "Unknown error"
        # Only the delay-seconds form; an HTTP-date is ignored
        retry_after = response.headers.get("Retry-After", "").strip()
        raise ProviderError(
            f"Spider API error {response.status_code}: {text}",
            provider="spider-api",
            status_code=response.status_code,
            context={"endpoint": path},
            retry_after=int(retry_after) if retry_after.isdigit() else None,
        )

    async def get_credits(self) -> Any:
        """Fetch the account's remaining credit balance."""
        return await self.request("GET", "/data/credits")
