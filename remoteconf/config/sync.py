"""
Configuration Sync

Fetches the raw remote configuration document over HTTP.

Reuses a single HTTP client (no connection overhead per request).
Classification of the response is left to the refresh coordinator.
"""

from dataclasses import dataclass
from typing import Protocol

import httpx

from remoteconf.common.logging_setup import get_service_logger

logger = get_service_logger("config.sync")

DEFAULT_TIMEOUT_S = 30.0


@dataclass(frozen=True)
class FetchResponse:
    """Raw HTTP outcome: status and body bytes"""
    status_code: int
    body: bytes

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class ConfigFetcher(Protocol):
    """Anything that can fetch a remote config document"""

    async def fetch(self, url: str) -> FetchResponse: ...


class ConfigSync:
    """
    Fetches remote configuration documents with httpx.

    Transport failures propagate as httpx.HTTPError; any HTTP status,
    success or not, is returned as a FetchResponse.
    """

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.timeout_s = timeout_s
        self._transport = transport
        self._headers = headers or {"Accept": "application/json"}
        # Reusable HTTP client - avoids connection overhead per request
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create reusable HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout_s,
                transport=self._transport,
                headers=self._headers,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def fetch(self, url: str) -> FetchResponse:
        """
        GET the config document.

        Args:
            url: Remote config URL

        Returns:
            Status code and raw body

        Raises:
            httpx.HTTPError: on transport-level failure (DNS, connect, timeout, ...)
        """
        client = await self._get_client()
        response = await client.get(url)

        logger.debug(
            f"Fetched {url}: HTTP {response.status_code}, {len(response.content)} bytes",
            extra={"url": url, "status_code": response.status_code},
        )

        return FetchResponse(status_code=response.status_code, body=response.content)
