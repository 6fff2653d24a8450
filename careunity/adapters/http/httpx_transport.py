"""httpx adapter implementing the Transport port."""

import logging
from typing import Self

import httpx

logger = logging.getLogger(__name__)


class HttpxTransport:
    """Sends requests to the CareUnity server with an httpx.AsyncClient.

    Root-relative URLs ("/api/...") are resolved against base_url.

    Example:
        async with HttpxTransport("http://localhost:5000") as transport:
            request = transport.build_request("GET", "/api/service-users")
            response = await transport.send(request)
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            base_url: Origin for root-relative URLs.
            timeout: Per-request timeout in seconds.
            transport: Optional lower-level httpx transport (tests pass
                httpx.MockTransport here).
        """
        self.base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def build_request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        content: str | bytes | None = None,
    ) -> httpx.Request:
        return self._client.build_request(method, url, headers=headers, content=content)

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send a request and return the fully read response.

        Raises:
            httpx.TransportError: If the server cannot be reached or times out.
        """
        logger.debug("%s %s", request.method, request.url)
        return await self._client.send(request)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
