"""HTTP transport port.

Defines how core services send requests over the network without depending
on a concrete client.
"""

from typing import Protocol

import httpx


class Transport(Protocol):
    """Asynchronous request sender."""

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send a request and return the fully read response.

        Raises:
            httpx.TransportError: If the server cannot be reached or times out.
        """
        ...

    def build_request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        content: str | bytes | None = None,
    ) -> httpx.Request:
        """Build a request, resolving root-relative URLs against the base URL."""
        ...
