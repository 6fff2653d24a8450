"""Caching policy router.

Dispatches each outgoing request to the strategy of the first policy entry
that matches it. Requests that match nothing go straight to the network.
"""

import logging
import time
from collections.abc import Sequence

import httpx

from careunity.core.caching.background import BackgroundTasks
from careunity.core.caching.strategies import (
    Clock,
    Fetch,
    cache_first,
    network_first,
    stale_while_revalidate,
)
from careunity.domain.entities import CachePolicyEntry, CacheStrategy
from careunity.ports.cache import CacheRegistry

logger = logging.getLogger(__name__)


def match_policy(
    policies: Sequence[CachePolicyEntry], method: str, path: str
) -> CachePolicyEntry | None:
    """Return the first entry in policies matching method and path, if any."""
    for policy in policies:
        if policy.matches(method, path):
            return policy
    return None


class CacheRouter:
    """First-match-wins dispatcher over an ordered policy table.

    The router is constructed explicitly with its policies, caches and
    network access, and owns the background tasks its stale-while-revalidate
    refreshes create.
    """

    def __init__(
        self,
        policies: Sequence[CachePolicyEntry],
        registry: CacheRegistry,
        fetch: Fetch,
        *,
        clock: Clock = time.time,
    ) -> None:
        """Initialize the router.

        Args:
            policies: Policy entries in evaluation order.
            registry: Opens the named caches the policies refer to.
            fetch: Sends a request over the network.
            clock: Time source for cache entry timestamps.
        """
        self._policies = tuple(policies)
        self._registry = registry
        self._fetch = fetch
        self._clock = clock
        self.background = BackgroundTasks()

    @property
    def policies(self) -> tuple[CachePolicyEntry, ...]:
        return self._policies

    def match(self, request: httpx.Request) -> CachePolicyEntry | None:
        """Return the first policy entry matching the request, if any."""
        return match_policy(self._policies, request.method, request.url.path)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        """Serve a request through its matching strategy.

        Raises:
            httpx.TransportError: When the network fails and the strategy
                has no cached response to fall back on.
        """
        policy = self.match(request)
        if policy is None:
            logger.debug("No policy for %s %s, using network", request.method, request.url)
            return await self._fetch(request)

        cache = self._registry.open(policy.cache_name, policy.expiration)
        logger.debug("%s %s -> %s (%s)", request.method, request.url, policy.name, policy.handler.value)

        if policy.handler is CacheStrategy.NETWORK_FIRST:
            return await network_first(
                request,
                cache,
                self._fetch,
                network_timeout_seconds=policy.network_timeout_seconds,
                background=self.background,
                clock=self._clock,
            )
        if policy.handler is CacheStrategy.STALE_WHILE_REVALIDATE:
            return await stale_while_revalidate(
                request,
                cache,
                self._fetch,
                background=self.background,
                clock=self._clock,
            )
        return await cache_first(request, cache, self._fetch, clock=self._clock)

    async def drain(self) -> None:
        """Wait for outstanding background refreshes."""
        await self.background.drain()
