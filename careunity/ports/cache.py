"""Cache storage port interfaces.

Strategies only ever see these protocols, so they can be exercised against
an in-memory store without a real cache backend.
"""

from typing import Protocol

from careunity.domain.entities import CachedResponse, ExpirationPolicy


class CacheStorage(Protocol):
    """A single named cache of response snapshots."""

    @property
    def name(self) -> str: ...

    async def get(self, key: str) -> CachedResponse | None:
        """Look up a live entry.

        Expired entries are evicted and reported as a miss.

        Args:
            key: Request key.

        Returns:
            The cached response, or None.
        """
        ...

    async def put(self, key: str, response: CachedResponse) -> None:
        """Store an entry, then enforce the entry-count bound.

        Args:
            key: Request key.
            response: Snapshot to store.
        """
        ...

    async def evict(self, key: str) -> bool:
        """Remove an entry.

        Returns:
            True if an entry was removed.
        """
        ...

    async def keys(self) -> list[str]:
        """Return stored keys, oldest first."""
        ...


class CacheRegistry(Protocol):
    """Opens named caches, creating them on first use."""

    def open(self, name: str, expiration: ExpirationPolicy) -> CacheStorage:
        """Return the cache with this name.

        Args:
            name: Cache name.
            expiration: Eviction bounds applied when the cache is created.
        """
        ...
