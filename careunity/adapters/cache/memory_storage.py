"""In-memory adapter implementing the CacheStorage and CacheRegistry ports."""

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Callable

from careunity.domain.entities import CachedResponse, ExpirationPolicy

logger = logging.getLogger(__name__)


class MemoryCacheStorage:
    """Named cache held in process memory.

    Entries are kept in write order. After each put, entries beyond
    max_entries are evicted oldest first; on get, an entry older than
    max_age_seconds is evicted and reported as a miss. All access goes
    through one asyncio.Lock, so writes to a key never interleave.
    """

    def __init__(
        self,
        name: str,
        expiration: ExpirationPolicy | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache.

        Args:
            name: Cache name.
            expiration: Eviction bounds (unbounded when None).
            clock: Time source used for age checks.
        """
        self._name = name
        self._expiration = expiration or ExpirationPolicy()
        self._clock = clock
        self._entries: OrderedDict[str, CachedResponse] = OrderedDict()
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def expiration(self) -> ExpirationPolicy:
        return self._expiration

    async def get(self, key: str) -> CachedResponse | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_expired(entry):
                del self._entries[key]
                logger.debug("Expired %s from %s", key, self._name)
                return None
            return entry

    async def put(self, key: str, response: CachedResponse) -> None:
        async with self._lock:
            self._entries[key] = response
            self._entries.move_to_end(key)
            max_entries = self._expiration.max_entries
            if max_entries is None:
                return
            while len(self._entries) > max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted %s from %s (max_entries=%d)", evicted, self._name, max_entries)

    async def evict(self, key: str) -> bool:
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def keys(self) -> list[str]:
        async with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def _is_expired(self, entry: CachedResponse) -> bool:
        max_age = self._expiration.max_age_seconds
        return max_age is not None and self._clock() - entry.stored_at > max_age


class MemoryCacheRegistry:
    """Creates MemoryCacheStorage instances on first use and reuses them."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._caches: dict[str, MemoryCacheStorage] = {}

    def open(self, name: str, expiration: ExpirationPolicy) -> MemoryCacheStorage:
        """Return the cache called name, creating it with expiration if new."""
        cache = self._caches.get(name)
        if cache is None:
            cache = MemoryCacheStorage(name, expiration, clock=self._clock)
            self._caches[name] = cache
        elif cache.expiration != expiration:
            logger.warning(
                "Cache %s already open with %s; ignoring %s",
                name,
                cache.expiration,
                expiration,
            )
        return cache

    def names(self) -> list[str]:
        return sorted(self._caches)
