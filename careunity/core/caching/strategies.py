"""Caching strategies as functions over a CacheStorage.

Each strategy takes the request, the cache it owns and a fetch callable, and
returns an httpx.Response. None of them know which cache backend is in use,
so they run unchanged against the in-memory store in tests.

Only 200 responses are written to a cache. Transport failures
(httpx.TransportError) fall back to the cache where the strategy allows it.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

import blake3
import httpx

from careunity.core.caching.background import BackgroundTasks
from careunity.domain.entities import CachedResponse
from careunity.ports.cache import CacheStorage

logger = logging.getLogger(__name__)

Fetch = Callable[[httpx.Request], Awaitable[httpx.Response]]
Clock = Callable[[], float]

CACHEABLE_STATUSES = frozenset({200})

# Late network-first fetches started without a BackgroundTasks, held until done
_late_fetches: set["asyncio.Future[httpx.Response]"] = set()

# Body is stored decoded, so these would no longer describe it
_DROPPED_HEADERS = frozenset({"content-encoding", "content-length", "transfer-encoding"})


def request_key(request: httpx.Request) -> str:
    """Key identifying a request in a cache: blake3 of method and absolute URL."""
    return blake3.blake3(f"{request.method} {request.url}".encode()).hexdigest()


def is_cacheable(response: httpx.Response) -> bool:
    return response.status_code in CACHEABLE_STATUSES


def snapshot(
    request: httpx.Request,
    response: httpx.Response,
    clock: Clock = time.time,
) -> CachedResponse:
    """Capture the fully read response to request for storage."""
    headers = tuple(
        (name, value)
        for name, value in response.headers.multi_items()
        if name.lower() not in _DROPPED_HEADERS
    )
    return CachedResponse(
        url=str(request.url),
        status_code=response.status_code,
        headers=headers,
        content=response.content,
        stored_at=clock(),
    )


def restore(cached: CachedResponse, request: httpx.Request) -> httpx.Response:
    """Rebuild a response from a cache entry.

    The response carries extensions["from_cache"] = True.
    """
    return httpx.Response(
        status_code=cached.status_code,
        headers=list(cached.headers),
        content=cached.content,
        request=request,
        extensions={"from_cache": True},
    )


async def fetch_and_store(
    request: httpx.Request,
    cache: CacheStorage,
    fetch: Fetch,
    *,
    clock: Clock = time.time,
) -> httpx.Response:
    """Fetch from the network and write cacheable responses to the cache."""
    response = await fetch(request)
    if is_cacheable(response):
        await cache.put(request_key(request), snapshot(request, response, clock))
    return response


async def cache_first(
    request: httpx.Request,
    cache: CacheStorage,
    fetch: Fetch,
    *,
    clock: Clock = time.time,
) -> httpx.Response:
    """Serve from cache when possible; fetch and store only on a miss.

    Raises:
        httpx.TransportError: On a miss when the network is unavailable.
    """
    cached = await cache.get(request_key(request))
    if cached is not None:
        logger.debug("cache-first hit in %s for %s", cache.name, request.url)
        return restore(cached, request)
    return await fetch_and_store(request, cache, fetch, clock=clock)


async def network_first(
    request: httpx.Request,
    cache: CacheStorage,
    fetch: Fetch,
    *,
    network_timeout_seconds: float | None = None,
    background: BackgroundTasks | None = None,
    clock: Clock = time.time,
) -> httpx.Response:
    """Prefer the network; fall back to the cached response.

    On a transport failure the cached response for the same key is returned,
    or the failure is re-raised when nothing is cached. With a timeout, a
    cached response is served once the network has been silent that long;
    the network response still refreshes the cache when it arrives. With no
    cached response the strategy keeps waiting on the network.

    Raises:
        httpx.TransportError: If the network fails and nothing is cached.
    """
    key = request_key(request)
    fetch_task = asyncio.ensure_future(fetch_and_store(request, cache, fetch, clock=clock))

    try:
        if network_timeout_seconds is None:
            return await fetch_task
        return await asyncio.wait_for(asyncio.shield(fetch_task), network_timeout_seconds)
    except TimeoutError:
        cached = await cache.get(key)
        if cached is None:
            logger.debug("network-first timeout with empty cache, waiting: %s", request.url)
            return await _await_or_fallback(fetch_task, cache, key, request)
        logger.debug("network-first timeout, serving cache for %s", request.url)
        if background is not None:
            background.track(fetch_task)
        else:
            _late_fetches.add(fetch_task)
            fetch_task.add_done_callback(_discard_result)
        return restore(cached, request)
    except httpx.TransportError as e:
        cached = await cache.get(key)
        if cached is None:
            raise
        logger.debug("network-first fallback to %s for %s: %s", cache.name, request.url, e)
        return restore(cached, request)


async def _await_or_fallback(
    fetch_task: "asyncio.Future[httpx.Response]",
    cache: CacheStorage,
    key: str,
    request: httpx.Request,
) -> httpx.Response:
    try:
        return await fetch_task
    except httpx.TransportError:
        cached = await cache.get(key)
        if cached is None:
            raise
        return restore(cached, request)


def _discard_result(task: "asyncio.Future[httpx.Response]") -> None:
    _late_fetches.discard(task)
    if not task.cancelled() and task.exception() is not None:
        logger.warning("Late network response failed: %s", task.exception())


async def stale_while_revalidate(
    request: httpx.Request,
    cache: CacheStorage,
    fetch: Fetch,
    *,
    background: BackgroundTasks,
    clock: Clock = time.time,
) -> httpx.Response:
    """Serve the cached response now and refresh it in the background.

    Exactly one background fetch is scheduled per request served from cache.
    With nothing cached, the network response is awaited and stored.

    Raises:
        httpx.TransportError: On a miss when the network is unavailable.
    """
    cached = await cache.get(request_key(request))
    if cached is None:
        return await fetch_and_store(request, cache, fetch, clock=clock)

    background.spawn(
        fetch_and_store(request, cache, fetch, clock=clock),
        name=f"revalidate {request.method} {request.url}",
    )
    return restore(cached, request)
