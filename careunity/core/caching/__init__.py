"""Caching policy router and strategies.

Routes requests to network-first, stale-while-revalidate or cache-first
handling based on an ordered policy table.
"""

from careunity.core.caching.background import BackgroundTasks
from careunity.core.caching.policies import default_policies
from careunity.core.caching.router import CacheRouter, match_policy
from careunity.core.caching.strategies import (
    cache_first,
    network_first,
    request_key,
    stale_while_revalidate,
)

__all__ = [
    "BackgroundTasks",
    "CacheRouter",
    "cache_first",
    "default_policies",
    "match_policy",
    "network_first",
    "request_key",
    "stale_while_revalidate",
]
