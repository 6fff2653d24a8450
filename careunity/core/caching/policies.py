"""Default request-to-strategy table.

Order matters: the router picks the first matching entry, so the ML-model
API route must come before the general /api/ route.
"""

from careunity.domain.config import CacheConfig
from careunity.domain.entities import CachePolicyEntry, CacheStrategy, ExpirationPolicy

DAY = 24 * 60 * 60

ML_MODELS_CACHE = "careunity-ml-models-v1"
API_CACHE = "careunity-api-v1"
IMAGES_CACHE = "careunity-images-v1"
FONTS_CACHE = "careunity-fonts-v1"
RUNTIME_CACHE = "careunity-runtime-v1"


def default_policies(config: CacheConfig | None = None) -> list[CachePolicyEntry]:
    """Build the default policy table.

    Args:
        config: Cache settings; supplies the /api/ network timeout.

    Returns:
        Policy entries in evaluation order.
    """
    config = config or CacheConfig()
    return [
        CachePolicyEntry(
            name="ml-models-api",
            url_pattern=r"^/api/(?:v\d+/)?ml-models(?:/|$)",
            handler=CacheStrategy.STALE_WHILE_REVALIDATE,
            cache_name=ML_MODELS_CACHE,
            expiration=ExpirationPolicy(max_entries=50, max_age_seconds=7 * DAY),
        ),
        CachePolicyEntry(
            name="api",
            url_pattern=r"^/api/",
            handler=CacheStrategy.NETWORK_FIRST,
            cache_name=API_CACHE,
            expiration=ExpirationPolicy(max_entries=100, max_age_seconds=DAY),
            network_timeout_seconds=config.network_timeout_seconds,
        ),
        CachePolicyEntry(
            name="images",
            url_pattern=r"(?i)\.(?:png|jpe?g|svg|gif|webp)$",
            handler=CacheStrategy.CACHE_FIRST,
            cache_name=IMAGES_CACHE,
            expiration=ExpirationPolicy(max_entries=60, max_age_seconds=30 * DAY),
        ),
        CachePolicyEntry(
            name="fonts",
            url_pattern=r"(?i)\.(?:woff2?|ttf|otf|eot)$",
            handler=CacheStrategy.CACHE_FIRST,
            cache_name=FONTS_CACHE,
            expiration=ExpirationPolicy(max_entries=30, max_age_seconds=365 * DAY),
        ),
        CachePolicyEntry(
            name="static-bundles",
            url_pattern=r"(?i)\.(?:js|css)$",
            handler=CacheStrategy.STALE_WHILE_REVALIDATE,
            cache_name=RUNTIME_CACHE,
            expiration=ExpirationPolicy(max_entries=100, max_age_seconds=7 * DAY),
        ),
    ]
