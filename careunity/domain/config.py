"""Config domain models for careunity.

Configuration is stored in .careunity/config.toml and represents user
preferences for the server connection, sync replay and caching behavior.
This module defines the domain models that represent validated configuration
state.
"""

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for the CareUnity server connection.

    Attributes:
        base_url: Origin that root-relative operation URLs are resolved against
        request_timeout: Per-request timeout in seconds for replay and fetches

    Raises:
        ValueError: If base_url is not an absolute http(s) URL or
                   request_timeout is not positive.
    """

    base_url: str = "http://localhost:5000"
    request_timeout: float = 10.0

    def __post_init__(self) -> None:
        """Validate server config after initialization."""
        parts = urlsplit(self.base_url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(
                f"base_url must be an absolute http(s) URL, got {self.base_url!r}"
            )
        if self.request_timeout <= 0:
            raise ValueError(
                f"request_timeout must be positive, got {self.request_timeout}"
            )


@dataclass(frozen=True)
class SyncConfig:
    """Configuration for sync replay.

    Attributes:
        max_retries: Failed operations with fewer retries than this are
                     moved back to pending by 'retry'

    Raises:
        ValueError: If max_retries is negative.
    """

    max_retries: int = 5

    def __post_init__(self) -> None:
        """Validate sync config after initialization."""
        if self.max_retries < 0:
            raise ValueError(f"max_retries cannot be negative, got {self.max_retries}")


@dataclass(frozen=True)
class CacheConfig:
    """Configuration for the caching policy router.

    Attributes:
        api_network_timeout: Seconds the /api/ network-first route waits
                             before serving a cached response (0 disables)

    Raises:
        ValueError: If api_network_timeout is negative.
    """

    api_network_timeout: float = 3.0

    def __post_init__(self) -> None:
        """Validate cache config after initialization."""
        if self.api_network_timeout < 0:
            raise ValueError(
                f"api_network_timeout cannot be negative, got {self.api_network_timeout}"
            )

    @property
    def network_timeout_seconds(self) -> float | None:
        """Timeout for network-first routes, or None when disabled."""
        return self.api_network_timeout or None


@dataclass(frozen=True)
class CareUnityConfig:
    """Complete careunity configuration.

    Attributes:
        server: Server connection configuration
        sync: Sync replay configuration
        cache: Caching router configuration
    """

    server: ServerConfig = field(default_factory=ServerConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)

    @staticmethod
    def default() -> "CareUnityConfig":
        """Create a config with all default values."""
        return CareUnityConfig(
            server=ServerConfig(),
            sync=SyncConfig(),
            cache=CacheConfig(),
        )

    @staticmethod
    def from_partial(base: "CareUnityConfig", data: dict[str, Any]) -> "CareUnityConfig":
        """Overlay raw config sections onto an existing config.

        Keys present in a section replace the base values for that section;
        missing sections and keys keep the base values. Validation runs on
        every rebuilt section.

        Args:
            base: Config providing the fallback values
            data: Parsed TOML data (section name -> key/value mapping)

        Returns:
            New CareUnityConfig with overrides applied

        Raises:
            ValueError: If a section is malformed or an override is invalid
            TypeError: If a section contains unknown keys
        """
        sections = {"server": base.server, "sync": base.sync, "cache": base.cache}
        merged: dict[str, Any] = {}
        for name, current in sections.items():
            override = data.get(name, {})
            if not isinstance(override, dict):
                raise ValueError(f"[{name}] must be a table")
            merged[name] = type(current)(**{**current.__dict__, **override})
        return CareUnityConfig(**merged)
