"""Configuration I/O utilities for reading and writing TOML config files.

This module handles serialization/deserialization of CareUnityConfig to/from TOML format.
"""

import os
import platform
import tomllib
from pathlib import Path
from typing import Any

import tomli_w

from careunity.domain.config import CareUnityConfig


def get_global_config_path() -> Path:
    """Get the path to the global config file.

    The location is platform-dependent:
    - Linux/macOS: $XDG_CONFIG_HOME/careunity/config.toml or ~/.config/careunity/config.toml
    - Windows: %APPDATA%/careunity/config.toml

    Returns:
        Path to the global config file (may not exist)
    """
    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "careunity" / "config.toml"
        return Path.home() / ".config" / "careunity" / "config.toml"

    xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg_config:
        return Path(xdg_config) / "careunity" / "config.toml"
    return Path.home() / ".config" / "careunity" / "config.toml"


def load_config_data(path: Path) -> dict[str, Any]:
    """Load raw TOML data from a config file.

    Args:
        path: Path to config.toml file

    Returns:
        Dictionary with parsed TOML data

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in config file: {e}") from e


def load_config(path: Path) -> CareUnityConfig:
    """Load configuration from a single TOML file over built-in defaults.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed
    """
    return CareUnityConfig.from_partial(CareUnityConfig.default(), load_config_data(path))


def config_to_data(config: CareUnityConfig) -> dict[str, Any]:
    """Convert a config to the TOML section layout."""
    return {
        "server": {
            "base_url": config.server.base_url,
            "request_timeout": config.server.request_timeout,
        },
        "sync": {
            "max_retries": config.sync.max_retries,
        },
        "cache": {
            "api_network_timeout": config.cache.api_network_timeout,
        },
    }


def save_config(config: CareUnityConfig, path: Path) -> None:
    """Save configuration to a TOML file.

    Args:
        config: CareUnityConfig to save
        path: Destination path for config.toml
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        tomli_w.dump(config_to_data(config), f)


def create_default_config_file(path: Path, base_url: str = "http://localhost:5000") -> None:
    """Create a default config.toml file with sensible defaults and comments.

    Args:
        path: Destination path for config.toml
        base_url: CareUnity server origin
    """
    # Template string keeps the comments that tomli_w would drop
    template = f"""\
# CareUnity offline configuration
# Created by: careunity init

[server]
# Origin that root-relative operation URLs (e.g. /api/service-users/5) resolve against
base_url = "{base_url}"

# Per-request timeout in seconds
request_timeout = 10.0

[sync]
# Failed operations with fewer retries than this are re-queued by 'careunity queue retry'
max_retries = 5

[cache]
# Seconds the /api/ network-first route waits before serving a cached response (0 disables)
api_network_timeout = 3.0
"""

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(template)
