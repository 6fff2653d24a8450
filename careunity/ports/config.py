"""Configuration provider port.

Defines the interface for loading and accessing application configuration.
"""

from pathlib import Path
from typing import Protocol

from careunity.domain.config import CareUnityConfig


class ConfigProvider(Protocol):
    """Protocol for loading and providing configuration."""

    def load(self, careunity_dir: Path) -> CareUnityConfig:
        """Load configuration from the careunity directory.

        Args:
            careunity_dir: Path to .careunity directory containing config.toml

        Returns:
            CareUnityConfig instance with loaded or default values

        Note:
            Implementations should gracefully fall back to defaults
            if config file is missing or invalid.
        """
        ...
