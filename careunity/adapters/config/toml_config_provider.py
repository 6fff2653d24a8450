"""TOML-based configuration provider.

Loads configuration from .careunity/config.toml with global config fallback.

Config loading priority (highest to lowest):
1. Local: .careunity/config.toml (project-specific)
2. Global: ~/.config/careunity/config.toml (user defaults)
3. Built-in defaults
"""

import logging
from pathlib import Path

from careunity.domain.config import CareUnityConfig
from careunity.shared.config_io import get_global_config_path, load_config_data

logger = logging.getLogger(__name__)


class TomlConfigProvider:
    """Configuration provider that loads from TOML files.

    Implements config cascade:
    1. Load global config if present
    2. Load local config if present
    3. Local values override global values key by key within a section
    4. Missing values fall back to built-in defaults

    Missing or invalid files are skipped with a warning.
    """

    def load(self, careunity_dir: Path) -> CareUnityConfig:
        """Load configuration with global fallback.

        Args:
            careunity_dir: Path to .careunity directory containing config.toml

        Returns:
            CareUnityConfig with merged global/local values or defaults
        """
        config = CareUnityConfig.default()

        for label, path in (
            ("global", get_global_config_path()),
            ("local", careunity_dir / "config.toml"),
        ):
            if not path.exists():
                continue
            try:
                config = CareUnityConfig.from_partial(config, load_config_data(path))
                logger.debug("Loaded %s config from %s", label, path)
            except (FileNotFoundError, ValueError, TypeError) as e:
                logger.warning(
                    "Failed to load %s config at %s: %s. Ignoring it.",
                    label,
                    path,
                    e,
                )

        return config
