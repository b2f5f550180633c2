"""TOML-based configuration provider.

Config loading priority (highest to lowest):
1. Explicit: the file passed with --config
2. Global: ~/.config/sprig/config.toml (user defaults)
3. Built-in defaults
"""

import logging
from pathlib import Path

from sprig.domain.config import SprigConfig
from sprig.shared.config_io import get_global_config_path, load_config_data

logger = logging.getLogger(__name__)


class TomlConfigProvider:
    """Configuration provider that loads from TOML files.

    Implements config cascade:
    1. Load global config if present
    2. Load the explicit config file if given
    3. Later values override earlier ones (key-level, per section)
    4. Missing values fall back to built-in defaults

    Gracefully handles missing or invalid configs with warnings.
    """

    def __init__(self, global_path: Path | None = None) -> None:
        """Initialize the provider.

        Args:
            global_path: Override for the global config location (default: platform path).
        """
        self._global_path = global_path

    def _apply(self, config: SprigConfig, path: Path, label: str) -> SprigConfig:
        try:
            data = load_config_data(path)
            merged = SprigConfig.from_partial(config, data)
        except (FileNotFoundError, ValueError) as e:
            logger.warning("Failed to load %s config at %s: %s. Ignoring it.", label, path, e)
            return config
        logger.debug("Loaded %s config from %s", label, path)
        return merged

    def load(self, config_path: Path | None = None) -> SprigConfig:
        """Load configuration with global fallback.

        Uses domain-level merging via SprigConfig.from_partial so validation
        happens at each merge step.

        Args:
            config_path: Optional explicit config file.

        Returns:
            SprigConfig instance with merged values or defaults
        """
        config = SprigConfig.default()

        global_path = self._global_path or get_global_config_path()
        if global_path.exists():
            config = self._apply(config, global_path, "global")

        if config_path is not None:
            if config_path.exists():
                config = self._apply(config, config_path, "local")
            else:
                logger.warning("Config file %s does not exist. Using global/default configuration.", config_path)

        return config
