"""Configuration adapters."""

from sprig.adapters.config.toml_config_provider import TomlConfigProvider

__all__ = ["TomlConfigProvider"]
