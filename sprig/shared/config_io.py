"""Configuration I/O utilities for reading and writing TOML config files.

This module handles serialization/deserialization of SprigConfig to/from TOML format.
"""

import os
import platform
import tomllib  # Built-in Python 3.11+
from dataclasses import asdict
from pathlib import Path
from typing import Any

import tomli_w

from sprig.domain.config import SprigConfig


def get_global_config_path() -> Path:
    """Get the path to the global config file.

    The location is platform-dependent:
    - Linux/macOS: $XDG_CONFIG_HOME/sprig/config.toml or ~/.config/sprig/config.toml
    - Windows: %APPDATA%/sprig/config.toml

    Returns:
        Path to the global config file (may not exist)
    """
    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "sprig" / "config.toml"
        return Path.home() / ".config" / "sprig" / "config.toml"
    xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg_config:
        return Path(xdg_config) / "sprig" / "config.toml"
    return Path.home() / ".config" / "sprig" / "config.toml"


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


def load_config(path: Path) -> SprigConfig:
    """Load configuration from a TOML file on top of the built-in defaults.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed or a value is invalid
    """
    return SprigConfig.from_partial(SprigConfig.default(), load_config_data(path))


def config_to_data(config: SprigConfig) -> dict[str, Any]:
    """Convert a SprigConfig to TOML-serializable data.

    TOML has no null, so unset optional values are left out.
    """
    data: dict[str, Any] = {}
    for section, values in asdict(config).items():
        data[section] = {
            key: str(value) if isinstance(value, Path) else value
            for key, value in values.items()
            if value is not None
        }
    return data


def save_config(config: SprigConfig, path: Path) -> None:
    """Save configuration to a TOML file.

    Args:
        config: SprigConfig to save
        path: Destination path for config.toml
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        tomli_w.dump(config_to_data(config), f)


def create_default_config_file(path: Path) -> None:
    """Create a default config.toml file with comments.

    Args:
        path: Destination path for config.toml
    """
    template = """# sprig configuration
# Created by: sprig config-init

[git]
# Git executable (name on PATH or absolute path)
binary = "git"

# Seconds before a single git invocation is aborted
timeout_seconds = 120.0

[workspace]
# Directory for temporary clones (defaults to the system temp dir)
# temp_root = "/var/tmp/sprig"

# Name prefix of each temporary clone
prefix = "sprig_workspace_"

[merge]
# Identity for merge and conflict resolution commits
committer_name = "sprig"
committer_email = "sprig@localhost"

# Commit message for conflict resolutions; {number} is the pull request number
resolve_message = "Resolve conflicts of pull request #{number}"

[concurrency]
# Maximum parallel git invocations within one operation
max_workers = 8
"""

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(template)
