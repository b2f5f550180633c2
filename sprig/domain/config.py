"""Config domain models for sprig.

Configuration is stored in TOML files and describes how git is invoked,
where temporary workspaces live, which identity merge commits use, and how
wide concurrent sub-queries may fan out. This module defines the domain
models that represent validated configuration state.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class GitConfig:
    """Configuration for git invocations.

    Attributes:
        binary: Git executable name or absolute path.
        timeout_seconds: Upper bound for a single git invocation.

    Raises:
        ValueError: If binary is empty or timeout_seconds is not positive.
    """

    binary: str = "git"
    timeout_seconds: float = 120.0

    def __post_init__(self) -> None:
        """Validate git config after initialization."""
        if not self.binary.strip():
            raise ValueError("binary cannot be empty")
        if self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )


@dataclass(frozen=True)
class WorkspaceConfig:
    """Configuration for temporary workspaces.

    Attributes:
        temp_root: Directory in which workspaces are created (None for the system temp dir).
        prefix: Directory name prefix for each workspace.

    Raises:
        ValueError: If prefix is empty or contains a path separator.
    """

    temp_root: Path | None = None
    prefix: str = "sprig_workspace_"

    def __post_init__(self) -> None:
        """Validate workspace config after initialization."""
        if isinstance(self.temp_root, str):
            object.__setattr__(self, "temp_root", Path(self.temp_root))
        if not self.prefix:
            raise ValueError("prefix cannot be empty")
        if os.sep in self.prefix or "/" in self.prefix:
            raise ValueError(f"prefix cannot contain a path separator, got {self.prefix!r}")


@dataclass(frozen=True)
class MergeConfig:
    """Configuration for commits created inside workspaces.

    Attributes:
        committer_name: Default user.name for merge and resolution commits.
        committer_email: Default user.email for merge and resolution commits.
        resolve_message: Commit message for conflict resolution; must contain "{number}".
    """

    committer_name: str = "sprig"
    committer_email: str = "sprig@localhost"
    resolve_message: str = "Resolve conflicts of pull request #{number}"

    def __post_init__(self) -> None:
        """Validate merge config after initialization."""
        if not self.committer_name.strip():
            raise ValueError("committer_name cannot be empty")
        if not self.committer_email.strip():
            raise ValueError("committer_email cannot be empty")
        if "{number}" not in self.resolve_message:
            raise ValueError(
                f"resolve_message must contain '{{number}}', got {self.resolve_message!r}"
            )


@dataclass(frozen=True)
class ConcurrencyConfig:
    """Configuration for fan-out of independent sub-queries.

    Attributes:
        max_workers: Maximum number of git invocations issued in parallel by one operation.
    """

    max_workers: int = 8

    def __post_init__(self) -> None:
        if self.max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")


@dataclass(frozen=True)
class SprigConfig:
    """Complete sprig configuration.

    Attributes:
        git: Git invocation configuration
        workspace: Temporary workspace configuration
        merge: Merge/resolution commit configuration
        concurrency: Fan-out configuration
    """

    git: GitConfig = field(default_factory=GitConfig)
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    merge: MergeConfig = field(default_factory=MergeConfig)
    concurrency: ConcurrencyConfig = field(default_factory=ConcurrencyConfig)

    @staticmethod
    def default() -> "SprigConfig":
        """Create a config with all default values."""
        return SprigConfig(
            git=GitConfig(),
            workspace=WorkspaceConfig(),
            merge=MergeConfig(),
            concurrency=ConcurrencyConfig(),
        )

    @staticmethod
    def from_partial(base: "SprigConfig", data: dict[str, Any]) -> "SprigConfig":
        """Overlay raw config data on top of an existing config.

        Each section present in data replaces only the keys it names; sections
        and keys not mentioned keep their values from base. The resulting
        sections are validated through their constructors.

        Args:
            base: Config providing values for everything data leaves out.
            data: Raw config data (e.g. parsed TOML), keyed by section name.

        Returns:
            New SprigConfig with the overrides applied.

        Raises:
            ValueError: If a section is not a table, a key is unknown, or a value fails validation.
        """
        overrides: dict[str, Any] = {}
        for section in fields(base):
            section_data = data.get(section.name)
            if section_data is None:
                continue
            if not isinstance(section_data, dict):
                raise ValueError(f"Config section [{section.name}] must be a table")
            current = getattr(base, section.name)
            known = {f.name for f in fields(current)}
            unknown = set(section_data) - known
            if unknown:
                raise ValueError(
                    f"Unknown key(s) in [{section.name}]: {', '.join(sorted(unknown))}"
                )
            try:
                overrides[section.name] = replace(current, **section_data)
            except TypeError as e:
                raise ValueError(f"Invalid value in [{section.name}]: {e}") from e
        return replace(base, **overrides)
