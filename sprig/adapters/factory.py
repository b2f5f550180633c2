"""Factory for service and adapter instantiation.

This module centralizes the wiring of services and their dependencies,
keeping the CLI layer free from direct adapter imports. Presentation code asks
the factory for a service and never constructs runners or file systems itself.
"""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING

from sprig.adapters.fs.local import LocalFileSystem
from sprig.adapters.git_cmd.runner import GitCommandRunner
from sprig.core.diff import DiffService
from sprig.core.files import FileService
from sprig.core.history import HistoryService
from sprig.core.merge import MergeService
from sprig.core.workspace import WorkspaceManager

if TYPE_CHECKING:
    from sprig.domain.config import SprigConfig


class ServiceFactory:
    """Builds the git services from one configuration.

    Adapters are created once per factory and shared by every service it
    returns; services are stateless apart from them.

    Args:
        config: SprigConfig with git, workspace, merge and concurrency settings.
    """

    def __init__(self, config: SprigConfig) -> None:
        """Initialize factory with configuration.

        Args:
            config: Configuration for every adapter and service.
        """
        self._config = config

    @property
    def config(self) -> SprigConfig:
        return self._config

    @cached_property
    def runner(self) -> GitCommandRunner:
        return GitCommandRunner(self._config.git)

    @cached_property
    def fs(self) -> LocalFileSystem:
        return LocalFileSystem()

    @cached_property
    def workspaces(self) -> WorkspaceManager:
        return WorkspaceManager(self.runner, self.fs, self._config.workspace)

    @cached_property
    def history(self) -> HistoryService:
        return HistoryService(
            self.runner,
            self.workspaces,
            max_workers=self._config.concurrency.max_workers,
        )

    @cached_property
    def diff(self) -> DiffService:
        return DiffService(
            self.runner,
            self.workspaces,
            max_workers=self._config.concurrency.max_workers,
        )

    @cached_property
    def merge(self) -> MergeService:
        return MergeService(
            self.runner,
            self.workspaces,
            self.fs,
            config=self._config.merge,
            max_workers=self._config.concurrency.max_workers,
        )

    @cached_property
    def files(self) -> FileService:
        return FileService(
            self.runner,
            self.history,
            max_workers=self._config.concurrency.max_workers,
        )
