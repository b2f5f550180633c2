"""Process invocation port interface.

Defines abstract interface for running git commands.
"""

from pathlib import Path
from typing import Protocol


class ProcessRunner(Protocol):
    """Protocol for invoking git as an external process."""

    def run(self, args: list[str], cwd: Path | None = None) -> str:
        """Run git and return its decoded standard output.

        Args:
            args: Git arguments (without the git binary).
            cwd: Working directory for the invocation.

        Returns:
            Standard output decoded as UTF-8.

        Raises:
            GitCommandError: If git exits with a non-zero status.
            GitTimeoutError: If git does not finish within the configured timeout.
        """
        ...

    def run_bytes(self, args: list[str], cwd: Path | None = None) -> bytes:
        """Run git and return its raw standard output.

        Raises:
            GitCommandError: If git exits with a non-zero status.
            GitTimeoutError: If git does not finish within the configured timeout.
        """
        ...
