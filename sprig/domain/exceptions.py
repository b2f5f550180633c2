"""Domain exceptions for sprig.

These exceptions describe why a git query could not produce a result. They
should be caught at the application boundary (CLI, service layer) and
converted to appropriate user-facing error messages.
"""

from collections.abc import Sequence
from pathlib import Path


class SprigError(Exception):
    """Base exception for all sprig errors.

    Attributes:
        message: User-facing error message.
        hint: Optional actionable suggestion.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class NotFoundError(SprigError):
    """Raised when a ref, commit, or path does not resolve."""

    pass


class MalformedOutputError(SprigError):
    """Raised when git output does not match the expected record structure.

    This indicates a tooling or encoding mismatch and is never tolerated.
    """

    pass


class GitCommandError(SprigError):
    """Raised when a git invocation exits with a non-zero status.

    Attributes:
        args: Git arguments (without the binary).
        cwd: Working directory of the invocation.
        returncode: Exit status, or None if the process never finished.
        stderr: Decoded standard error output.
    """

    def __init__(
        self,
        message: str,
        *,
        args: Sequence[str],
        cwd: Path | None,
        returncode: int | None,
        stderr: str = "",
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.git_args = list(args)
        self.cwd = cwd
        self.returncode = returncode
        self.stderr = stderr


class GitTimeoutError(GitCommandError):
    """Raised when a git invocation exceeds the configured timeout."""

    pass


class WorkspaceError(SprigError):
    """Raised when a temporary workspace cannot be created or is reused after destruction."""

    pass
