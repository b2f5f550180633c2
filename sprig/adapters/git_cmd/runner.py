"""Git process runner implementing the ProcessRunner protocol using subprocess."""

import logging
import os
import subprocess
from pathlib import Path

from sprig.domain.config import GitConfig
from sprig.domain.exceptions import GitCommandError, GitTimeoutError

logger = logging.getLogger(__name__)


def _git_environment() -> dict[str, str]:
    """Environment for git child processes.

    Messages are forced to the C locale so stderr can be matched reliably, and
    git must never wait for credentials or an editor.
    """
    env = dict(os.environ)
    env["LC_ALL"] = "C"
    env["LANG"] = "C"
    env["GIT_TERMINAL_PROMPT"] = "0"
    env["GIT_EDITOR"] = "true"
    env["GIT_MERGE_AUTOEDIT"] = "no"
    return env


def format_git_error(
    args: list[str],
    returncode: int | None,
    stderr: str,
) -> str:
    """Format a git failure with full context.

    Args:
        args: Git arguments that were run.
        returncode: Exit status (None for timeouts).
        stderr: Decoded standard error.

    Returns:
        Formatted error message with exit code and stderr.
    """
    command = " ".join(["git", *args])
    if returncode is None:
        msg = f"'{command}' timed out"
    else:
        msg = f"'{command}' failed (git exit code {returncode})"
    stderr = stderr.strip()
    if stderr:
        msg += f": {stderr}"
    else:
        msg += " (no error output from git)"
    return msg


class GitCommandRunner:
    """Runs git commands as subprocesses.

    Arguments are always passed as a list, never through a shell, so refs and
    paths need no quoting.
    """

    def __init__(self, config: GitConfig | None = None) -> None:
        """Initialize the runner.

        Args:
            config: Git configuration (binary and timeout). Defaults to GitConfig().
        """
        self._config = config or GitConfig()

    @property
    def config(self) -> GitConfig:
        return self._config

    def _run(self, args: list[str], cwd: Path | None) -> bytes:
        """Run git and return raw stdout.

        Raises:
            GitCommandError: If git exits with a non-zero status or cannot be started.
            GitTimeoutError: If git exceeds the configured timeout.
        """
        cmd = [self._config.binary, *args]
        logger.debug("Running %s (cwd=%s)", " ".join(cmd), cwd)
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                check=True,
                timeout=self._config.timeout_seconds,
                env=_git_environment(),
                stdin=subprocess.DEVNULL,
            )
        except subprocess.TimeoutExpired as e:
            stderr = e.stderr.decode("utf-8", errors="replace") if e.stderr else ""
            raise GitTimeoutError(
                format_git_error(args, None, stderr),
                args=args,
                cwd=cwd,
                returncode=None,
                stderr=stderr,
                hint=f"Increase git.timeout_seconds (currently {self._config.timeout_seconds})",
            ) from e
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode("utf-8", errors="replace") if e.stderr else ""
            raise GitCommandError(
                format_git_error(args, e.returncode, stderr),
                args=args,
                cwd=cwd,
                returncode=e.returncode,
                stderr=stderr,
            ) from e
        except FileNotFoundError as e:
            # Either the git binary or the working directory is missing
            raise GitCommandError(
                f"Cannot run '{self._config.binary}': {e}",
                args=args,
                cwd=cwd,
                returncode=None,
                hint="Check that git is installed and the repository path exists",
            ) from e
        return result.stdout

    def run(self, args: list[str], cwd: Path | None = None) -> str:
        """Run git and return its decoded standard output."""
        return self._run(args, cwd).decode("utf-8", errors="replace")

    def run_bytes(self, args: list[str], cwd: Path | None = None) -> bytes:
        """Run git and return its raw standard output."""
        return self._run(args, cwd)
