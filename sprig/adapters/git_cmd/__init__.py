"""Git subprocess adapter."""

from sprig.adapters.git_cmd.runner import GitCommandRunner

__all__ = ["GitCommandRunner"]
