"""Pytest configuration and shared fixtures."""

import subprocess
from dataclasses import dataclass
from pathlib import Path

import pytest

from sprig.adapters.factory import ServiceFactory
from sprig.domain.config import SprigConfig, WorkspaceConfig

# ============================================================================
# Git Repository Helpers
# ============================================================================
# These helpers consolidate git setup code to avoid duplication across tests.
# Use these functions in fixtures to create consistent test repositories.


def git(path: Path, *args: str) -> str:
    """Run a git command in path and return its stdout.

    Raises:
        subprocess.CalledProcessError: If git fails.
    """
    result = subprocess.run(
        ["git", *args],
        cwd=path,
        check=True,
        capture_output=True,
        text=True,
        timeout=10,
    )
    return result.stdout


def init_git_repo(
    path: Path,
    user_name: str = "Test User",
    user_email: str = "test@example.com",
    branch: str = "main",
) -> None:
    """Initialize a git repository with user configuration.

    The initial branch is set explicitly so tests do not depend on the
    machine's init.defaultBranch.

    Args:
        path: Directory to initialize as a git repository.
        user_name: Git user.name configuration value.
        user_email: Git user.email configuration value.
        branch: Name of the initial branch.
    """
    git(path, "init", "--quiet")
    git(path, "symbolic-ref", "HEAD", f"refs/heads/{branch}")
    configure_user(path, user_name, user_email)


def configure_user(
    path: Path,
    user_name: str = "Test User",
    user_email: str = "test@example.com",
) -> None:
    """Set the commit identity of a repository and disable signing."""
    git(path, "config", "user.name", user_name)
    git(path, "config", "user.email", user_email)
    git(path, "config", "commit.gpgsign", "false")


def create_test_files(path: Path, files: dict[str, str | bytes]) -> None:
    """Create multiple files in a directory.

    Args:
        path: Base directory for file creation.
        files: Mapping of relative file paths to contents (bytes for binary files).
               Parent directories are created automatically.
    """
    for file_path, content in files.items():
        full_path = path / file_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            full_path.write_bytes(content)
        else:
            full_path.write_text(content)


def git_add_and_commit(path: Path, message: str = "Initial commit") -> str:
    """Stage everything and create a commit.

    Returns:
        Hash of the new commit.
    """
    git(path, "add", "--all")
    git(path, "commit", "--quiet", "-m", message)
    return git(path, "rev-parse", "HEAD").strip()


def commit_files(path: Path, files: dict[str, str | bytes], message: str) -> str:
    """Write files and commit them.

    Returns:
        Hash of the new commit.
    """
    create_test_files(path, files)
    return git_add_and_commit(path, message=message)


def create_git_repo(
    path: Path,
    files: dict[str, str | bytes] | None = None,
    commit_message: str = "Initial commit",
) -> Path:
    """Create a git repository, with an initial commit when files are given.

    Returns:
        Path to the repository root.
    """
    path.mkdir(parents=True, exist_ok=True)
    init_git_repo(path)
    if files:
        commit_files(path, files, commit_message)
    return path


def clone_bare(source: Path, destination: Path) -> Path:
    """Create a bare clone of source at destination."""
    git(source.parent, "clone", "--quiet", "--bare", str(source), str(destination))
    return destination


def clone_work(source: Path, destination: Path) -> Path:
    """Create a working clone of source with a test identity."""
    git(source.parent, "clone", "--quiet", str(source), str(destination))
    configure_user(destination)
    return destination


def leftover_workspaces(root: Path) -> list[Path]:
    """Return workspace directories still present under root."""
    if not root.exists():
        return []
    return list(root.iterdir())


# ============================================================================
# Git Environment
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_git_config(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Hide the developer's global and system git config from every test.

    Test repositories carry their own identity; anything sprig needs beyond
    that must be configured by sprig itself.
    """
    global_config = tmp_path_factory.mktemp("gitconfig") / "config"
    global_config.write_text("")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(global_config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for name in ("GIT_AUTHOR_NAME", "GIT_AUTHOR_EMAIL", "GIT_COMMITTER_NAME", "GIT_COMMITTER_EMAIL"):
        monkeypatch.delenv(name, raising=False)
    return global_config


# ============================================================================
# Repository Fixtures
# ============================================================================


@dataclass
class LinearRepo:
    """Repository with commits A -> B -> C on main."""

    path: Path
    a: str
    b: str
    c: str


@dataclass
class ForkSetup:
    """Upstream and fork bare repositories with a working clone of each.

    Pushing to a checked-out branch of a non-bare repository is refused, so
    merges target the bare repositories and tests commit through the clones.
    """

    upstream: Path
    upstream_work: Path
    fork: Path
    fork_work: Path


@pytest.fixture
def linear_repo(tmp_path: Path) -> LinearRepo:
    """Create a repository whose main branch is A -> B -> C."""
    path = create_git_repo(tmp_path / "linear")
    a = commit_files(path, {"a.txt": "a\n"}, "A")
    b = commit_files(path, {"b.txt": "b\n"}, "B")
    c = commit_files(path, {"c.txt": "c\n"}, "C")
    return LinearRepo(path=path, a=a, b=b, c=c)


@pytest.fixture
def empty_repo(tmp_path: Path) -> Path:
    """Create a repository without any commits."""
    return create_git_repo(tmp_path / "empty")


@pytest.fixture
def fork_setup(tmp_path: Path) -> ForkSetup:
    """Create an upstream repository and a fork of it.

    Both start with README.md and shared.txt on main.
    """
    seed = create_git_repo(
        tmp_path / "seed",
        files={"README.md": "hello\n", "shared.txt": "line1\nline2\nline3\n"},
    )
    upstream = clone_bare(seed, tmp_path / "upstream.git")
    fork = clone_bare(upstream, tmp_path / "fork.git")
    return ForkSetup(
        upstream=upstream,
        upstream_work=clone_work(upstream, tmp_path / "upstream_work"),
        fork=fork,
        fork_work=clone_work(fork, tmp_path / "fork_work"),
    )


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Directory under which every temporary clone of a test is created."""
    return tmp_path / "workspaces"


@pytest.fixture
def config(workspace_root: Path) -> SprigConfig:
    """Default config with workspaces rooted in the test's tmp_path."""
    return SprigConfig(workspace=WorkspaceConfig(temp_root=workspace_root))


@pytest.fixture
def services(config: SprigConfig) -> ServiceFactory:
    """Service factory wired with real git and the local file system."""
    return ServiceFactory(config)
