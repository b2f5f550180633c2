"""Domain entities and value objects.

Core domain models describing what git tells us about a repository.
These are pure Python dataclasses with no dependencies on infrastructure.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

# Regex for validating full git commit SHAs (40 lowercase hex chars)
_GIT_SHA_PATTERN = re.compile(r"^[a-f0-9]{40}$")


class ObjectType(str, Enum):
    """Type of an entry in a git tree."""

    BLOB = "blob"
    TREE = "tree"
    COMMIT = "commit"  # Submodule gitlink


@dataclass(frozen=True)
class Identity:
    """Committer identity used when a workspace creates commits.

    Attributes:
        name: Value for git user.name.
        email: Value for git user.email.
    """

    name: str
    email: str

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Identity name cannot be empty")
        if not self.email.strip():
            raise ValueError("Identity email cannot be empty")


@dataclass(frozen=True)
class Commit:
    """A single commit as reported by git log.

    Identity is the hash: two Commit objects with the same hash describe the
    same commit.

    Attributes:
        hash: Full commit SHA (40 lowercase hex chars).
        committer_name: Committer name (%cn).
        committer_email: Committer email (%ce).
        commit_time_ms: Commit time in milliseconds since the Unix epoch.
        subject: First line of the commit message.
        body: Remainder of the commit message (may be empty).

    Raises:
        ValueError: If hash is not a full SHA or commit_time_ms is negative.
    """

    hash: str
    committer_name: str
    committer_email: str
    commit_time_ms: int
    subject: str
    body: str

    def __post_init__(self) -> None:
        """Validate commit data after initialization."""
        if not _GIT_SHA_PATTERN.match(self.hash):
            raise ValueError(
                f"hash must be 40 lowercase hex chars, got {self.hash!r}"
            )
        if self.commit_time_ms < 0:
            raise ValueError(
                f"commit_time_ms cannot be negative, got {self.commit_time_ms}"
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Commit):
            return NotImplemented
        return self.hash == other.hash

    def __hash__(self) -> int:
        return hash(self.hash)

    @property
    def short_hash(self) -> str:
        """Abbreviated hash for display."""
        return self.hash[:7]


@dataclass(frozen=True)
class Branch:
    """A local branch and the commit it points at.

    Attributes:
        name: Branch name.
        head_commit: Commit at the tip of the branch.
        is_current: True if this is the checked-out branch.
    """

    name: str
    head_commit: Commit
    is_current: bool = False


@dataclass(frozen=True)
class Tag:
    """A tag and the commit it resolves to."""

    name: str
    tagged_commit: Commit


@dataclass(frozen=True)
class BlockDiff:
    """One hunk of a unified diff.

    Attributes:
        hunk_header: The "@@ -a,b +c,d @@" range line, including any trailing context.
        body: Hunk lines joined with newlines.
    """

    hunk_header: str
    body: str


@dataclass(frozen=True)
class FileDiff:
    """Difference of a single file between two commits.

    Attributes:
        path: File path relative to repository root.
        is_new_file: File did not exist in the base.
        is_deleted: File does not exist in the target.
        is_binary: Git treated the file as binary; no hunks are available.
        blocks: Hunks in the order they appear in the diff.

    Raises:
        ValueError: If the file is binary but has hunks, or is both new and deleted.
    """

    path: str
    is_new_file: bool = False
    is_deleted: bool = False
    is_binary: bool = False
    blocks: tuple[BlockDiff, ...] = ()

    def __post_init__(self) -> None:
        """Validate file diff invariants."""
        # Accept any sequence but store an immutable tuple
        if not isinstance(self.blocks, tuple):
            object.__setattr__(self, "blocks", tuple(self.blocks))
        if self.is_binary and self.blocks:
            raise ValueError(f"Binary file diff for '{self.path}' cannot have hunks")
        if self.is_new_file and self.is_deleted:
            raise ValueError(
                f"File diff for '{self.path}' cannot be both new and deleted"
            )


@dataclass(frozen=True)
class Conflict:
    """An unmerged file surfaced by a failed automatic merge.

    Attributes:
        path: File path relative to repository root.
        is_binary: Binary files carry no textual conflict markers.
        content: Working-tree content with conflict markers (empty when binary).
    """

    path: str
    is_binary: bool
    content: str = ""

    def __post_init__(self) -> None:
        if self.is_binary and self.content:
            raise ValueError(f"Binary conflict for '{self.path}' cannot carry content")


@dataclass(frozen=True)
class TreeObject:
    """A single row of git ls-tree output.

    Attributes:
        mode: File mode (e.g. "100644").
        type: Object type.
        object_hash: SHA of the blob/tree/commit.
        path: Path relative to repository root.
    """

    mode: str
    type: ObjectType
    object_hash: str
    path: str


@dataclass(frozen=True)
class TreeEntry:
    """Directory listing entry together with the last commit that touched it."""

    type: ObjectType
    path: str
    commit: Commit
