"""Ref and repository path helpers shared by the git services."""

from pathlib import Path

# Hash of the empty tree; diffing against it shows every file of a root commit as added
EMPTY_TREE_HASH = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


def check_ref(ref: str) -> str:
    """Validate a ref before it is passed to git.

    Refs are passed as separate arguments, so quoting is not a concern, but a
    ref starting with "-" would be read as an option.

    Returns:
        The ref unchanged.

    Raises:
        ValueError: If ref is empty, contains a NUL byte or looks like an option.
    """
    if not ref or not ref.strip():
        raise ValueError("ref cannot be empty")
    if "\0" in ref:
        raise ValueError(f"ref cannot contain a NUL byte: {ref!r}")
    if ref.startswith("-"):
        raise ValueError(f"ref cannot start with '-': {ref!r}")
    return ref


def normalize_path(path: str) -> str:
    """Map the empty path to the repository root."""
    return path if path else "."


def same_repository(path1: Path, path2: Path) -> bool:
    """Return True if both paths point at the same repository directory."""
    return Path(path1).resolve() == Path(path2).resolve()


def check_pagination(offset: int, limit: int | None) -> None:
    """Validate offset/limit pagination bounds.

    Raises:
        ValueError: If offset is negative or limit is negative.
    """
    if offset < 0:
        raise ValueError(f"offset cannot be negative, got {offset}")
    if limit is not None and limit < 0:
        raise ValueError(f"limit cannot be negative, got {limit}")


def paginate(items: list, offset: int = 0, limit: int | None = None) -> list:
    """Slice a list by offset/limit."""
    check_pagination(offset, limit)
    end = None if limit is None else offset + limit
    return items[offset:end]
