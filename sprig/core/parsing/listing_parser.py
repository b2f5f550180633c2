"""Parsing of line- and NUL-delimited git listings.

Covers git branch, git tag, ls-tree, ls-files -u, diff --name-only and
rev-list --count output.
"""

from dataclasses import dataclass

from sprig.domain.entities import ObjectType, TreeObject
from sprig.domain.exceptions import MalformedOutputError


@dataclass(frozen=True)
class BranchLine:
    """A branch row of git branch output before its commit is resolved."""

    name: str
    is_current: bool


def split_lines(output: str) -> list[str]:
    """Split output into non-empty lines."""
    return [line for line in output.splitlines() if line.strip()]


def parse_branch_listing(output: str) -> list[BranchLine]:
    """Parse git branch output.

    Each row has a two character marker column followed by the branch name.
    "*" marks the checked-out branch ("+" marks a branch checked out in another
    worktree). Detached HEAD rows such as "* (HEAD detached at 1a2b3c4)" are
    not branches and are skipped.
    """
    branches: list[BranchLine] = []
    for line in split_lines(output):
        marker, name = line[:2], line[2:].strip()
        if not name or name.startswith("("):
            continue
        branches.append(BranchLine(name=name, is_current="*" in marker))
    return branches


def parse_tag_listing(output: str) -> list[str]:
    """Parse git tag output into tag names."""
    return [line.strip() for line in split_lines(output)]


def parse_path_list(output: str) -> list[str]:
    """Parse NUL-separated path output (the -z form of --name-only)."""
    return [path for path in output.split("\0") if path]


def _parse_object_type(value: str) -> ObjectType:
    try:
        return ObjectType(value)
    except ValueError as e:
        raise MalformedOutputError(f"Unknown git object type {value!r}") from e


def parse_tree_listing(output: str) -> list[TreeObject]:
    """Parse git ls-tree -z output.

    Each record is "<mode> SP <type> SP <hash> TAB <path>". The separator
    before the path is a tab, the others are spaces.

    Raises:
        MalformedOutputError: If a record does not have that shape.
    """
    objects: list[TreeObject] = []
    for record in parse_path_list(output):
        info, sep, path = record.partition("\t")
        parts = info.split(" ")
        if not sep or len(parts) != 3:
            raise MalformedOutputError(f"Unexpected ls-tree record: {record!r}")
        mode, type_name, object_hash = parts
        objects.append(
            TreeObject(
                mode=mode,
                type=_parse_object_type(type_name),
                object_hash=object_hash,
                path=path,
            )
        )
    return objects


def parse_unmerged_paths(output: str) -> list[str]:
    """Parse git ls-files -u -z output into unique paths, sorted.

    Each unmerged path appears once per stage ("<mode> <hash> <stage>\\t<path>").

    Raises:
        MalformedOutputError: If a record carries no path.
    """
    paths: set[str] = set()
    for record in parse_path_list(output):
        _, sep, path = record.partition("\t")
        if not sep or not path:
            raise MalformedOutputError(f"Unexpected ls-files record: {record!r}")
        paths.add(path)
    return sorted(paths)


def parse_count(output: str) -> int:
    """Parse git rev-list --count output.

    Raises:
        MalformedOutputError: If output is not a non-negative integer.
    """
    text = output.strip()
    if not text.isdigit():
        raise MalformedOutputError(f"Expected a commit count, got {text!r}")
    return int(text)
