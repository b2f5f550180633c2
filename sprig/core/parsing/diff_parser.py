"""Parsing of single-file git diff output into FileDiff records."""

import re

from sprig.domain.entities import BlockDiff, FileDiff
from sprig.domain.exceptions import MalformedOutputError

# Unified diff range marker: "@@ -12,7 +12,8 @@ optional context"
HUNK_HEADER_PATTERN = re.compile(r"^@@ -\d+(?:,\d+)? \+\d+(?:,\d+)? @@")

NO_NEWLINE_MARKER = "\\ No newline at end of file"

# Meta lines that carry file names; a file called "binary.txt" must not flag the diff
_NAME_BEARING_PREFIXES = ("diff --git ", "--- ", "+++ ", "rename from ", "rename to ")


def is_hunk_header(line: str) -> bool:
    """Return True if line is a unified diff hunk header."""
    return HUNK_HEADER_PATTERN.match(line) is not None


def filter_diff_lines(output: str) -> list[str]:
    """Split diff output into lines, dropping blank and no-newline marker lines."""
    return [
        line
        for line in output.split("\n")
        if line and line != NO_NEWLINE_MARKER
    ]


def _scan_meta(meta_lines: list[str]) -> tuple[bool, bool, bool]:
    """Derive (is_new_file, is_deleted, is_binary) from the diff meta block."""
    text = "\n".join(
        "binary" if line.startswith("Binary files ") else line
        for line in meta_lines
        if not line.startswith(_NAME_BEARING_PREFIXES)
    ).lower()
    return ("new file" in text, "deleted" in text, "binary" in text)


def split_sections(lines: list[str]) -> list[list[str]]:
    """Split filtered diff lines at every column-0 "diff " header.

    Hunk body lines always start with " ", "+" or "-", so a header can only
    begin a new section.
    """
    starts = [i for i, line in enumerate(lines) if line.startswith("diff ")]
    bounds = [*starts, len(lines)]
    return [lines[start:end] for start, end in zip(bounds, bounds[1:])]


def _parse_section(path: str, lines: list[str]) -> tuple[bool, bool, bool, list[BlockDiff]]:
    """Parse one "diff --git" section into (is_new_file, is_deleted, is_binary, blocks)."""
    header_indexes = [i for i, line in enumerate(lines) if is_hunk_header(line)]
    meta_end = header_indexes[0] if header_indexes else len(lines)
    is_new_file, is_deleted, is_binary = _scan_meta(lines[:meta_end])

    if is_binary and header_indexes:
        raise MalformedOutputError(
            f"Diff for '{path}' is marked binary but contains {len(header_indexes)} hunk(s)"
        )

    # Sentinel end index lets every header slice up to the next one
    bounds = [*header_indexes, len(lines)]
    blocks = [
        BlockDiff(
            hunk_header=lines[start],
            body="\n".join(lines[start + 1 : end]),
        )
        for start, end in zip(bounds, bounds[1:])
    ]
    return is_new_file, is_deleted, is_binary, blocks


def parse_file_diff(path: str, output: str) -> FileDiff:
    """Parse the git diff of a single file.

    Usually the output holds one "diff --git" section. A change of file type
    (regular file to symlink or back) holds two: the old file deleted, then the
    new one added. Each section's meta block decides its own flags; the file
    is new only if the first section adds it and deleted only if the last
    section removes it, so a type change is neither. If any section is binary
    the whole diff is binary and carries no hunks.

    Args:
        path: Path the diff was restricted to.
        output: Raw output of "git diff <base> <target> -- <path>".

    Returns:
        FileDiff for the path. Empty output yields a FileDiff with no flags and no blocks.

    Raises:
        MalformedOutputError: If the output does not start with a diff header,
            or a binary section carries hunks.
    """
    lines = filter_diff_lines(output)
    if not lines:
        return FileDiff(path=path)
    if not lines[0].startswith("diff "):
        raise MalformedOutputError(
            f"Diff output for '{path}' does not start with a diff header: {lines[0][:80]!r}"
        )

    sections = [_parse_section(path, section) for section in split_sections(lines)]
    is_new_file = sections[0][0]
    is_deleted = sections[-1][1]
    is_binary = any(section[2] for section in sections)
    blocks = () if is_binary else tuple(block for section in sections for block in section[3])

    try:
        return FileDiff(
            path=path,
            is_new_file=is_new_file,
            is_deleted=is_deleted,
            is_binary=is_binary,
            blocks=blocks,
        )
    except ValueError as e:
        raise MalformedOutputError(f"Inconsistent diff for '{path}': {e}") from e
