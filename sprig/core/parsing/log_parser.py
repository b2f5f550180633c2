"""Parsing of git log output into Commit records.

git is asked for a custom format in which every field is followed by a field
separator and every record by a record separator. Both separators contain
ASCII control characters wrapped around a marker word, so they cannot occur
in names, emails or commit messages.
"""

from sprig.domain.entities import Commit
from sprig.domain.exceptions import MalformedOutputError

FIELD_SEPARATOR = "\x1f<sprig:field>\x1f"
RECORD_SEPARATOR = "\x1e<sprig:record>\x1e"

# hash, committer name, committer email, committer time (unix seconds), subject, body
_FIELDS = ("%H", "%cn", "%ce", "%ct", "%s", "%b")
FIELD_COUNT = len(_FIELDS)

LOG_FORMAT = FIELD_SEPARATOR.join(_FIELDS) + RECORD_SEPARATOR


def log_format_argument() -> str:
    """Return the --pretty argument that produces output parse_log understands."""
    return f"--pretty=format:{LOG_FORMAT}"


def parse_log_record(record: str) -> Commit:
    """Parse one log record into a Commit.

    Args:
        record: Text between two record separators.

    Returns:
        Parsed Commit.

    Raises:
        MalformedOutputError: If the record does not have exactly six fields,
            the hash is not a full SHA, or the time is not an integer.
    """
    fields = record.split(FIELD_SEPARATOR)
    if len(fields) != FIELD_COUNT:
        raise MalformedOutputError(
            f"Expected {FIELD_COUNT} fields in git log record, got {len(fields)}",
            hint="git output did not match the requested format; check the git version and encoding",
        )
    # A newline from the previous record precedes every hash but the first
    commit_hash = fields[0].strip()
    name, email, time_text, subject, body = fields[1:]

    try:
        commit_time_seconds = int(time_text)
    except ValueError as e:
        raise MalformedOutputError(
            f"Invalid commit time {time_text!r} for commit {commit_hash!r}"
        ) from e

    try:
        return Commit(
            hash=commit_hash,
            committer_name=name,
            committer_email=email,
            commit_time_ms=commit_time_seconds * 1000,
            subject=subject,
            body=body.rstrip("\n"),
        )
    except ValueError as e:
        raise MalformedOutputError(f"Invalid git log record: {e}") from e


def parse_log(output: str) -> list[Commit]:
    """Parse the output of git log run with log_format_argument().

    Empty trailing records are discarded. An empty output yields an empty list.

    Raises:
        MalformedOutputError: If any record is malformed.
    """
    records = output.split(RECORD_SEPARATOR)
    return [parse_log_record(record) for record in records if record.strip()]


def parse_single_commit(output: str) -> Commit | None:
    """Parse output of a single-record log query.

    Returns:
        The commit, or None if git printed nothing.

    Raises:
        MalformedOutputError: If the output holds more than one record or is malformed.
    """
    commits = parse_log(output)
    if not commits:
        return None
    if len(commits) > 1:
        raise MalformedOutputError(
            f"Expected a single git log record, got {len(commits)}"
        )
    return commits[0]
