"""Unit tests for git log output parsing."""

import pytest

from sprig.core.parsing.log_parser import (
    FIELD_SEPARATOR,
    RECORD_SEPARATOR,
    log_format_argument,
    parse_log,
    parse_log_record,
    parse_single_commit,
)
from sprig.domain.exceptions import MalformedOutputError

HASH_A = "a" * 40
HASH_B = "b" * 40


def make_record(
    commit_hash: str = HASH_A,
    name: str = "Alice",
    email: str = "alice@example.com",
    time: str = "1700000000",
    subject: str = "Add feature",
    body: str = "",
) -> str:
    """Build one record the way git prints it for log_format_argument()."""
    return FIELD_SEPARATOR.join([commit_hash, name, email, time, subject, body]) + RECORD_SEPARATOR


class TestLogFormat:
    """Tests for the requested git log format."""

    def test_format_requests_six_fields(self):
        """Test the format string separates exactly six placeholders."""
        argument = log_format_argument()
        assert argument.startswith("--pretty=format:")
        assert argument.count(FIELD_SEPARATOR) == 5
        assert argument.endswith(RECORD_SEPARATOR)

    def test_separators_contain_control_characters(self):
        """Test separators cannot be confused with ordinary commit text."""
        assert "\x1f" in FIELD_SEPARATOR
        assert "\x1e" in RECORD_SEPARATOR
        assert FIELD_SEPARATOR != RECORD_SEPARATOR


class TestParseLogRecord:
    """Tests for parse_log_record."""

    def test_parses_all_fields(self):
        """Test every field lands in the right attribute."""
        record = make_record(body="Longer explanation\n\nSigned-off-by: Alice\n")[: -len(RECORD_SEPARATOR)]
        commit = parse_log_record(record)
        assert commit.hash == HASH_A
        assert commit.committer_name == "Alice"
        assert commit.committer_email == "alice@example.com"
        assert commit.commit_time_ms == 1_700_000_000_000
        assert commit.subject == "Add feature"
        assert commit.body == "Longer explanation\n\nSigned-off-by: Alice"

    def test_leading_newline_before_hash_is_stripped(self):
        """Test the newline git puts between records does not end up in the hash."""
        record = "\n" + make_record()[: -len(RECORD_SEPARATOR)]
        assert parse_log_record(record).hash == HASH_A

    def test_too_few_fields_raises(self):
        """Test a record with five fields is rejected, not truncated."""
        record = FIELD_SEPARATOR.join([HASH_A, "Alice", "a@x", "1", "subject"])
        with pytest.raises(MalformedOutputError, match="Expected 6 fields"):
            parse_log_record(record)

    def test_too_many_fields_raises(self):
        """Test a record with seven fields is rejected."""
        record = FIELD_SEPARATOR.join([HASH_A, "Alice", "a@x", "1", "s", "b", "extra"])
        with pytest.raises(MalformedOutputError, match="got 7"):
            parse_log_record(record)

    def test_non_integer_time_raises(self):
        """Test a non-numeric commit time is rejected."""
        record = make_record(time="yesterday")[: -len(RECORD_SEPARATOR)]
        with pytest.raises(MalformedOutputError, match="Invalid commit time"):
            parse_log_record(record)

    def test_invalid_hash_raises(self):
        """Test an abbreviated hash is rejected."""
        record = make_record(commit_hash="abc123")[: -len(RECORD_SEPARATOR)]
        with pytest.raises(MalformedOutputError, match="Invalid git log record"):
            parse_log_record(record)

    def test_body_may_contain_newlines_and_separator_like_text(self):
        """Test bodies with ordinary punctuation survive intact."""
        body = "line one | with pipes\nline two\t<field>"
        record = make_record(body=body)[: -len(RECORD_SEPARATOR)]
        assert parse_log_record(record).body == body


class TestParseLog:
    """Tests for parse_log."""

    def test_empty_output_yields_no_commits(self):
        """Test empty output parses to an empty list."""
        assert parse_log("") == []

    def test_whitespace_trailing_record_is_discarded(self):
        """Test the empty remainder after the last separator is ignored."""
        output = make_record() + "\n"
        assert [c.hash for c in parse_log(output)] == [HASH_A]

    def test_multiple_records_keep_order(self):
        """Test records are returned in git's order."""
        output = make_record(HASH_B, subject="second") + "\n" + make_record(HASH_A, subject="first")
        commits = parse_log(output)
        assert [c.hash for c in commits] == [HASH_B, HASH_A]
        assert [c.subject for c in commits] == ["second", "first"]

    def test_one_malformed_record_fails_the_whole_parse(self):
        """Test a malformed record is fatal even when others are fine."""
        output = make_record() + "garbage" + RECORD_SEPARATOR
        with pytest.raises(MalformedOutputError):
            parse_log(output)


class TestParseSingleCommit:
    """Tests for parse_single_commit."""

    def test_empty_output_returns_none(self):
        """Test no output means no commit."""
        assert parse_single_commit("") is None

    def test_single_record(self):
        """Test one record is returned as a Commit."""
        commit = parse_single_commit(make_record())
        assert commit is not None
        assert commit.hash == HASH_A

    def test_two_records_raise(self):
        """Test a single-record query that printed two records is malformed."""
        with pytest.raises(MalformedOutputError, match="single"):
            parse_single_commit(make_record(HASH_A) + make_record(HASH_B))
