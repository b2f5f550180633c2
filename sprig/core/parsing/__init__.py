"""Output parsers turning raw git output into domain records.

All functions here are pure: no I/O, MalformedOutputError on malformed input.
"""

from sprig.core.parsing.diff_parser import is_hunk_header, parse_file_diff
from sprig.core.parsing.listing_parser import (
    BranchLine,
    parse_branch_listing,
    parse_count,
    parse_path_list,
    parse_tag_listing,
    parse_tree_listing,
    parse_unmerged_paths,
)
from sprig.core.parsing.log_parser import (
    log_format_argument,
    parse_log,
    parse_single_commit,
)

__all__ = [
    "BranchLine",
    "is_hunk_header",
    "log_format_argument",
    "parse_branch_listing",
    "parse_count",
    "parse_file_diff",
    "parse_log",
    "parse_path_list",
    "parse_single_commit",
    "parse_tag_listing",
    "parse_tree_listing",
    "parse_unmerged_paths",
]
