"""The editable todo file: generation, parsing and structural checks."""

import logging
import re
from dataclasses import dataclass

from .adapter import CommitRecord
from .errors import (
    ColumnCountError,
    DeletedCommitsError,
    ExtraLinesError,
    ReorderedCommitsError,
    StructureError,
)
from .resolver import ResolvedCommit
from .timestamp import format_local

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "#"
ABORT_KEYWORD = "ABORT"
COLUMN_SEPARATOR = "  "

# Columns are separated by runs of two or more spaces
_COLUMN_SPLIT = re.compile(r" {2,}")


@dataclass
class TodoEntry:
    """A single commit line from the edited todo file."""

    short_hash: str
    raw_ts: str
    subject: str
    raw_ts2: str = ""  # committer column, split-dates mode only


HELP_LINES = [
    "Timestamps are displayed in your local timezone.",
    "Edit the timestamp column to change commit dates.",
    "The commit message (last column) is also editable.",
    "",
    "Commands:",
    "  (leave unchanged)          Keep the original timestamp",
    "  2026-02-23 14:00:00        Set an absolute time",
    "  2026-02-23 10:00:00 +2h    Shift from the written time",
    "  +2h, -30m, +1d2h30m        Shift from the previous commit's new time",
    "  PREV, PREV +45m            Previous commit's original time (plus shift)",
    "  NOW                        Current time (identical for all NOW commits)",
    "  RR or RR(08,17)            Randomize a time field (HH:MM:SS only)",
    "    e.g. 2026-02-23 RR(09,17):RR:00",
    "",
    "Units: w=weeks, d=days, h=hours, m=minutes, s=seconds",
    "Compound shifts: +1d2h30m (1 day, 2 hours, 30 minutes)",
    "",
    "To abort: delete all lines or write ABORT on the first line.",
    "Do not delete or reorder lines.",
]


def help_block(split_dates: bool = False) -> str:
    """Commented syntax reference appended to the todo file."""
    if split_dates:
        layout = "Format: <hash>  <author-date>  <committer-date>  <message>"
    else:
        layout = "Format: <hash>  <timestamp>  <message>"

    lines = ["--- Syntax Reference ---", "", layout, "", *HELP_LINES]
    return "".join(f"# {line}\n" if line else "#\n" for line in lines)


def generate(commits: list[CommitRecord], base: str | None, split_dates: bool = False) -> str:
    """Build the todo file for commits (oldest first)."""
    if base:
        header = f"# Retime {len(commits)} commit(s) onto {base[:7]}\n"
    else:
        header = f"# Retime {len(commits)} commit(s) (root)\n"

    lines = [header, "#\n"]
    for commit in commits:
        columns = [commit.short_hash, format_local(commit.author_date)]
        if split_dates:
            columns.append(format_local(commit.commit_date))
        columns.append(commit.subject)
        lines.append(COLUMN_SEPARATOR.join(columns) + "\n")

    lines.append("#\n")
    lines.append(help_block(split_dates))
    return "".join(lines)


def _content_lines(content: str) -> list[str]:
    """Non-blank, non-comment lines, stripped."""
    stripped = (line.strip() for line in content.splitlines())
    return [line for line in stripped if line and not line.startswith(COMMENT_PREFIX)]


def is_abort(content: str) -> bool:
    """True if no commit lines remain or the first one is ABORT."""
    lines = _content_lines(content)
    return not lines or lines[0].upper() == ABORT_KEYWORD


def split_columns(line: str, maxsplit: int = 0) -> list[str]:
    """Split on runs of 2+ spaces; single spaces stay inside a column."""
    return [column for column in _COLUMN_SPLIT.split(line.strip(), maxsplit) if column]


def parse_line(line: str, split_dates: bool = False) -> TodoEntry:
    expected = 4 if split_dates else 3

    # The subject is the raw rest of the line, so its own space runs survive
    columns = split_columns(line, maxsplit=expected - 1)

    if len(columns) < expected - 1:
        raise ColumnCountError(line, expected, len(columns))

    # An empty subject leaves the line ending at the last timestamp column
    subject = columns[expected - 1] if len(columns) == expected else ""
    if split_dates:
        return TodoEntry(columns[0], columns[1], subject, raw_ts2=columns[2])
    return TodoEntry(columns[0], columns[1], subject)


def parse(content: str, split_dates: bool = False) -> list[TodoEntry]:
    """Parse edited todo content, skipping comments and blank lines."""
    entries = [parse_line(line, split_dates) for line in _content_lines(content)]
    logger.debug(f"parsed {len(entries)} todo entries")
    return entries


def validate_structure(entries: list[TodoEntry], originals: list[CommitRecord]) -> None:
    """
    Check that entries carry the original commits in the original order.

    Raises:
        DeletedCommitsError: fewer lines than commits
        ExtraLinesError: more lines than commits
        ReorderedCommitsError: first position where the hashes differ
    """
    if len(entries) < len(originals):
        present = {entry.short_hash for entry in entries}
        raise DeletedCommitsError([c.short_hash for c in originals if c.short_hash not in present])

    if len(entries) > len(originals):
        raise ExtraLinesError(len(originals), len(entries))

    for line_number, (entry, original) in enumerate(zip(entries, originals), start=1):
        if entry.short_hash != original.short_hash:
            raise ReorderedCommitsError(line_number, original.short_hash, entry.short_hash)


def to_commits(
    entries: list[TodoEntry], originals: list[CommitRecord], split_dates: bool = False
) -> list[ResolvedCommit]:
    """Merge parsed entries with their original commits for resolution."""
    if len(entries) != len(originals):
        raise StructureError(
            f"entry count ({len(entries)}) does not match original commit count ({len(originals)})"
        )

    return [
        ResolvedCommit(
            hash=original.hash,
            short_hash=original.short_hash,
            orig_author_date=original.author_date,
            orig_commit_date=original.commit_date,
            subject=original.subject,
            body=original.body,
            edited_raw=entry.raw_ts,
            edited_raw2=entry.raw_ts2 if split_dates else "",
            new_subject=entry.subject,
        )
        for entry, original in zip(entries, originals)
    ]
