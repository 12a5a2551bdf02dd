"""Turn user input into a retime plan: resolved commits plus rebase script."""

import datetime
import logging
import random
import re
from collections import defaultdict
from dataclasses import dataclass, field

from .adapter import CommitRecord
from .compiler import compile_script
from .errors import TokenSyntaxError
from .resolver import ResolvedCommit, resolve_all
from .timestamp import format_local, parse_shift
from .todo import is_abort, parse, to_commits, validate_structure

logger = logging.getLogger(__name__)

_TIME_OF_DAY = re.compile(r"(\d{1,2}):(\d{1,2})")


@dataclass
class RetimePlan:
    """Resolved commits, the compiled rebase script and any paradox warnings."""

    commits: list[ResolvedCommit]
    script: str
    paradoxes: list[str] = field(default_factory=list)


def find_paradoxes(commits: list[ResolvedCommit]) -> list[str]:
    """Warnings for commits whose author date is older than their predecessor's."""
    warnings = []
    for prev, curr in zip(commits, commits[1:]):
        if curr.resolved_author_date < prev.resolved_author_date:
            warnings.append(
                f"{curr.short_hash} ({format_local(curr.resolved_author_date)}) is older than "
                f"{prev.short_hash} ({format_local(prev.resolved_author_date)})"
            )
    return warnings


def build_plan(commits: list[ResolvedCommit]) -> RetimePlan:
    """Compile resolved commits and collect paradox warnings."""
    return RetimePlan(commits=commits, script=compile_script(commits), paradoxes=find_paradoxes(commits))


def plan_from_todo(
    content: str,
    originals: list[CommitRecord],
    now: datetime.datetime,
    split_dates: bool = False,
) -> RetimePlan | None:
    """
    Parse, validate and resolve an edited todo file.

    Returns None when the file asks to abort. Raises RetimeInputError
    subclasses for anything the user can fix by editing again.
    """
    if is_abort(content):
        return None

    entries = parse(content, split_dates)
    validate_structure(entries, originals)
    commits = resolve_all(to_commits(entries, originals, split_dates), now, split_dates)
    return build_plan(commits)


def _unchanged(original: CommitRecord) -> ResolvedCommit:
    return ResolvedCommit(
        hash=original.hash,
        short_hash=original.short_hash,
        orig_author_date=original.author_date,
        orig_commit_date=original.commit_date,
        subject=original.subject,
        body=original.body,
        new_subject=original.subject,
    )


def plan_shift(originals: list[CommitRecord], shift_expr: str) -> RetimePlan:
    """Move every author and committer date by the same shift."""
    shift = parse_shift(shift_expr)

    commits = []
    for original in originals:
        commit = _unchanged(original)
        commit.resolved_author_date = original.author_date + shift
        commit.resolved_commit_date = original.commit_date + shift
        commits.append(commit)

    logger.info(f"shift: {len(commits)} commits by {shift}")
    return build_plan(commits)


def parse_time_of_day(text: str) -> int:
    """Parse 'HH:MM' into seconds since midnight."""
    match = _TIME_OF_DAY.fullmatch(text.strip())
    if not match:
        raise TokenSyntaxError(f"expected HH:MM format, got {text.strip()!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise TokenSyntaxError(f"time out of range: {text.strip()}")
    return hour * 3600 + minute * 60


def parse_time_range(expr: str) -> tuple[int, int]:
    """Parse 'HH:MM-HH:MM' into (start, end) seconds since midnight."""
    parts = expr.split("-", 1)
    if len(parts) != 2:
        raise TokenSyntaxError(f"invalid randomize range: expected HH:MM-HH:MM, got {expr!r}")

    start, end = parse_time_of_day(parts[0]), parse_time_of_day(parts[1])
    if end <= start:
        raise TokenSyntaxError("randomize end time must be after start time")
    return start, end


def randomize_time(original: datetime.datetime, start: int, end: int) -> datetime.datetime:
    """Same calendar date and timezone, random time of day in [start, end)."""
    seconds = start + random.randrange(end - start)
    return original.replace(
        hour=seconds // 3600, minute=seconds % 3600 // 60, second=seconds % 60, microsecond=0
    )


def sort_times_within_days(originals: list[CommitRecord], times: list[datetime.datetime]) -> None:
    """
    Sort times in place among commits that share an original calendar date.

    Commits on different dates stay independent.
    """
    groups: dict[datetime.date, list[int]] = defaultdict(list)
    for index, original in enumerate(originals):
        groups[original.author_date.date()].append(index)

    for indices in groups.values():
        for index, value in zip(indices, sorted(times[i] for i in indices)):
            times[index] = value


def plan_randomize(
    originals: list[CommitRecord], range_expr: str, allow_paradox: bool = False
) -> RetimePlan:
    """Randomize each commit's time of day within range_expr."""
    start, end = parse_time_range(range_expr)

    times = [randomize_time(original.author_date, start, end) for original in originals]
    if not allow_paradox:
        sort_times_within_days(originals, times)

    commits = []
    for original, new_time in zip(originals, times):
        commit = _unchanged(original)
        commit.resolved_author_date = new_time
        commit.resolved_commit_date = new_time
        commits.append(commit)

    logger.info(f"randomize: {len(commits)} commits within {range_expr}")
    return build_plan(commits)
