"""Resolve edited timestamp tokens into concrete commit dates."""

import datetime
import logging
from dataclasses import dataclass
from enum import Enum

from .errors import MissingPredecessorError, ResolveError, RetimeInputError, TokenSyntaxError
from .timestamp import (
    contains_rr,
    expand_timestamp_rr,
    local_delta,
    parse_local,
    parse_shift,
    split_trailing_shift,
)

logger = logging.getLogger(__name__)

NOW_KEYWORD = "NOW"
PREV_KEYWORD = "PREV"


class TokenKind(str, Enum):
    """Interpretation of a timestamp token."""

    UNCHANGED = "unchanged"
    NOW = "now"
    PREV = "prev"
    SHIFT = "shift"
    ABSOLUTE = "absolute"


@dataclass(frozen=True)
class EditToken:
    """A classified timestamp token."""

    kind: TokenKind
    raw: str
    timestamp: str = ""  # ABSOLUTE only, may still contain RR markers
    shift: str = ""


def parse_token(raw: str) -> EditToken:
    """
    Classify a raw token.

    Priority: empty, NOW, PREV [shift], bare shift, absolute [shift].
    Shift syntax is validated later, when the token is resolved.
    """
    raw = raw.strip()
    if not raw:
        return EditToken(TokenKind.UNCHANGED, raw)

    upper = raw.upper()
    if upper == NOW_KEYWORD:
        return EditToken(TokenKind.NOW, raw)

    head, shift = split_trailing_shift(raw)
    if upper.split(" ", 1)[0] == PREV_KEYWORD:
        if head.upper() != PREV_KEYWORD:
            raise TokenSyntaxError(f"expected 'PREV' or 'PREV <shift>', got {raw!r}")
        return EditToken(TokenKind.PREV, raw, shift=shift)

    if not head:
        return EditToken(TokenKind.SHIFT, raw, shift=shift)

    return EditToken(TokenKind.ABSOLUTE, raw, timestamp=head, shift=shift)


@dataclass
class ResolvedCommit:
    """One commit with its original data, edited tokens and resolved dates."""

    hash: str
    short_hash: str
    orig_author_date: datetime.datetime
    orig_commit_date: datetime.datetime
    subject: str
    body: str = ""

    # Raw timestamp columns from the todo file (edited_raw2: split-dates only)
    edited_raw: str = ""
    edited_raw2: str = ""
    new_subject: str = ""

    resolved_author_date: datetime.datetime | None = None
    resolved_commit_date: datetime.datetime | None = None

    @property
    def subject_changed(self) -> bool:
        return bool(self.new_subject) and self.new_subject != self.subject


def _shifted(base: datetime.datetime, shift: str) -> datetime.datetime:
    return base + parse_shift(shift) if shift else base


def resolve_token(
    token: EditToken,
    original: datetime.datetime,
    now: datetime.datetime,
    prev_original: datetime.datetime | None = None,
    prev_resolved: datetime.datetime | None = None,
) -> datetime.datetime:
    """
    Resolve a single token against its commit's original date.

    Args:
        token: Classified token
        original: The commit's true original date for this column
        now: The "now" captured once for the whole batch
        prev_original: Original date of the previous commit (same column)
        prev_resolved: Resolved author date of the previous commit
    """
    if token.kind is TokenKind.UNCHANGED:
        return original

    if token.kind is TokenKind.NOW:
        return now

    if token.kind is TokenKind.PREV:
        if prev_original is None:
            raise MissingPredecessorError("PREV on the first commit: no previous commit to refer to")
        return _shifted(prev_original, token.shift)

    if token.kind is TokenKind.SHIFT:
        if prev_resolved is None:
            raise MissingPredecessorError("bare shift on the first commit: no previous commit to shift from")
        return _shifted(prev_resolved, token.shift)

    timestamp = token.timestamp
    if contains_rr(timestamp):
        timestamp = expand_timestamp_rr(timestamp)

    desired = _shifted(parse_local(timestamp), token.shift)

    # Move the original by the wall-clock delta so its own offset survives.
    return original + local_delta(original, desired)


def resolve_all(
    commits: list[ResolvedCommit],
    now: datetime.datetime,
    split_dates: bool = False,
) -> list[ResolvedCommit]:
    """
    Fill in resolved dates for every commit, oldest first.

    PREV refers to the previous commit's original date; a bare shift chains
    from the previous commit's resolved author date. The first failing token
    aborts the pass and is raised as ResolveError.
    """
    prev: ResolvedCommit | None = None

    for commit in commits:
        commit.resolved_author_date = _resolve_column(
            commit, "author date", commit.edited_raw, commit.orig_author_date,
            prev.orig_author_date if prev else None, prev, now,
        )

        if split_dates:
            commit.resolved_commit_date = _resolve_column(
                commit, "committer date", commit.edited_raw2, commit.orig_commit_date,
                prev.orig_commit_date if prev else None, prev, now,
            )
        else:
            commit.resolved_commit_date = commit.resolved_author_date

        logger.debug(
            f"resolved {commit.short_hash}: author={commit.resolved_author_date.isoformat()} "
            f"committer={commit.resolved_commit_date.isoformat()}"
        )
        prev = commit

    return commits


def _resolve_column(
    commit: ResolvedCommit,
    column: str,
    raw: str,
    original: datetime.datetime,
    prev_original: datetime.datetime | None,
    prev: ResolvedCommit | None,
    now: datetime.datetime,
) -> datetime.datetime:
    try:
        token = parse_token(raw)
        return resolve_token(
            token, original, now,
            prev_original=prev_original,
            prev_resolved=prev.resolved_author_date if prev else None,
        )
    except RetimeInputError as e:
        raise ResolveError(commit.short_hash, column, e) from e
