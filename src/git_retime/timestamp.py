"""Shift expressions, RR randomization and local-time formatting."""

import datetime
import logging
import random
import re

from .errors import RandomFieldError, ShiftSyntaxError, TimestampFormatError

logger = logging.getLogger(__name__)

# Layout shown in the todo file (local timezone, no offset)
LOCAL_LAYOUT = "%Y-%m-%d %H:%M:%S"
_LOCAL_RE = re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}")

SHIFT_UNITS: dict[str, datetime.timedelta] = {
    "w": datetime.timedelta(weeks=1),
    "d": datetime.timedelta(days=1),
    "h": datetime.timedelta(hours=1),
    "m": datetime.timedelta(minutes=1),
    "s": datetime.timedelta(seconds=1),
}
_SHIFT_PAIR = re.compile(r"([0-9]*)(\D?)")

RR_PATTERN = re.compile(r"RR(?:\(([^)]*)\))?")

# Natural range of bare RR per field: hour, minute, second
_RR_DEFAULT_RANGES = ((0, 23), (0, 59), (0, 59))


def parse_shift(expr: str) -> datetime.timedelta:
    """
    Parse a compound shift expression into a signed timedelta.

    The expression is a sign followed by one or more number/unit pairs with no
    separators, e.g. "+1d2h30m" or "-45s". Units: w, d, h, m, s.

    Raises:
        ShiftSyntaxError: empty input, missing sign, missing number or unit,
            or unknown unit.
    """
    if not expr:
        raise ShiftSyntaxError("empty shift expression")

    sign = expr[0]
    if sign not in "+-":
        raise ShiftSyntaxError(f"shift must start with + or -: {expr!r}")

    body = expr[1:]
    if not body:
        raise ShiftSyntaxError(f"shift has no value: {expr!r}")

    total = datetime.timedelta()
    pos = 0
    while pos < len(body):
        match = _SHIFT_PAIR.match(body, pos)
        digits, unit = match.groups()
        if not digits:
            raise ShiftSyntaxError(f"expected number in shift {expr!r} at {body[pos:]!r}")
        if not unit:
            raise ShiftSyntaxError(f"missing unit in shift {expr!r}")
        if unit not in SHIFT_UNITS:
            raise ShiftSyntaxError(f"unknown unit {unit!r} in shift {expr!r}")
        total += int(digits) * SHIFT_UNITS[unit]
        pos = match.end()

    return -total if sign == "-" else total


def contains_shift(text: str) -> bool:
    """True if the word looks like a shift (sign followed by a digit)."""
    text = text.strip()
    return len(text) >= 2 and text[0] in "+-" and text[1] in "0123456789"


def split_trailing_shift(text: str) -> tuple[str, str]:
    """
    Separate a trailing shift word from a token.

    "2026-02-23 10:00:00 +2h" -> ("2026-02-23 10:00:00", "+2h")
    "+30m"                    -> ("", "+30m")
    "2026-02-23 10:00:00"     -> ("2026-02-23 10:00:00", "")
    """
    text = text.strip()
    head, _, last = text.rpartition(" ")
    if contains_shift(last):
        return head.strip(), last
    return text, ""


def contains_rr(text: str) -> bool:
    """True if the text contains an RR marker."""
    return RR_PATTERN.search(text) is not None


def _rr_bounds(raw_bounds: str) -> tuple[int, int]:
    parts = raw_bounds.split(",")
    if len(parts) != 2:
        raise RandomFieldError(f"RR bounds must be RR(min,max), got RR({raw_bounds})")
    try:
        lo, hi = (int(p.strip()) for p in parts)
    except ValueError:
        raise RandomFieldError(f"RR bounds must be integers, got RR({raw_bounds})") from None
    return lo, hi


def _resolve_field(field: str, default_range: tuple[int, int]) -> str:
    matches = list(RR_PATTERN.finditer(field))
    if not matches:
        return field
    if len(matches) > 1:
        raise RandomFieldError(f"only one RR marker allowed per field, got {field!r}")

    match = matches[0]
    lo, hi = default_range if match.group(1) is None else _rr_bounds(match.group(1))
    if lo > hi:
        raise RandomFieldError(f"RR min ({lo}) > max ({hi})")

    value = random.randint(lo, hi)
    return f"{field[:match.start()]}{value:02d}{field[match.end():]}"


def resolve_rr(time_text: str) -> str:
    """
    Replace RR markers in an HH:MM:SS string with random two-digit values.

    Bare RR uses the field's natural range (hour 0-23, minute/second 0-59);
    RR(lo,hi) uses the inclusive bounds given.

    Examples:
        "RR:RR:00"        -> "14:37:00"
        "RR(08,17):RR:00" -> "12:45:00"
    """
    fields = time_text.split(":")
    if len(fields) != 3:
        raise RandomFieldError(f"expected HH:MM:SS format, got {time_text!r}")
    return ":".join(
        _resolve_field(field, default_range)
        for field, default_range in zip(fields, _RR_DEFAULT_RANGES)
    )


def expand_timestamp_rr(timestamp: str) -> str:
    """Resolve RR markers in the time part of a 'YYYY-MM-DD HH:MM:SS' string."""
    parts = timestamp.strip().split(" ", 1)
    if len(parts) != 2:
        raise RandomFieldError(f"expected 'YYYY-MM-DD HH:MM:SS' with RR, got {timestamp!r}")

    date_part, time_part = parts
    if contains_rr(date_part):
        raise RandomFieldError(f"RR is not supported in date fields: {date_part!r}")

    expanded = f"{date_part} {resolve_rr(time_part.strip())}"
    logger.debug(f"rr: {timestamp!r} -> {expanded!r}")
    return expanded


def format_local(instant: datetime.datetime) -> str:
    """Render an instant in the local timezone without showing the offset."""
    return instant.astimezone().strftime(LOCAL_LAYOUT)


def parse_local(text: str) -> datetime.datetime:
    """Parse 'YYYY-MM-DD HH:MM:SS' as a wall-clock time in the local timezone."""
    if not _LOCAL_RE.fullmatch(text):
        raise TimestampFormatError(f"invalid timestamp {text!r}: expected YYYY-MM-DD HH:MM:SS")
    try:
        naive = datetime.datetime.strptime(text, LOCAL_LAYOUT)
    except ValueError as e:
        raise TimestampFormatError(f"invalid timestamp {text!r}: {e}") from e
    return naive.astimezone()


def local_delta(original: datetime.datetime, desired_local: datetime.datetime) -> datetime.timedelta:
    """Difference between the displayed local form of original and desired_local."""
    return desired_local - parse_local(format_local(original))


def format_git(instant: datetime.datetime) -> str:
    """RFC 3339 timestamp for GIT_COMMITTER_DATE / --date."""
    text = instant.isoformat(timespec="seconds")
    if text.endswith("+00:00"):
        return text[:-6] + "Z"
    return text


def parse_git(text: str) -> datetime.datetime:
    """Parse a strict ISO 8601 date from git (%aI / %cI)."""
    return datetime.datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
