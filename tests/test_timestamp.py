"""Tests for shift parsing, RR randomization and local-time formatting."""

import datetime

import pytest

from git_retime.errors import RandomFieldError, ShiftSyntaxError, TimestampFormatError
from git_retime.timestamp import (
    contains_rr,
    contains_shift,
    expand_timestamp_rr,
    format_git,
    format_local,
    local_delta,
    parse_git,
    parse_local,
    parse_shift,
    resolve_rr,
    split_trailing_shift,
)

IST = datetime.timezone(datetime.timedelta(hours=5, minutes=30))


class TestParseShift:
    @pytest.mark.parametrize(
        "expr,expected",
        [
            ("+2h", datetime.timedelta(hours=2)),
            ("-30m", datetime.timedelta(minutes=-30)),
            ("+1d", datetime.timedelta(days=1)),
            ("+1w", datetime.timedelta(weeks=1)),
            ("+45s", datetime.timedelta(seconds=45)),
            ("+0h", datetime.timedelta()),
        ],
    )
    def test_single_unit(self, expr, expected):
        assert parse_shift(expr) == expected

    def test_compound(self):
        assert parse_shift("+1d2h30m") == datetime.timedelta(hours=26, minutes=30)

    def test_compound_negative_applies_sign_to_all(self):
        expected = -datetime.timedelta(weeks=1, days=2, hours=3, minutes=4, seconds=5)
        assert parse_shift("-1w2d3h4m5s") == expected

    def test_repeated_units_accumulate(self):
        assert parse_shift("+1h1h") == datetime.timedelta(hours=2)

    @pytest.mark.parametrize(
        "expr,message",
        [
            ("", "empty"),
            ("2h", "must start with"),
            ("+", "no value"),
            ("+2x", "unknown unit"),
            ("+h", "expected number"),
            ("+-2h", "expected number"),
            ("+2", "missing unit"),
            ("+1d2", "missing unit"),
        ],
    )
    def test_errors(self, expr, message):
        with pytest.raises(ShiftSyntaxError, match=message):
            parse_shift(expr)

    def test_shift_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_shift("nope")


class TestContainsShift:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("+2h", True),
            ("-30m", True),
            ("+1d2h30m", True),
            ("PREV", False),
            ("NOW", False),
            ("+", False),
            ("", False),
            ("2h", False),
        ],
    )
    def test_contains_shift(self, text, expected):
        assert contains_shift(text) is expected


class TestSplitTrailingShift:
    def test_timestamp_with_shift(self):
        assert split_trailing_shift("2026-02-23 10:00:00 +2h") == ("2026-02-23 10:00:00", "+2h")

    def test_bare_shift(self):
        assert split_trailing_shift("+30m") == ("", "+30m")

    def test_timestamp_without_shift(self):
        assert split_trailing_shift("2026-02-23 10:00:00") == ("2026-02-23 10:00:00", "")

    def test_prev_with_shift(self):
        assert split_trailing_shift("PREV -1d") == ("PREV", "-1d")


class TestResolveRR:
    def test_bare_rr_uses_natural_ranges(self):
        for _ in range(50):
            hour, minute, second = (int(p) for p in resolve_rr("RR:RR:RR").split(":"))
            assert 0 <= hour <= 23
            assert 0 <= minute <= 59
            assert 0 <= second <= 59

    def test_bounded_rr(self):
        for _ in range(50):
            hour, minute, second = resolve_rr("RR(09,17):RR(00,30):00").split(":")
            assert 9 <= int(hour) <= 17
            assert 0 <= int(minute) <= 30
            assert second == "00"

    def test_values_are_zero_padded(self):
        for _ in range(50):
            result = resolve_rr("RR(08,17):00:00")
            hour = result.split(":")[0]
            assert len(hour) == 2
            assert "08" <= hour <= "17"

    def test_no_rr_passes_through(self):
        assert resolve_rr("14:30:00") == "14:30:00"

    def test_fixed_bounds(self):
        assert resolve_rr("RR(05,05):RR(07,07):RR(09,09)") == "05:07:09"

    def test_wrong_field_count(self):
        with pytest.raises(RandomFieldError, match="HH:MM:SS"):
            resolve_rr("14:30")

    def test_min_greater_than_max(self):
        with pytest.raises(RandomFieldError, match="min"):
            resolve_rr("RR(20,10):00:00")

    def test_non_integer_bounds(self):
        with pytest.raises(RandomFieldError, match="integers"):
            resolve_rr("RR(a,b):00:00")

    def test_single_bound(self):
        with pytest.raises(RandomFieldError):
            resolve_rr("RR(5):00:00")


class TestContainsRR:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("RR", True),
            ("RR(08,17)", True),
            ("RR:RR:00", True),
            ("14:30:00", False),
            ("PREV", False),
        ],
    )
    def test_contains_rr(self, text, expected):
        assert contains_rr(text) is expected


class TestExpandTimestampRR:
    def test_expands_time_part(self):
        result = expand_timestamp_rr("2026-02-23 RR(10,10):RR(20,20):00")
        assert result == "2026-02-23 10:20:00"

    def test_rejects_rr_in_date(self):
        with pytest.raises(RandomFieldError, match="date"):
            expand_timestamp_rr("2026-RR-23 10:00:00")

    def test_requires_date_part(self):
        with pytest.raises(RandomFieldError, match="YYYY-MM-DD"):
            expand_timestamp_rr("RR:RR:00")


class TestLocalTime:
    def test_round_trip(self):
        text = "2026-02-23 10:30:00"
        assert format_local(parse_local(text)) == text

    def test_round_trip_from_instant(self):
        original = datetime.datetime(2026, 2, 23, 10, 30, tzinfo=datetime.timezone.utc)
        formatted = format_local(original)
        assert format_local(parse_local(formatted)) == formatted

    def test_parse_local_is_aware(self):
        assert parse_local("2026-02-23 10:30:00").tzinfo is not None

    @pytest.mark.parametrize(
        "text",
        ["not-a-timestamp", "2026-02-23", "2026-2-3 1:2:3", "2026-02-23T10:00:00", "2026-13-01 10:00:00"],
    )
    def test_parse_local_invalid(self, text):
        with pytest.raises(TimestampFormatError):
            parse_local(text)

    def test_local_delta(self):
        original = datetime.datetime(2026, 2, 23, 10, 0).astimezone()
        desired = parse_local("2026-02-23 12:30:00")
        assert local_delta(original, desired) == datetime.timedelta(hours=2, minutes=30)

    def test_adding_delta_keeps_offset(self):
        original = datetime.datetime(2026, 2, 23, 10, 0, tzinfo=IST)
        result = original + datetime.timedelta(hours=2)
        assert result.hour == 12
        assert result.utcoffset() == datetime.timedelta(hours=5, minutes=30)


class TestGitFormat:
    def test_utc_uses_z(self):
        instant = datetime.datetime(2026, 2, 23, 10, 0, tzinfo=datetime.timezone.utc)
        assert format_git(instant) == "2026-02-23T10:00:00Z"

    def test_offset_preserved(self):
        instant = datetime.datetime(2026, 2, 23, 10, 0, tzinfo=IST)
        assert format_git(instant) == "2026-02-23T10:00:00+05:30"

    def test_parse_git(self):
        parsed = parse_git("2026-02-23T10:00:00+05:30")
        assert parsed == datetime.datetime(2026, 2, 23, 10, 0, tzinfo=IST)
        assert parse_git("2026-02-23T10:00:00Z").utcoffset() == datetime.timedelta(0)
