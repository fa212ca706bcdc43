"""Tests for resolving (hour, day) into a future UTC instant."""

from datetime import datetime, timedelta, timezone

import pytest

from signups.engine.time_resolver import (
    InvalidDay,
    InvalidHour,
    TimeSpecError,
    resolve_instant,
)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


NOW = utc(2025, 1, 1, 12, 0)


class TestHourOnly:
    def test_later_today(self):
        assert resolve_instant(15, now=NOW) == utc(2025, 1, 1, 15)

    def test_earlier_hour_rolls_to_next_month(self):
        assert resolve_instant(10, now=NOW) == utc(2025, 2, 1, 10)

    def test_current_hour_exactly_now_rolls_over(self):
        """Resolving to exactly now is not in the future."""
        assert resolve_instant(12, now=NOW) == utc(2025, 2, 1, 12)

    def test_current_hour_partway_through_rolls_over(self):
        now = utc(2025, 1, 1, 12, 30)
        assert resolve_instant(12, now=now) == utc(2025, 2, 1, 12)

    def test_result_is_truncated_to_the_hour(self):
        now = utc(2025, 1, 1, 8, 17, 42, 123456)
        result = resolve_instant(9, now=now)
        assert (result.minute, result.second, result.microsecond) == (0, 0, 0)

    @pytest.mark.parametrize("now", [
        utc(2025, 1, 1, 0, 0),
        utc(2025, 1, 31, 23, 59, 59),
        utc(2024, 2, 29, 11, 0),
        utc(2025, 12, 31, 22, 15),
        utc(2025, 6, 15, 7, 45, 10),
    ])
    def test_every_hour_resolves_strictly_in_the_future(self, now):
        for hour in range(24):
            result = resolve_instant(hour, now=now)
            assert result > now
            assert result.hour == hour
            assert result.minute == 0 and result.second == 0
            assert result.tzinfo == timezone.utc


class TestWithDay:
    def test_future_day_this_month(self):
        assert resolve_instant(9, 5, now=NOW) == utc(2025, 1, 5, 9)

    def test_past_day_rolls_to_same_day_next_month(self):
        now = utc(2025, 1, 20, 8)
        assert resolve_instant(9, 5, now=now) == utc(2025, 2, 5, 9)

    def test_december_rolls_into_next_year(self):
        now = utc(2025, 12, 20, 8)
        assert resolve_instant(9, 3, now=now) == utc(2026, 1, 3, 9)

    def test_day_beyond_month_end_is_clamped(self):
        now = utc(2025, 4, 10, 8)
        assert resolve_instant(9, 31, now=now) == utc(2025, 4, 30, 9)

    def test_clamp_applies_after_rollover(self):
        now = utc(2025, 1, 31, 13)
        assert resolve_instant(10, now=now) == utc(2025, 2, 28, 10)

    def test_clamp_respects_leap_years(self):
        now = utc(2024, 1, 31, 13)
        assert resolve_instant(10, 31, now=now) == utc(2024, 2, 29, 10)


class TestReferenceTime:
    def test_naive_now_is_treated_as_utc(self):
        assert resolve_instant(15, now=datetime(2025, 1, 1, 12)) == utc(2025, 1, 1, 15)

    def test_aware_now_is_converted_to_utc(self):
        # 23:30 at UTC-5 is 04:30 UTC on the 2nd
        now = datetime(2025, 1, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert resolve_instant(10, now=now) == utc(2025, 1, 2, 10)

    def test_defaults_to_current_time(self):
        before = datetime.now(timezone.utc)
        assert resolve_instant(3) > before


class TestValidation:
    @pytest.mark.parametrize("hour", [24, -1, 100])
    def test_invalid_hour(self, hour):
        with pytest.raises(InvalidHour):
            resolve_instant(hour, now=NOW)

    @pytest.mark.parametrize("day", [0, 32, -3])
    def test_invalid_day(self, day):
        with pytest.raises(InvalidDay):
            resolve_instant(10, day, now=NOW)

    def test_hour_checked_before_day(self):
        with pytest.raises(InvalidHour):
            resolve_instant(24, 0, now=NOW)

    def test_errors_are_value_errors(self):
        assert issubclass(InvalidHour, TimeSpecError)
        assert issubclass(InvalidDay, ValueError)
