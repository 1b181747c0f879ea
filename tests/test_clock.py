"""
Unit tests for fixed-zone clock arithmetic.

Tests calendar date keys and next-run scheduling across DST transitions.
"""

from datetime import datetime, timedelta, timezone

import pytest

from daily_wrapped.core.clock import (
    Clock,
    FixedClock,
    ensure_utc,
    from_epoch_ms,
    to_epoch_ms,
)
from daily_wrapped.core.errors import ClockError


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestCalendarDate:
    """Test Pacific Time calendar date keys."""

    def setup_method(self):
        self.clock = Clock()

    def test_late_evening_pacific_is_previous_utc_day(self):
        """23:59 PDT is already the next day in UTC."""
        assert self.clock.calendar_date(utc(2024, 6, 15, 6, 59)) == "2024-06-14"

    def test_midnight_pacific_starts_new_day(self):
        """00:00 PDT is 07:00 UTC."""
        assert self.clock.calendar_date(utc(2024, 6, 15, 7, 0)) == "2024-06-15"

    def test_winter_offset_is_eight_hours(self):
        """In PST the day boundary is 08:00 UTC."""
        assert self.clock.calendar_date(utc(2024, 1, 15, 7, 59)) == "2024-01-14"
        assert self.clock.calendar_date(utc(2024, 1, 15, 8, 0)) == "2024-01-15"

    def test_format_is_zero_padded(self):
        """Dates use YYYY-MM-DD."""
        assert self.clock.calendar_date(utc(2024, 3, 5, 20, 0)) == "2024-03-05"

    def test_naive_instant_treated_as_utc(self):
        """Naive datetimes are interpreted as UTC."""
        assert self.clock.calendar_date(datetime(2024, 6, 15, 6, 59)) == "2024-06-14"


class TestNextDailyRun:
    """Test next 09:30 local run computation."""

    def setup_method(self):
        self.clock = Clock()

    def test_before_target_returns_same_day(self):
        """09:00 PDT returns 09:30 the same day."""
        result = self.clock.next_daily_run_after(utc(2024, 6, 15, 16, 0), 9, 30)
        assert result == utc(2024, 6, 15, 16, 30)

    def test_exactly_at_target_returns_next_day(self):
        """The boundary is exclusive."""
        result = self.clock.next_daily_run_after(utc(2024, 6, 15, 16, 30), 9, 30)
        assert result == utc(2024, 6, 16, 16, 30)

    def test_after_target_returns_next_day(self):
        """09:31 PDT returns 09:30 the next day."""
        result = self.clock.next_daily_run_after(utc(2024, 6, 15, 16, 31), 9, 30)
        assert result == utc(2024, 6, 16, 16, 30)

    def test_result_is_utc_aware(self):
        """Returned instants carry UTC tzinfo."""
        result = self.clock.next_daily_run_after(utc(2024, 6, 15, 16, 0), 9, 30)
        assert result.tzinfo is not None
        assert result.utcoffset() == timedelta(0)

    def test_spring_forward_uses_target_day_offset(self):
        """Saturday 10:00 PST schedules Sunday 09:30 PDT, not 10:30 PDT."""
        # DST starts 2024-03-10 at 02:00 local
        result = self.clock.next_daily_run_after(utc(2024, 3, 9, 18, 0), 9, 30)
        assert result == utc(2024, 3, 10, 16, 30)
        local = self.clock.local(result)
        assert (local.hour, local.minute) == (9, 30)

    def test_fall_back_uses_target_day_offset(self):
        """Saturday 10:00 PDT schedules Sunday 09:30 PST."""
        # DST ends 2024-11-03 at 02:00 local
        result = self.clock.next_daily_run_after(utc(2024, 11, 2, 17, 0), 9, 30)
        assert result == utc(2024, 11, 3, 17, 30)
        local = self.clock.local(result)
        assert (local.hour, local.minute) == (9, 30)

    def test_transition_day_itself(self):
        """Early on the transition day, the run is later that same day."""
        # 01:00 PST on 2024-03-10
        result = self.clock.next_daily_run_after(utc(2024, 3, 10, 9, 0), 9, 30)
        assert result == utc(2024, 3, 10, 16, 30)

    def test_wall_clock_stable_for_a_year(self):
        """Every run across a year lands on 09:30 local."""
        instant = utc(2024, 1, 1, 0, 0)
        for _ in range(366):
            instant = self.clock.next_daily_run_after(instant, 9, 30)
            local = self.clock.local(instant)
            assert (local.hour, local.minute) == (9, 30)

    def test_consecutive_runs_are_one_local_day_apart(self):
        """Chaining runs advances one calendar day at a time."""
        first = self.clock.next_daily_run_after(utc(2024, 3, 8, 0, 0), 9, 30)
        second = self.clock.next_daily_run_after(first, 9, 30)
        third = self.clock.next_daily_run_after(second, 9, 30)
        assert self.clock.calendar_date(first) == "2024-03-08"
        assert self.clock.calendar_date(second) == "2024-03-09"
        assert self.clock.calendar_date(third) == "2024-03-10"
        # The spring-forward day is only 23 hours long
        assert third - second == timedelta(hours=23)

    def test_invalid_hour_raises_error(self):
        """Hours outside 0-23 are rejected."""
        with pytest.raises(ValueError, match="hour"):
            self.clock.next_daily_run_after(utc(2024, 6, 15), 24, 0)

    def test_invalid_minute_raises_error(self):
        """Minutes outside 0-59 are rejected."""
        with pytest.raises(ValueError, match="minute"):
            self.clock.next_daily_run_after(utc(2024, 6, 15), 9, 60)


class TestClockConstruction:
    """Test timezone resolution and fixed clocks."""

    def test_unknown_timezone_fails_loudly(self):
        """An unresolvable zone raises instead of defaulting to UTC."""
        with pytest.raises(ClockError, match="Not/AZone"):
            Clock("Not/AZone")

    def test_empty_timezone_fails_loudly(self):
        """An empty zone name raises ClockError."""
        with pytest.raises(ClockError):
            Clock("")

    def test_default_zone_is_pacific(self):
        """The default zone is America/Los_Angeles."""
        assert Clock().tz_name == "America/Los_Angeles"

    def test_fixed_clock_returns_frozen_instant(self):
        """FixedClock.now() is stable until advanced."""
        clock = FixedClock(utc(2024, 6, 15, 12, 0))
        assert clock.now() == utc(2024, 6, 15, 12, 0)
        assert clock.now() == clock.now()
        clock.advance(timedelta(hours=1))
        assert clock.now() == utc(2024, 6, 15, 13, 0)

    def test_real_clock_now_is_utc_aware(self):
        """Clock.now() is timezone-aware."""
        assert Clock().now().tzinfo is not None


class TestEpochConversion:
    """Test epoch millisecond helpers."""

    def test_epoch_origin(self):
        """The epoch maps to 0."""
        assert to_epoch_ms(utc(1970, 1, 1)) == 0
        assert from_epoch_ms(0) == utc(1970, 1, 1)

    def test_milliseconds_are_exact(self):
        """Conversions are exact at millisecond precision."""
        instant = utc(2024, 6, 15, 12, 0, 0, 123000)
        assert from_epoch_ms(to_epoch_ms(instant)) == instant

    def test_sub_millisecond_truncated(self):
        """Microseconds below a millisecond are dropped."""
        assert to_epoch_ms(utc(1970, 1, 1, 0, 0, 1, 999)) == 1000

    def test_ensure_utc_converts_offsets(self):
        """Aware datetimes in other zones are converted to UTC."""
        plus_two = timezone(timedelta(hours=2))
        assert ensure_utc(datetime(2024, 1, 1, 12, 0, tzinfo=plus_two)) == utc(2024, 1, 1, 10, 0)
