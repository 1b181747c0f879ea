"""
Fixed-zone date and time arithmetic.

All calendar-date keys and scheduling instants are computed in one
timezone (Pacific Time by default). Instants passed in and returned are
timezone-aware; naive datetimes are interpreted as UTC.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ClockError

DEFAULT_TIMEZONE = "America/Los_Angeles"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


def ensure_utc(instant: datetime) -> datetime:
    """Return `instant` as a UTC-aware datetime."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def to_epoch_ms(instant: datetime) -> int:
    """Convert an instant to integer epoch milliseconds."""
    return (ensure_utc(instant) - _EPOCH) // _ONE_MS


def from_epoch_ms(value: int) -> datetime:
    """Convert epoch milliseconds to a UTC-aware datetime."""
    return _EPOCH + value * _ONE_MS


class Clock:
    """Wall clock bound to a single IANA timezone.

    Args:
        tz_name: IANA timezone name (defaults to America/Los_Angeles)

    Raises:
        ClockError: If the timezone cannot be resolved
    """

    def __init__(self, tz_name: str = DEFAULT_TIMEZONE):
        try:
            self.zone = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ClockError(f"Unable to resolve timezone {tz_name!r}: {e}") from e
        self.tz_name = tz_name

    def now(self) -> datetime:
        """Current instant, UTC-aware."""
        return datetime.now(timezone.utc)

    def local(self, instant: datetime) -> datetime:
        """Convert an instant to wall-clock time in the fixed zone."""
        return ensure_utc(instant).astimezone(self.zone)

    def calendar_date(self, instant: datetime) -> str:
        """Local calendar date of `instant` in the fixed zone (YYYY-MM-DD)."""
        return self.local(instant).date().isoformat()

    def next_daily_run_after(self, instant: datetime, hour: int, minute: int) -> datetime:
        """Next local occurrence of hour:minute strictly after `instant`.

        The UTC offset is resolved for the candidate day itself, so the
        result keeps its wall-clock time across DST transitions. An
        instant exactly at the target time yields the next day's run.

        Args:
            instant: Reference instant
            hour: Local hour (0-23)
            minute: Local minute (0-59)

        Returns:
            UTC-aware datetime of the next run

        Raises:
            ValueError: If hour or minute is out of range
        """
        if not 0 <= hour <= 23:
            raise ValueError("hour must be between 0 and 23")
        if not 0 <= minute <= 59:
            raise ValueError("minute must be between 0 and 59")

        reference = ensure_utc(instant)
        candidate_day = self.local(reference).date()
        target = self._at_wall_clock(candidate_day, hour, minute)
        if target <= reference:
            target = self._at_wall_clock(candidate_day + timedelta(days=1), hour, minute)
        return target

    def _at_wall_clock(self, day: date, hour: int, minute: int) -> datetime:
        local_target = datetime.combine(day, time(hour, minute), tzinfo=self.zone)
        return local_target.astimezone(timezone.utc)


class FixedClock(Clock):
    """Clock frozen at a given instant, for tests and replays."""

    def __init__(self, instant: datetime, tz_name: str = DEFAULT_TIMEZONE):
        super().__init__(tz_name)
        self.instant = ensure_utc(instant)

    def now(self) -> datetime:
        return self.instant

    def advance(self, delta: timedelta) -> None:
        """Move the frozen instant forward by `delta`."""
        self.instant = self.instant + delta
