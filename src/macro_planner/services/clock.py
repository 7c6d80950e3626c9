"""Clock abstraction and custom day-boundary bucketing."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo

from macro_planner.domain.preferences import CheatPeriod

_logger = logging.getLogger(__name__)


class Clock(Protocol):
    """Source of the current instant in the user's local time."""

    def now(self) -> datetime:
        """Return the current timezone-aware local datetime."""


def day_bucket(moment: datetime, reset_hour: int, tz: tzinfo | None = None) -> date:
    """Return the day a timestamp belongs to when days start at reset_hour.

    The hour is read in ``tz`` when given, so stored timestamps are bucketed
    the same way as the live clock.
    """
    local = moment.astimezone(tz) if tz is not None else moment
    if local.hour < reset_hour:
        return local.date() - timedelta(days=1)
    return local.date()


def day_key(day: date) -> str:
    """Return the storage key for a day bucket."""
    return day.isoformat()


def parse_day_key(key: str) -> date | None:
    """Parse a day bucket key, returning None when it is malformed."""
    try:
        return date.fromisoformat(key)
    except ValueError:
        _logger.warning("Ignoring malformed day key: %s", key)
        return None


def period_start(today: date, period: CheatPeriod) -> date:
    """Return the first day bucket of the cheat period containing today."""
    if period == CheatPeriod.MONTHLY:
        return today.replace(day=1)
    # Monday is 0; periods start on Sunday.
    days_since_sunday = (today.weekday() + 1) % 7
    return today - timedelta(days=days_since_sunday)


@dataclass
class SystemClock(Clock):
    """Wall clock in a configured timezone with a day offset for testing."""

    timezone_name: str = "UTC"
    offset_days: int = 0
    _tz: ZoneInfo = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._tz = ZoneInfo(self.timezone_name)

    def now(self) -> datetime:
        """Return the shifted current time in the configured timezone."""
        return datetime.now(tz=self._tz) + timedelta(days=self.offset_days)

    def skip_day(self) -> datetime:
        """Move the clock one day forward and return the new time."""
        self.offset_days += 1
        _logger.info("Clock offset moved to %s days", self.offset_days)
        return self.now()

    def reset(self) -> datetime:
        """Return to real time."""
        self.offset_days = 0
        return self.now()
