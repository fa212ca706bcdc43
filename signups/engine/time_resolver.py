"""Resolve a partial time specification to a future UTC instant.

Users only give an hour (and optionally a day of the month). The slot is
built in the current UTC month and, when that lands at or before now,
rolled over to the same day and hour next month so every booking is in
the future.

Days that do not exist in the target month (31 in April, 30 in February)
are clamped to the month's last day.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timezone
from typing import Optional


class TimeSpecError(ValueError):
    """The hour/day pair cannot describe a slot."""


class InvalidHour(TimeSpecError):
    def __init__(self, hour: int) -> None:
        super().__init__(f"hour must be between 0 and 23, got {hour}")
        self.hour = hour


class InvalidDay(TimeSpecError):
    def __init__(self, day: int) -> None:
        super().__init__(f"day must be between 1 and 31, got {day}")
        self.day = day


def _at(year: int, month: int, day: int, hour: int) -> datetime:
    last_day = calendar.monthrange(year, month)[1]
    return datetime(year, month, min(day, last_day), hour, tzinfo=timezone.utc)


def _next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def resolve_instant(
    hour: int, day: Optional[int] = None, now: Optional[datetime] = None
) -> datetime:
    """Return the next UTC instant at ``hour`` (on ``day``, if given).

    Args:
        hour: Hour of day, 0-23.
        day: Day of month, 1-31. Defaults to today's day.
        now: Reference instant; defaults to the current time.

    Raises:
        InvalidHour: ``hour`` is outside 0-23.
        InvalidDay: ``day`` is outside 1-31.
    """
    if not 0 <= hour <= 23:
        raise InvalidHour(hour)
    if day is not None and not 1 <= day <= 31:
        raise InvalidDay(day)

    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)

    target_day = day if day is not None else now.day
    candidate = _at(now.year, now.month, target_day, hour)

    if candidate <= now:
        year, month = _next_month(now.year, now.month)
        candidate = _at(year, month, target_day, hour)

    return candidate
