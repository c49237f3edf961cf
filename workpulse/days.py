"""Calendar-day convention shared by the timer and the aggregates.

A day starts at local midnight in the configured timezone and the range is
half-open: ``[day_start, next_day_start)``.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo


def local_day(moment: datetime, tz: tzinfo) -> date:
    return moment.astimezone(tz).date()


def day_start(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def day_bounds(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    return day_start(day, tz), day_start(day + timedelta(days=1), tz)


def starts_on(moment: datetime, day: date, tz: tzinfo) -> bool:
    start, end = day_bounds(day, tz)
    return start <= moment < end


def week_window_start(now: datetime, tz: tzinfo) -> datetime:
    """Earliest day start still counted as "this week" (the last 7 days)."""
    return now.astimezone(tz) - timedelta(days=7)


def parse_day(text: str) -> date:
    return date.fromisoformat(text.strip())
