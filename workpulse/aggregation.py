from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from enum import Enum
from typing import Iterable

from .days import day_start, local_day, starts_on, week_window_start
from .formatting import format_break, format_hm, format_hms
from .models import Session, newest_first

DEFAULT_DAILY_GOAL_SEC = 8 * 3600


class HistoryWindow(str, Enum):
    TODAY = "today"
    WEEK = "week"
    ALL = "all"

    @property
    def title(self) -> str:
        return {"today": "Today", "week": "This Week", "all": "All Time"}[self.value]


@dataclass(frozen=True)
class DaySummary:
    day: date
    total_sec: float
    session_count: int
    average_sec: float | None
    last_break_sec: float | None
    daily_goal_progress: float

    @property
    def formatted_total(self) -> str:
        return format_hms(self.total_sec)

    @property
    def formatted_average(self) -> str | None:
        return None if self.average_sec is None else format_hm(self.average_sec)

    @property
    def formatted_last_break(self) -> str:
        return format_break(self.last_break_sec)


def total_duration(sessions: Iterable[Session]) -> float:
    return sum(s.duration for s in sessions if s.duration is not None)


def sessions_for_date(sessions: Iterable[Session], day: date, tz: tzinfo) -> list[Session]:
    return newest_first([s for s in sessions if starts_on(s.start_time, day, tz)])


def total_for_date(sessions: Iterable[Session], day: date, tz: tzinfo) -> float:
    return total_duration(sessions_for_date(sessions, day, tz))


def has_activity_on(sessions: Iterable[Session], day: date, tz: tzinfo) -> bool:
    return any(starts_on(s.start_time, day, tz) for s in sessions)


def today_total(
    sessions: Iterable[Session],
    now: datetime,
    tz: tzinfo,
    running_elapsed: float = 0,
) -> float:
    return total_for_date(sessions, local_day(now, tz), tz) + max(0, running_elapsed)


def group_by_day(sessions: Iterable[Session], tz: tzinfo) -> dict[date, list[Session]]:
    grouped: dict[date, list[Session]] = {}
    for item in sessions:
        grouped.setdefault(local_day(item.start_time, tz), []).append(item)
    return {day: grouped[day] for day in sorted(grouped, reverse=True)}


def average_session_length(sessions: Iterable[Session]) -> float | None:
    durations = [s.duration for s in sessions if s.duration is not None]
    if not durations:
        return None
    return sum(durations) / len(durations)


def last_break_duration(sessions: Iterable[Session]) -> float | None:
    ordered = newest_first(list(sessions))
    if len(ordered) < 2:
        return None
    latest, previous = ordered[0], ordered[1]
    if latest.end_time is None or previous.end_time is None:
        return None
    return (latest.start_time - previous.end_time).total_seconds()


def filter_window(
    sessions: Iterable[Session],
    window: HistoryWindow,
    now: datetime,
    tz: tzinfo,
) -> list[Session]:
    grouped = group_by_day(sessions, tz)
    if window is HistoryWindow.TODAY:
        today = local_day(now, tz)
        days = [day for day in grouped if day == today]
    elif window is HistoryWindow.WEEK:
        earliest = week_window_start(now, tz)
        days = [day for day in grouped if day_start(day, tz) >= earliest]
    else:
        days = list(grouped)

    selected: list[Session] = []
    for day in days:
        selected.extend(newest_first(grouped[day]))
    return selected


def build_day_summary(
    sessions: Iterable[Session],
    day: date,
    tz: tzinfo,
    running_elapsed: float = 0,
    daily_goal_sec: float = DEFAULT_DAILY_GOAL_SEC,
) -> DaySummary:
    items = sessions_for_date(sessions, day, tz)
    total = total_duration(items) + max(0, running_elapsed)
    progress = min(total / daily_goal_sec, 1.0) if daily_goal_sec > 0 else 0.0
    return DaySummary(
        day=day,
        total_sec=total,
        session_count=len(items),
        average_sec=average_session_length(items),
        last_break_sec=last_break_duration(items),
        daily_goal_progress=progress,
    )
