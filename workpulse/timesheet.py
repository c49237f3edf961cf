from __future__ import annotations

from datetime import date, datetime, tzinfo
import logging

from . import aggregation
from .aggregation import DEFAULT_DAILY_GOAL_SEC, DaySummary, HistoryWindow
from .clock import Clock
from .days import day_bounds, local_day
from .errors import PersistenceError, SessionNotFoundError
from .models import Session, validate_range
from .repository import SessionRepository
from .timer import WorkTimer


class Timesheet:
    """Session commands plus the cached lists the read models are built from.

    The caches only change after the repository call has returned, so a
    ``PersistenceError`` always leaves them as they were.
    """

    def __init__(
        self,
        repository: SessionRepository,
        timer: WorkTimer,
        clock: Clock,
        tz: tzinfo,
        daily_goal_sec: float = DEFAULT_DAILY_GOAL_SEC,
        logger: logging.Logger | None = None,
    ) -> None:
        self.repository = repository
        self.timer = timer
        self.clock = clock
        self.tz = tz
        self.daily_goal_sec = daily_goal_sec
        self.logger = logger or logging.getLogger(__name__)
        self.today_sessions: list[Session] = []
        self.all_sessions: list[Session] = []
        self.timer.on_session_saved = self._on_timer_session
        self.reload()

    def reload(self) -> None:
        start, end = day_bounds(self.today(), self.tz)
        today_sessions = self.repository.fetch_range(start, end)
        all_sessions = self.repository.fetch_all()
        self.today_sessions = today_sessions
        self.all_sessions = all_sessions

    def today(self) -> date:
        return local_day(self.clock.now(), self.tz)

    def get_session(self, session_id: str) -> Session:
        session = self.repository.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def add_manual_session(self, start_time: datetime, end_time: datetime) -> Session:
        # Storage keeps whole seconds; validate what will actually be stored.
        start_time, end_time = _whole_seconds(start_time), _whole_seconds(end_time)
        validate_range(start_time, end_time)
        session = Session(start_time=start_time, end_time=end_time, is_manual_entry=True)
        self.repository.insert(session)
        self.logger.info("Manual session %s added (%ss)", session.id, session.duration_sec)
        self._refresh_after_write(session.id)
        return session

    def edit_session(self, session_id: str, start_time: datetime, end_time: datetime) -> Session:
        start_time, end_time = _whole_seconds(start_time), _whole_seconds(end_time)
        validate_range(start_time, end_time)
        edited = self.get_session(session_id).with_times(start_time, end_time)
        self.repository.update(edited)
        self.logger.info("Session %s edited (%ss)", edited.id, edited.duration_sec)
        self._refresh_after_write(edited.id)
        return edited

    def delete_session(self, session_id: str) -> None:
        self.repository.delete(session_id)
        self.logger.info("Session %s deleted", session_id)
        self._refresh_after_write(session_id)

    def today_total(self) -> float:
        return aggregation.today_total(
            self.today_sessions,
            self.clock.now(),
            self.tz,
            running_elapsed=self.timer.current_time if self.timer.is_running else 0,
        )

    def grouped_sessions(self) -> dict[date, list[Session]]:
        return aggregation.group_by_day(self.all_sessions, self.tz)

    def sessions_in_window(self, window: HistoryWindow) -> list[Session]:
        return aggregation.filter_window(self.all_sessions, window, self.clock.now(), self.tz)

    def sessions_for_date(self, day: date) -> list[Session]:
        return aggregation.sessions_for_date(self.all_sessions, day, self.tz)

    def total_for_date(self, day: date) -> float:
        return aggregation.total_for_date(self.all_sessions, day, self.tz)

    def has_activity_on(self, day: date) -> bool:
        return aggregation.has_activity_on(self.all_sessions, day, self.tz)

    def average_session_length(self) -> float | None:
        return aggregation.average_session_length(self._current_day_sessions())

    def last_break(self) -> float | None:
        return aggregation.last_break_duration(self._current_day_sessions())

    def _current_day_sessions(self) -> list[Session]:
        # The cache may predate a midnight rollover until the next reload.
        return aggregation.sessions_for_date(self.today_sessions, self.today(), self.tz)

    def summary(self, day: date | None = None) -> DaySummary:
        target = day or self.today()
        running = self.timer.is_running and target == self.today()
        return aggregation.build_day_summary(
            self.all_sessions,
            target,
            self.tz,
            running_elapsed=self.timer.current_time if running else 0,
            daily_goal_sec=self.daily_goal_sec,
        )

    def _on_timer_session(self, session: Session) -> None:
        self._refresh_after_write(session.id)

    def _refresh_after_write(self, session_id: str) -> None:
        try:
            self.reload()
        except PersistenceError:
            # The write itself went through; only the cached lists are stale.
            self.logger.warning("Session %s written but the session list could not be refreshed", session_id)


def _whole_seconds(moment: datetime) -> datetime:
    return moment.replace(microsecond=0)
