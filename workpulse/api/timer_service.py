from __future__ import annotations

from datetime import tzinfo
from pathlib import Path
import queue
from threading import Lock
from typing import Any, Callable

from ..aggregation import DEFAULT_DAILY_GOAL_SEC
from ..clock import Clock, RealClock
from ..config import local_timezone
from ..db import WorkPulseDB, default_db_path
from ..timer import ThreadTicker, Ticker, TimerResult, TimerSnapshot, WorkTimer
from ..timesheet import Timesheet


def snapshot_event(snapshot: TimerSnapshot) -> dict[str, Any]:
    return {
        "state": snapshot.state.value,
        "current_time": snapshot.current_time,
        "formatted_current_time": snapshot.formatted_current_time,
        "session_start_time": snapshot.session_start_time,
        "is_day_ended": snapshot.is_day_ended,
    }


class TimerService:
    """One timer and timesheet per process, shared by every request."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._db_path = default_db_path()
        self._tz: tzinfo | None = None
        self._clock: Clock = RealClock()
        self._daily_goal_sec = DEFAULT_DAILY_GOAL_SEC
        self._journal_mode: str | None = None
        self._tick_interval = 1.0
        self._timesheet: Timesheet | None = None
        self._subscribers: list[queue.Queue[dict[str, Any]]] = []

    def configure(
        self,
        db_path: Path,
        tz: tzinfo | None = None,
        clock: Clock | None = None,
        daily_goal_sec: float = DEFAULT_DAILY_GOAL_SEC,
        journal_mode: str | None = None,
        tick_interval: float = 1.0,
    ) -> None:
        with self._lock:
            self._shutdown_locked()
            self._db_path = Path(db_path)
            self._tz = tz
            self._clock = clock or RealClock()
            self._daily_goal_sec = daily_goal_sec
            self._journal_mode = journal_mode
            self._tick_interval = tick_interval

    @property
    def tz(self) -> tzinfo:
        return self._tz or local_timezone()

    @property
    def clock(self) -> Clock:
        return self._clock

    def timesheet(self) -> Timesheet:
        with self._lock:
            if self._timesheet is None:
                db = WorkPulseDB(self._db_path, journal_mode=self._journal_mode)
                timer = WorkTimer(
                    repository=db,
                    day_store=db,
                    clock=self._clock,
                    tz=self.tz,
                    ticker_factory=self._make_ticker,
                )
                self._timesheet = Timesheet(db, timer, self._clock, self.tz, daily_goal_sec=self._daily_goal_sec)
            return self._timesheet

    def state(self) -> TimerSnapshot:
        return self.timesheet().timer.snapshot()

    def start(self) -> TimerResult:
        return self._command(lambda timer: timer.start())

    def stop(self) -> TimerResult:
        return self._command(lambda timer: timer.stop())

    def end_day(self) -> TimerResult:
        return self._command(lambda timer: timer.end_day())

    def resume_day(self) -> TimerResult:
        return self._command(lambda timer: timer.resume_day())

    def shutdown(self) -> None:
        with self._lock:
            self._shutdown_locked()

    def subscribe(self) -> queue.Queue[dict[str, Any]]:
        q: queue.Queue[dict[str, Any]] = queue.Queue(maxsize=200)
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue[dict[str, Any]]) -> None:
        with self._lock:
            self._subscribers = [item for item in self._subscribers if item is not q]

    def _command(self, action: Callable[[WorkTimer], TimerResult]) -> TimerResult:
        timer = self.timesheet().timer
        result = action(timer)
        if result.applied:
            self._broadcast({"event": result.command, **snapshot_event(timer.snapshot())})
        return result

    def _make_ticker(self, callback: Callable[[], None]) -> Ticker:
        def on_tick() -> None:
            callback()
            timesheet = self._timesheet
            if timesheet is not None and timesheet.timer.is_running:
                self._broadcast({"event": "tick", **snapshot_event(timesheet.timer.snapshot())})

        return ThreadTicker(on_tick, interval=self._tick_interval)

    def _broadcast(self, event: dict[str, Any]) -> None:
        with self._lock:
            alive: list[queue.Queue[dict[str, Any]]] = []
            for q in self._subscribers:
                try:
                    q.put_nowait(event)
                    alive.append(q)
                except queue.Full:
                    continue
            self._subscribers = alive

    def _shutdown_locked(self) -> None:
        if self._timesheet is not None:
            self._timesheet.timer.close()
        self._timesheet = None


timer_service = TimerService()
