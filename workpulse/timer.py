from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from enum import Enum
from functools import partial
import logging
import threading
from typing import Callable, Protocol

from .clock import Clock
from .days import local_day
from .errors import InvalidStateTransition, PersistenceError
from .formatting import format_hms
from .models import Session
from .repository import DayState, DayStateStore, SessionRepository


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DAY_ENDED = "day_ended"


@dataclass(frozen=True)
class TimerResult:
    command: str
    applied: bool
    state: TimerState
    reason: str = ""
    session: Session | None = None

    def raise_if_ignored(self) -> TimerResult:
        if not self.applied:
            raise InvalidStateTransition(self.command, self.state.value)
        return self


@dataclass(frozen=True)
class TimerSnapshot:
    state: TimerState
    current_time: int
    session_start_time: datetime | None
    is_day_ended: bool

    @property
    def is_running(self) -> bool:
        return self.state is TimerState.RUNNING

    @property
    def formatted_current_time(self) -> str:
        return format_hms(self.current_time)


class Ticker(Protocol):
    def cancel(self) -> None:
        ...


TickerFactory = Callable[[Callable[[], None]], Ticker]
SessionCallback = Callable[[Session], None]


class ThreadTicker:
    """Calls ``callback`` roughly every ``interval`` seconds until cancelled."""

    def __init__(self, callback: Callable[[], None], interval: float = 1.0) -> None:
        self._callback = callback
        self._interval = interval
        self._cancelled = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _run(self) -> None:
        while not self._cancelled.wait(self._interval):
            self._callback()


def thread_ticker_factory(interval: float = 1.0) -> TickerFactory:
    return lambda callback: ThreadTicker(callback, interval=interval)


class WorkTimer:
    def __init__(
        self,
        repository: SessionRepository,
        day_store: DayStateStore,
        clock: Clock,
        tz: tzinfo,
        ticker_factory: TickerFactory | None = None,
        logger: logging.Logger | None = None,
        on_session_saved: SessionCallback | None = None,
    ) -> None:
        self.repository = repository
        self.day_store = day_store
        self.clock = clock
        self.tz = tz
        self.ticker_factory = ticker_factory
        self.logger = logger or logging.getLogger(__name__)
        self.on_session_saved = on_session_saved

        # Guards every mutation; the ticker thread goes through it too.
        self._lock = threading.RLock()
        self._state = TimerState.IDLE
        self._current_time = 0
        self._session_start_time: datetime | None = None
        self._day_ended = False
        self._recorded_day: date | None = None
        self._ticker: Ticker | None = None
        self._run_id = 0

        self.refresh_day()

    @property
    def state(self) -> TimerState:
        with self._lock:
            return self._state

    @property
    def current_time(self) -> int:
        with self._lock:
            return self._current_time

    @property
    def session_start_time(self) -> datetime | None:
        with self._lock:
            return self._session_start_time

    @property
    def is_running(self) -> bool:
        return self.state is TimerState.RUNNING

    @property
    def is_day_ended(self) -> bool:
        with self._lock:
            return self._day_ended

    def snapshot(self) -> TimerSnapshot:
        with self._lock:
            return TimerSnapshot(
                state=self._state,
                current_time=self._current_time,
                session_start_time=self._session_start_time,
                is_day_ended=self._day_ended,
            )

    def refresh_day(self) -> bool:
        """Reconcile the persisted day-ended flag with today's date.

        Returns True when a flag left over from an earlier day was cleared.
        """
        with self._lock:
            today = local_day(self.clock.now(), self.tz)
            stored = self.day_store.load_day_state()
            day_ended = stored.day_ended
            reset = False
            if day_ended and stored.last_recorded_day is not None and stored.last_recorded_day != today:
                day_ended = False
                reset = True
                self.logger.info(
                    "Day-ended flag from %s cleared for %s", stored.last_recorded_day, today
                )

            if stored.last_recorded_day != today or stored.day_ended != day_ended:
                self.day_store.save_day_state(DayState(day_ended=day_ended, last_recorded_day=today))

            self._recorded_day = today
            self._day_ended = day_ended
            if self._state is not TimerState.RUNNING:
                self._state = TimerState.DAY_ENDED if day_ended else TimerState.IDLE
            return reset

    def start(self) -> TimerResult:
        with self._lock:
            self._roll_day_if_needed()
            if self._state is not TimerState.IDLE:
                return self._ignore("start")

            self._session_start_time = self._now()
            self._current_time = 0
            self._state = TimerState.RUNNING
            self._run_id += 1
            if self.ticker_factory is not None:
                self._ticker = self.ticker_factory(partial(self._on_ticker, self._run_id))
            self.logger.info("Timer started at %s", self._session_start_time.isoformat())
            return TimerResult("start", True, self._state)

    def tick(self) -> int:
        with self._lock:
            start = self._session_start_time
            if self._state is not TimerState.RUNNING or start is None:
                return self._current_time
            elapsed = int((self.clock.now() - start).total_seconds())
            # Wall-clock delta, so missed ticks never add up to drift.
            self._current_time = max(self._current_time, elapsed)
            return self._current_time

    def stop(self) -> TimerResult:
        with self._lock:
            self._roll_day_if_needed()
            if self._state is not TimerState.RUNNING:
                return self._ignore("stop")
            return self._stop_running("stop")

    def end_day(self) -> TimerResult:
        with self._lock:
            self._roll_day_if_needed()
            if self._state is TimerState.DAY_ENDED:
                return self._ignore("end_day")

            saved: Session | None = None
            if self._state is TimerState.RUNNING:
                saved = self._stop_running("end_day").session

            today = local_day(self.clock.now(), self.tz)
            self.day_store.save_day_state(DayState(day_ended=True, last_recorded_day=today))
            self._recorded_day = today
            self._day_ended = True
            self._state = TimerState.DAY_ENDED
            self.logger.info("Day %s ended", today)
            return TimerResult("end_day", True, self._state, session=saved)

    def resume_day(self) -> TimerResult:
        with self._lock:
            self._roll_day_if_needed()
            if self._state is not TimerState.DAY_ENDED:
                return self._ignore("resume_day")

            today = local_day(self.clock.now(), self.tz)
            self.day_store.save_day_state(DayState(day_ended=False, last_recorded_day=today))
            self._recorded_day = today
            self._day_ended = False
            self._state = TimerState.IDLE
            self.logger.info("Day %s resumed", today)
            return TimerResult("resume_day", True, self._state)

    def close(self) -> None:
        with self._lock:
            self._cancel_ticker()

    def _stop_running(self, command: str) -> TimerResult:
        start = self._session_start_time
        if start is None:
            raise InvalidStateTransition(command, self._state.value)
        end = max(self._now(), start)
        session = Session(start_time=start, end_time=end, is_manual_entry=False)
        try:
            self.repository.insert(session)
        except PersistenceError:
            self.logger.exception("Could not save session started at %s; timer keeps running", start)
            raise

        self._cancel_ticker()
        self._current_time = 0
        self._session_start_time = None
        self._state = TimerState.IDLE
        self.logger.info("Session %s saved (%ss)", session.id, session.duration_sec)
        if self.on_session_saved is not None:
            self.on_session_saved(session)
        return TimerResult(command, True, self._state, session=session)

    def _cancel_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _on_ticker(self, run_id: int) -> None:
        with self._lock:
            if run_id != self._run_id:
                return
            self.tick()

    def _roll_day_if_needed(self) -> None:
        if local_day(self.clock.now(), self.tz) != self._recorded_day:
            self.refresh_day()

    def _ignore(self, command: str) -> TimerResult:
        reason = str(InvalidStateTransition(command, self._state.value))
        self.logger.info("Ignoring %s: timer is %s", command, self._state.value)
        return TimerResult(command, False, self._state, reason=reason)

    def _now(self) -> datetime:
        return self.clock.now().replace(microsecond=0)
