from __future__ import annotations

from dataclasses import dataclass
import sys
from typing import Callable, TextIO

from .clock import Clock
from .models import Session
from .timer import TimerSnapshot, WorkTimer

ProgressCallback = Callable[[str, dict[str, object]], None]


@dataclass(frozen=True)
class RunResult:
    started: bool
    session: Session | None
    ticks: int


class LiveTimerRunner:
    """Drives a ``WorkTimer`` in the foreground until Ctrl-C or ``request_stop``."""

    def __init__(
        self,
        timer: WorkTimer,
        clock: Clock,
        stream: TextIO | None = None,
        tick_seconds: float = 1.0,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self.timer = timer
        self.clock = clock
        self.stream = stream or sys.stdout
        self.tick_seconds = tick_seconds
        self.progress_callback = progress_callback
        self._stop_requested = False

    def request_stop(self) -> None:
        self._stop_requested = True

    def run(self) -> RunResult:
        self._stop_requested = False
        started = self.timer.start()
        if not started.applied:
            self.stream.write(f"Timer not started: {started.reason}\n")
            self.stream.flush()
            return RunResult(started=False, session=None, ticks=0)

        self._emit("run_start", snapshot=self.timer.snapshot())
        ticks = 0
        while not self._stop_requested:
            self._render(self.timer.snapshot())
            try:
                self.clock.sleep(self.tick_seconds)
            except KeyboardInterrupt:
                break
            self.timer.tick()
            ticks += 1
            self._emit("tick", snapshot=self.timer.snapshot())

        self._clear_line()
        stopped = self.timer.stop()
        session = stopped.session
        if session is not None:
            self.stream.write(f"Session saved: {session.formatted_duration}\n")
        self.stream.flush()
        self._emit("run_end", session=session, ticks=ticks)
        return RunResult(started=True, session=session, ticks=ticks)

    def _render(self, snapshot: TimerSnapshot) -> None:
        self.stream.write(f"\rWorking {snapshot.formatted_current_time}")
        self.stream.flush()

    def _clear_line(self) -> None:
        self.stream.write("\r" + (" " * 40) + "\r")
        self.stream.flush()

    def _emit(self, event: str, **payload: object) -> None:
        if self.progress_callback is None:
            return
        self.progress_callback(event, payload)
