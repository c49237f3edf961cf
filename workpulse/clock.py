from __future__ import annotations

from datetime import datetime, timedelta, timezone
import time
from typing import Protocol

DEFAULT_FAKE_START = datetime(2026, 1, 1, tzinfo=timezone.utc)


class Clock(Protocol):
    def now(self) -> datetime:
        ...

    def sleep(self, seconds: float) -> None:
        ...


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


class RealClock:
    """Wall clock; ``now`` is always timezone-aware UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class FakeClock:
    """Hand-driven clock for tests. ``sleep`` moves time forward instantly.

    With ``interrupt_on_sleep_call=n`` the n-th ``sleep`` raises
    ``KeyboardInterrupt`` instead, which is how Ctrl-C reaches a foreground timer.
    """

    def __init__(
        self,
        start: datetime | None = None,
        interrupt_on_sleep_call: int | None = None,
    ) -> None:
        self._moment = _aware(start or DEFAULT_FAKE_START)
        self.interrupt_on_sleep_call = interrupt_on_sleep_call
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self._moment

    def advance(self, seconds: float) -> datetime:
        self._moment += timedelta(seconds=seconds)
        return self._moment

    def set(self, moment: datetime) -> None:
        self._moment = _aware(moment)

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        limit = self.interrupt_on_sleep_call
        if limit is not None and len(self.sleeps) >= limit:
            raise KeyboardInterrupt
        self.advance(max(0.0, seconds))
