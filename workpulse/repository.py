from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol

from .models import Session


@dataclass(frozen=True)
class DayState:
    day_ended: bool = False
    last_recorded_day: date | None = None


class SessionRepository(Protocol):
    """Session storage. Lists come back newest ``start_time`` first.

    Every method may raise ``PersistenceError``.
    """

    def insert(self, session: Session) -> None:
        ...

    def update(self, session: Session) -> None:
        ...

    def delete(self, session_id: str) -> None:
        ...

    def get(self, session_id: str) -> Session | None:
        ...

    def fetch_all(self) -> list[Session]:
        ...

    def fetch_range(self, start: datetime, end: datetime) -> list[Session]:
        ...


class DayStateStore(Protocol):
    def load_day_state(self) -> DayState:
        ...

    def save_day_state(self, state: DayState) -> None:
        ...
