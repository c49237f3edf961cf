from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
import uuid

from .errors import InvalidRangeError
from .formatting import format_hms


def new_session_id() -> str:
    return uuid.uuid4().hex


def validate_range(start_time: datetime, end_time: datetime) -> None:
    if end_time <= start_time:
        raise InvalidRangeError(
            f"end time {end_time.isoformat()} must be after start time {start_time.isoformat()}"
        )


@dataclass(frozen=True)
class Session:
    start_time: datetime
    end_time: datetime | None = None
    is_manual_entry: bool = False
    id: str = field(default_factory=new_session_id)

    def __post_init__(self) -> None:
        if self.end_time is not None and self.end_time < self.start_time:
            raise InvalidRangeError(
                f"end time {self.end_time.isoformat()} is before start time {self.start_time.isoformat()}"
            )

    @property
    def duration(self) -> float | None:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def duration_sec(self) -> int | None:
        value = self.duration
        return None if value is None else int(value)

    @property
    def is_completed(self) -> bool:
        return self.end_time is not None

    @property
    def formatted_duration(self) -> str:
        return format_hms(self.duration)

    @property
    def type_label(self) -> str:
        return "Manual" if self.is_manual_entry else "Automatic"

    def with_times(self, start_time: datetime, end_time: datetime | None) -> Session:
        return replace(self, start_time=start_time, end_time=end_time)


def newest_first(sessions: list[Session]) -> list[Session]:
    return sorted(sessions, key=lambda s: s.start_time, reverse=True)
