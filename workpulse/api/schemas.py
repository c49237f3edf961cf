from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from ..aggregation import DaySummary, HistoryWindow
from ..models import Session
from ..timer import TimerResult, TimerSnapshot

ExportFormat = Literal["csv", "md"]


class SessionOut(BaseModel):
    id: str
    start_time: datetime
    end_time: datetime | None = None
    duration_sec: int | None = None
    formatted_duration: str
    is_manual_entry: bool

    @classmethod
    def from_session(cls, session: Session) -> SessionOut:
        return cls(
            id=session.id,
            start_time=session.start_time,
            end_time=session.end_time,
            duration_sec=session.duration_sec,
            formatted_duration=session.formatted_duration,
            is_manual_entry=session.is_manual_entry,
        )


class SessionRangeIn(BaseModel):
    start_time: datetime
    end_time: datetime


class DaySummaryOut(BaseModel):
    day: date
    total_sec: float
    formatted_total: str
    session_count: int
    average_sec: float | None = None
    formatted_average: str | None = None
    last_break_sec: float | None = None
    formatted_last_break: str
    daily_goal_progress: float

    @classmethod
    def from_summary(cls, summary: DaySummary) -> DaySummaryOut:
        return cls(
            day=summary.day,
            total_sec=summary.total_sec,
            formatted_total=summary.formatted_total,
            session_count=summary.session_count,
            average_sec=summary.average_sec,
            formatted_average=summary.formatted_average,
            last_break_sec=summary.last_break_sec,
            formatted_last_break=summary.formatted_last_break,
            daily_goal_progress=summary.daily_goal_progress,
        )


class TimerStateOut(BaseModel):
    state: str
    current_time: int
    formatted_current_time: str
    session_start_time: datetime | None = None
    is_day_ended: bool

    @classmethod
    def from_snapshot(cls, snapshot: TimerSnapshot) -> TimerStateOut:
        return cls(
            state=snapshot.state.value,
            current_time=snapshot.current_time,
            formatted_current_time=snapshot.formatted_current_time,
            session_start_time=snapshot.session_start_time,
            is_day_ended=snapshot.is_day_ended,
        )


class TimerCommandOut(BaseModel):
    command: str
    applied: bool
    reason: str = ""
    timer: TimerStateOut
    session: SessionOut | None = None

    @classmethod
    def from_result(cls, result: TimerResult, snapshot: TimerSnapshot) -> TimerCommandOut:
        return cls(
            command=result.command,
            applied=result.applied,
            reason=result.reason,
            timer=TimerStateOut.from_snapshot(snapshot),
            session=SessionOut.from_session(result.session) if result.session is not None else None,
        )


class ExportRequest(BaseModel):
    window: HistoryWindow = HistoryWindow.ALL
    day: date | None = None
    out_dir: str | None = None


class FileResult(BaseModel):
    path: str
    session_count: int = 0


class DeletedOut(BaseModel):
    id: str
    deleted: bool = True


class HealthOut(BaseModel):
    status: str = Field(default="ok")
    timer_state: str


class MetaOut(BaseModel):
    app: str
    version: str
    db_path: str
    timezone: str
    platform: str
