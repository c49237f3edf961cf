from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends

from ...aggregation import HistoryWindow
from ...exporting import select_sessions
from ...timesheet import Timesheet
from ..deps import get_timesheet, localize
from ..schemas import DeletedOut, SessionOut, SessionRangeIn

router = APIRouter(prefix="/api/v1", tags=["sessions"])


@router.get("/sessions", response_model=list[SessionOut])
def list_sessions(
    window: HistoryWindow = HistoryWindow.ALL,
    day: date | None = None,
    timesheet: Timesheet = Depends(get_timesheet),
) -> list[SessionOut]:
    items = select_sessions(
        timesheet.all_sessions,
        window,
        timesheet.clock.now(),
        timesheet.tz,
        day=day,
    )
    return [SessionOut.from_session(item) for item in items]


@router.get("/sessions/{session_id}", response_model=SessionOut)
def get_session(session_id: str, timesheet: Timesheet = Depends(get_timesheet)) -> SessionOut:
    return SessionOut.from_session(timesheet.get_session(session_id))


@router.post("/sessions", response_model=SessionOut, status_code=201)
def add_manual_session(payload: SessionRangeIn, timesheet: Timesheet = Depends(get_timesheet)) -> SessionOut:
    session = timesheet.add_manual_session(
        localize(payload.start_time, timesheet.tz),
        localize(payload.end_time, timesheet.tz),
    )
    return SessionOut.from_session(session)


@router.put("/sessions/{session_id}", response_model=SessionOut)
def edit_session(
    session_id: str,
    payload: SessionRangeIn,
    timesheet: Timesheet = Depends(get_timesheet),
) -> SessionOut:
    session = timesheet.edit_session(
        session_id,
        localize(payload.start_time, timesheet.tz),
        localize(payload.end_time, timesheet.tz),
    )
    return SessionOut.from_session(session)


@router.delete("/sessions/{session_id}", response_model=DeletedOut)
def delete_session(session_id: str, timesheet: Timesheet = Depends(get_timesheet)) -> DeletedOut:
    timesheet.delete_session(session_id)
    return DeletedOut(id=session_id)
