from __future__ import annotations

from datetime import date
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from ...aggregation import HistoryWindow
from ...exporting import SessionReport, build_report, render_csv, report_label, select_sessions, write_csv
from ...reporting import write_markdown
from ...timesheet import Timesheet
from ..deps import get_timesheet
from ..schemas import ExportRequest, FileResult

router = APIRouter(prefix="/api/v1", tags=["export"])


def _build(timesheet: Timesheet, window: HistoryWindow, day: date | None) -> SessionReport:
    sessions = select_sessions(timesheet.all_sessions, window, timesheet.clock.now(), timesheet.tz, day=day)
    return build_report(sessions, report_label(window, day), timesheet.tz)


def _out_dir(request: Request, payload: ExportRequest) -> Path:
    return Path(payload.out_dir) if payload.out_dir else Path(request.app.state.out_dir)


@router.get("/export/csv", response_class=PlainTextResponse)
def csv_text(
    window: HistoryWindow = HistoryWindow.ALL,
    day: date | None = None,
    timesheet: Timesheet = Depends(get_timesheet),
) -> PlainTextResponse:
    report = _build(timesheet, window, day)
    return PlainTextResponse(render_csv(report), media_type="text/csv")


@router.post("/export/csv", response_model=FileResult)
def export_csv(
    payload: ExportRequest,
    request: Request,
    timesheet: Timesheet = Depends(get_timesheet),
) -> FileResult:
    report = _build(timesheet, payload.window, payload.day)
    csv_path = write_csv(report, _out_dir(request, payload))
    return FileResult(path=str(csv_path), session_count=report.session_count)


@router.post("/export/report", response_model=FileResult)
def export_report(
    payload: ExportRequest,
    request: Request,
    timesheet: Timesheet = Depends(get_timesheet),
) -> FileResult:
    report = _build(timesheet, payload.window, payload.day)
    generated_at = timesheet.clock.now().astimezone(timesheet.tz)
    report_path = write_markdown(report, _out_dir(request, payload), generated_at=generated_at)
    return FileResult(path=str(report_path), session_count=report.session_count)
