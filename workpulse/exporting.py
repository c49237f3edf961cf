from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
import io
from pathlib import Path
from typing import Iterable

from .aggregation import HistoryWindow, filter_window, sessions_for_date, total_duration
from .formatting import format_hms
from .models import Session

CSV_HEADER = ["Date", "Start Time", "End Time", "Duration", "Type"]
IN_PROGRESS = "In Progress"


@dataclass(frozen=True)
class ReportRow:
    date: str
    start_time: str
    end_time: str
    duration: str
    type: str

    def as_list(self) -> list[str]:
        return [self.date, self.start_time, self.end_time, self.duration, self.type]


@dataclass(frozen=True)
class SessionReport:
    title: str
    rows: list[ReportRow]
    session_count: int
    total_sec: float

    @property
    def total_time(self) -> str:
        return format_hms(self.total_sec)


def select_sessions(
    sessions: Iterable[Session],
    window: HistoryWindow,
    now: datetime,
    tz: tzinfo,
    day: date | None = None,
) -> list[Session]:
    if day is not None:
        return sessions_for_date(sessions, day, tz)
    return filter_window(sessions, window, now, tz)


def report_label(window: HistoryWindow, day: date | None = None) -> str:
    if day is not None:
        return day.isoformat()
    return "All Sessions" if window is HistoryWindow.ALL else window.title


def build_report(sessions: list[Session], label: str, tz: tzinfo) -> SessionReport:
    rows: list[ReportRow] = []
    for item in sessions:
        start_local = item.start_time.astimezone(tz)
        end_text = IN_PROGRESS if item.end_time is None else item.end_time.astimezone(tz).strftime("%H:%M")
        rows.append(
            ReportRow(
                date=start_local.strftime("%Y-%m-%d"),
                start_time=start_local.strftime("%H:%M"),
                end_time=end_text,
                duration=item.formatted_duration,
                type=item.type_label,
            )
        )

    return SessionReport(
        title=label,
        rows=rows,
        session_count=len(sessions),
        total_sec=total_duration(sessions),
    )


def render_csv(report: SessionReport) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in report.rows:
        writer.writerow(row.as_list())
    return buffer.getvalue()


def export_filename(label: str, extension: str) -> str:
    safe = "_".join(label.split()) or "Sessions"
    return f"WorkPulse_Sessions_{safe}.{extension}"


def write_csv(report: SessionReport, out_dir: Path) -> Path:
    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)
    csv_path = out_path / export_filename(report.title, "csv")
    with csv_path.open("w", encoding="utf-8", newline="") as fp:
        fp.write(render_csv(report))
    return csv_path
