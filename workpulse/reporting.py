from __future__ import annotations

from datetime import date, datetime, tzinfo
from pathlib import Path
from typing import Iterable

from .aggregation import sessions_for_date, total_duration
from .exporting import SessionReport, export_filename
from .formatting import format_hours_minutes
from .models import Session


def render_markdown(report: SessionReport, generated_at: datetime) -> str:
    lines: list[str] = []
    lines.append("# WorkPulse Session Report")
    lines.append("")
    lines.append(f"- Date: {report.title}")
    lines.append(f"- Total Sessions: {report.session_count}")
    lines.append(f"- Total Time: {report.total_time}")
    lines.append("")

    if report.rows:
        lines.append("| Date | Start Time | End Time | Duration | Type |")
        lines.append("| --- | --- | --- | --- | --- |")
        for row in report.rows:
            lines.append(f"| {row.date} | {row.start_time} | {row.end_time} | {row.duration} | {row.type} |")
    else:
        lines.append("No sessions in this period.")
    lines.append("")

    lines.append(f"_Generated by WorkPulse on {generated_at.strftime('%Y-%m-%d %H:%M:%S')}_")
    lines.append("")
    return "\n".join(lines)


def write_markdown(report: SessionReport, out_dir: Path, generated_at: datetime) -> Path:
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    report_path = out_dir / export_filename(report.title, "md")
    report_path.write_text(render_markdown(report, generated_at), encoding="utf-8")
    return report_path


def day_share_text(sessions: Iterable[Session], day: date, tz: tzinfo) -> str:
    items = sessions_for_date(sessions, day, tz)
    lines = [f"WorkPulse Summary - {day.strftime('%A, %B')} {day.day}", ""]

    if not items:
        lines.append("No work sessions recorded on this day.")
        return "\n".join(lines)

    lines.append(f"Work Sessions ({len(items)}):")
    lines.append(f"Total Work Time: {format_hours_minutes(total_duration(items))}")
    lines.append("")
    for index, item in enumerate(items, start=1):
        start_text = _clock_text(item.start_time, tz)
        end_text = "Ongoing" if item.end_time is None else _clock_text(item.end_time, tz)
        lines.append(f"Session {index}: {start_text} - {end_text}")
        lines.append(f"Duration: {item.formatted_duration}")
        if item.is_manual_entry:
            lines.append("(Manually added)")
        lines.append("")
    return "\n".join(lines).rstrip("\n")


def _clock_text(moment: datetime, tz: tzinfo) -> str:
    local = moment.astimezone(tz)
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d} {suffix}"
