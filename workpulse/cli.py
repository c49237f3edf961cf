from __future__ import annotations

import argparse
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from pathlib import Path
import sys

from dotenv import load_dotenv

from .aggregation import HistoryWindow
from .clock import Clock, RealClock
from .config import Config, configure_logging, load_config, parse_timezone
from .days import parse_day
from .db import WorkPulseDB
from .errors import InvalidRangeError, PersistenceError, SessionNotFoundError
from .exporting import build_report, report_label, select_sessions, write_csv
from .formatting import format_hms
from .reporting import day_share_text, write_markdown
from .runner import LiveTimerRunner
from .timer import TimerResult, WorkTimer
from .timesheet import Timesheet

EXIT_INVALID = 2
EXIT_STORAGE = 3
EXIT_NOT_FOUND = 4


@dataclass
class AppContext:
    config: Config
    tz: tzinfo
    clock: Clock
    db: WorkPulseDB
    timer: WorkTimer
    timesheet: Timesheet


def parse_moment(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"invalid time: {value}, use YYYY-MM-DD HH:MM[:SS] or an ISO date-time"
        ) from exc


def parse_day_arg(value: str) -> date:
    try:
        return parse_day(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid day: {value}, use YYYY-MM-DD") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workpulse",
        description="WorkPulse: personal work timer, session log and exports",
    )
    parser.add_argument("--db", default=None, help="SQLite database path (default WORKPULSE_DB or workpulse/data/workpulse.sqlite)")
    parser.add_argument("--tz", default=None, help="IANA timezone used for day boundaries (default WORKPULSE_TIMEZONE or local)")
    parser.add_argument("--log-level", default=None, help="logging level (default WORKPULSE_LOG_LEVEL or WARNING)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    start_parser = subparsers.add_parser("start", help="run the timer until Ctrl-C")
    start_parser.add_argument(
        "--tick-seconds",
        type=float,
        default=1.0,
        help="display refresh interval in seconds (>0)",
    )

    add_parser = subparsers.add_parser("add", help="add a manual session")
    add_parser.add_argument("--start", type=parse_moment, required=True, help="start time")
    add_parser.add_argument("--end", type=parse_moment, required=True, help="end time")

    edit_parser = subparsers.add_parser("edit", help="change a session's start and end")
    edit_parser.add_argument("session_id", help="session id")
    edit_parser.add_argument("--start", type=parse_moment, required=True, help="new start time")
    edit_parser.add_argument("--end", type=parse_moment, required=True, help="new end time")

    delete_parser = subparsers.add_parser("delete", help="delete a session")
    delete_parser.add_argument("session_id", help="session id")

    log_parser = subparsers.add_parser("log", help="list sessions grouped by day")
    _add_selection_args(log_parser)

    stats_parser = subparsers.add_parser("stats", help="show totals for a day")
    stats_parser.add_argument("--day", type=parse_day_arg, default=None, help="day (default today)")

    subparsers.add_parser("end-day", help="stop the day; blocks the timer until resumed")
    subparsers.add_parser("resume-day", help="allow the timer again today")

    export_parser = subparsers.add_parser("export", help="export sessions as CSV or a Markdown report")
    _add_selection_args(export_parser)
    export_parser.add_argument("--format", choices=["csv", "md"], default="csv", help="output format")
    export_parser.add_argument("--out-dir", default=None, help="output directory (default WORKPULSE_OUT_DIR or workpulse/out)")

    share_parser = subparsers.add_parser("share", help="print a plain-text summary of a day")
    share_parser.add_argument("--day", type=parse_day_arg, default=None, help="day (default today)")

    serve_parser = subparsers.add_parser("serve", help="run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="bind address")
    serve_parser.add_argument("--port", type=int, default=8765, help="port")

    return parser


def _add_selection_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--window",
        choices=[item.value for item in HistoryWindow],
        default=HistoryWindow.ALL.value,
        help="today, week (last 7 days) or all",
    )
    parser.add_argument("--day", type=parse_day_arg, default=None, help="a single day, overrides --window")


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config()
        tz = parse_timezone(args.tz) if args.tz else config.timezone
    except ValueError as exc:
        parser.error(str(exc))

    configure_logging(args.log_level or config.log_level)
    db_path = Path(args.db) if args.db else config.db_path

    if args.command == "start" and args.tick_seconds <= 0:
        parser.error("--tick-seconds must be greater than 0")
    if args.command == "serve":
        return _handle_serve(args, db_path, tz, config)

    try:
        ctx = _build_context(config, db_path, tz)
        if args.command == "start":
            return _handle_start(args, ctx)
        if args.command == "add":
            return _handle_add(args, ctx)
        if args.command == "edit":
            return _handle_edit(args, ctx)
        if args.command == "delete":
            return _handle_delete(args, ctx)
        if args.command == "log":
            return _handle_log(args, ctx)
        if args.command == "stats":
            return _handle_stats(args, ctx)
        if args.command == "end-day":
            return _report_transition(ctx.timer.end_day())
        if args.command == "resume-day":
            return _report_transition(ctx.timer.resume_day())
        if args.command == "export":
            return _handle_export(args, ctx)
        if args.command == "share":
            return _handle_share(args, ctx)
    except InvalidRangeError as exc:
        print(f"Rejected: {exc}", file=sys.stderr)
        return EXIT_INVALID
    except SessionNotFoundError as exc:
        print(f"Not found: {exc}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return EXIT_STORAGE

    parser.print_help()
    return EXIT_INVALID


def _build_context(config: Config, db_path: Path, tz: tzinfo) -> AppContext:
    clock = RealClock()
    db = WorkPulseDB(db_path, journal_mode=config.journal_mode)
    timer = WorkTimer(repository=db, day_store=db, clock=clock, tz=tz)
    timesheet = Timesheet(db, timer, clock, tz, daily_goal_sec=config.daily_goal_sec)
    return AppContext(config=config, tz=tz, clock=clock, db=db, timer=timer, timesheet=timesheet)


def _localize(value: datetime, tz: tzinfo) -> datetime:
    return value.replace(tzinfo=tz) if value.tzinfo is None else value


def _handle_start(args: argparse.Namespace, ctx: AppContext) -> int:
    runner = LiveTimerRunner(ctx.timer, ctx.clock, tick_seconds=float(args.tick_seconds))
    result = runner.run()
    return 0 if result.started else 1


def _handle_add(args: argparse.Namespace, ctx: AppContext) -> int:
    session = ctx.timesheet.add_manual_session(_localize(args.start, ctx.tz), _localize(args.end, ctx.tz))
    print(f"Session added: {session.id} ({session.formatted_duration})")
    return 0


def _handle_edit(args: argparse.Namespace, ctx: AppContext) -> int:
    session = ctx.timesheet.edit_session(
        args.session_id,
        _localize(args.start, ctx.tz),
        _localize(args.end, ctx.tz),
    )
    print(f"Session updated: {session.id} ({session.formatted_duration})")
    return 0


def _handle_delete(args: argparse.Namespace, ctx: AppContext) -> int:
    ctx.timesheet.delete_session(args.session_id)
    print(f"Session deleted: {args.session_id}")
    return 0


def _handle_log(args: argparse.Namespace, ctx: AppContext) -> int:
    sessions = select_sessions(
        ctx.timesheet.all_sessions,
        HistoryWindow(args.window),
        ctx.clock.now(),
        ctx.tz,
        day=args.day,
    )
    if not sessions:
        print("No matching sessions.")
        return 0

    report = build_report(sessions, report_label(HistoryWindow(args.window), args.day), ctx.tz)
    current_day = ""
    for session, row in zip(sessions, report.rows):
        if row.date != current_day:
            current_day = row.date
            day_total = ctx.timesheet.total_for_date(parse_day(row.date))
            print(f"[{row.date}] total {format_hms(day_total)}")
        print(f"  {row.start_time} - {row.end_time} | {row.duration} | {row.type} | {session.id}")
    return 0


def _handle_stats(args: argparse.Namespace, ctx: AppContext) -> int:
    summary = ctx.timesheet.summary(args.day)
    print(f"[{summary.day.isoformat()}]")
    print(f"Total time: {summary.formatted_total}")
    print(f"Sessions: {summary.session_count}")
    print(f"Average session: {summary.formatted_average or '--:--'}")
    print(f"Last break: {summary.formatted_last_break}")
    print(f"Daily goal: {round(summary.daily_goal_progress * 100)}%")
    if ctx.timer.is_day_ended:
        print("Day ended.")
    return 0


def _report_transition(result: TimerResult) -> int:
    if not result.applied:
        print(f"Nothing to do: {result.reason}")
        return 1
    if result.session is not None:
        print(f"Session saved: {result.session.formatted_duration}")
    print(f"Timer is now {result.state.value}.")
    return 0


def _handle_export(args: argparse.Namespace, ctx: AppContext) -> int:
    window = HistoryWindow(args.window)
    sessions = select_sessions(ctx.timesheet.all_sessions, window, ctx.clock.now(), ctx.tz, day=args.day)
    if not sessions:
        print("No sessions to export.")
        return 0

    report = build_report(sessions, report_label(window, args.day), ctx.tz)
    out_dir = Path(args.out_dir) if args.out_dir else ctx.config.out_dir
    if args.format == "md":
        path = write_markdown(report, out_dir, generated_at=ctx.clock.now().astimezone(ctx.tz))
    else:
        path = write_csv(report, out_dir)
    print(f"Exported {report.session_count} sessions: {path}")
    return 0


def _handle_share(args: argparse.Namespace, ctx: AppContext) -> int:
    day = args.day or ctx.timesheet.today()
    print(day_share_text(ctx.timesheet.all_sessions, day, ctx.tz))
    return 0


def _handle_serve(args: argparse.Namespace, db_path: Path, tz: tzinfo, config: Config) -> int:
    try:
        import uvicorn

        from .api.app import create_app
    except ImportError as exc:
        print(f"Cannot start the API: missing dependency (fastapi/uvicorn). {exc}", file=sys.stderr)
        return EXIT_INVALID

    app = create_app(db_path=db_path, tz=tz, config=config)
    uvicorn.run(app, host=args.host, port=int(args.port), log_level=config.log_level.lower())
    return 0
