from __future__ import annotations

from datetime import date, timedelta, timezone
import unittest

from workpulse.aggregation import HistoryWindow
from workpulse.exporting import (
    CSV_HEADER,
    IN_PROGRESS,
    build_report,
    export_filename,
    render_csv,
    report_label,
    select_sessions,
    write_csv,
)
from workpulse.models import Session
from workpulse.tests.test_helpers import completed, local_tmp_dir, utc

UTC = timezone.utc


def sample_sessions() -> list[Session]:
    return [
        completed(utc(2026, 2, 13, 9), utc(2026, 2, 13, 10, 30)),
        completed(utc(2026, 2, 12, 14), utc(2026, 2, 12, 14, 45), manual=True),
        Session(start_time=utc(2026, 2, 13, 11)),
    ]


class TestReport(unittest.TestCase):
    def test_rows_newest_first_with_in_progress(self) -> None:
        sessions = select_sessions(sample_sessions(), HistoryWindow.ALL, utc(2026, 2, 13, 12), UTC)
        report = build_report(sessions, report_label(HistoryWindow.ALL), UTC)

        self.assertEqual(report.title, "All Sessions")
        self.assertEqual(report.session_count, 3)
        self.assertEqual(report.total_sec, 5400 + 2700)
        self.assertEqual(report.total_time, "02:15:00")
        self.assertEqual(
            [row.as_list() for row in report.rows],
            [
                ["2026-02-13", "11:00", IN_PROGRESS, "00:00:00", "Automatic"],
                ["2026-02-13", "09:00", "10:30", "01:30:00", "Automatic"],
                ["2026-02-12", "14:00", "14:45", "00:45:00", "Manual"],
            ],
        )

    def test_times_use_the_given_timezone(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        report = build_report([completed(utc(2026, 2, 13, 23), utc(2026, 2, 13, 23, 30))], "x", plus_two)
        self.assertEqual(report.rows[0].date, "2026-02-14")
        self.assertEqual(report.rows[0].start_time, "01:00")

    def test_single_day_selection(self) -> None:
        sessions = select_sessions(
            sample_sessions(), HistoryWindow.ALL, utc(2026, 2, 13, 12), UTC, day=date(2026, 2, 12)
        )
        self.assertEqual(len(sessions), 1)
        self.assertEqual(report_label(HistoryWindow.ALL, date(2026, 2, 12)), "2026-02-12")
        self.assertEqual(report_label(HistoryWindow.WEEK), "This Week")


class TestCsv(unittest.TestCase):
    def test_render_csv(self) -> None:
        report = build_report(sample_sessions(), "All Sessions", UTC)
        lines = render_csv(report).splitlines()

        self.assertEqual(len(lines), 4)
        self.assertEqual(lines[0], ",".join(CSV_HEADER))
        self.assertEqual(lines[1], "2026-02-13,09:00,10:30,01:30:00,Automatic")
        self.assertIn(IN_PROGRESS, lines[3])

    def test_empty_report_is_header_only(self) -> None:
        report = build_report([], "Today", UTC)
        self.assertEqual(render_csv(report), "Date,Start Time,End Time,Duration,Type\n")

    def test_write_csv(self) -> None:
        with local_tmp_dir() as tmp:
            report = build_report(sample_sessions(), report_label(HistoryWindow.WEEK), UTC)
            path = write_csv(report, tmp / "out")

            self.assertEqual(path.name, "WorkPulse_Sessions_This_Week.csv")
            text = path.read_text(encoding="utf-8")
            self.assertTrue(text.startswith("Date,Start Time,End Time,Duration,Type\n"))
            self.assertEqual(len(text.splitlines()), 4)

    def test_export_filename(self) -> None:
        self.assertEqual(export_filename("All Sessions", "csv"), "WorkPulse_Sessions_All_Sessions.csv")
        self.assertEqual(export_filename("2026-02-13", "md"), "WorkPulse_Sessions_2026-02-13.md")


if __name__ == "__main__":
    unittest.main()
