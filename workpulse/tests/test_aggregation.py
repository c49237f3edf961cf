from __future__ import annotations

from datetime import date, timedelta, timezone
import unittest

from workpulse.aggregation import (
    HistoryWindow,
    average_session_length,
    build_day_summary,
    filter_window,
    group_by_day,
    has_activity_on,
    last_break_duration,
    today_total,
    total_for_date,
)
from workpulse.formatting import format_break
from workpulse.models import Session
from workpulse.tests.test_helpers import completed, utc

UTC = timezone.utc


class TestTotals(unittest.TestCase):
    def setUp(self) -> None:
        self.sessions = [
            completed(utc(2026, 2, 13, 14), utc(2026, 2, 13, 14, 30)),
            completed(utc(2026, 2, 13, 8), utc(2026, 2, 13, 9, 30), manual=True),
            completed(utc(2026, 2, 12, 10), utc(2026, 2, 12, 11)),
            Session(start_time=utc(2026, 2, 13, 16)),
        ]

    def test_total_for_date_skips_open_sessions(self) -> None:
        self.assertEqual(total_for_date(self.sessions, date(2026, 2, 13), UTC), 1800 + 5400)
        self.assertEqual(total_for_date(self.sessions, date(2026, 2, 12), UTC), 3600)
        self.assertEqual(total_for_date(self.sessions, date(2026, 2, 11), UTC), 0)

    def test_today_total_adds_running_elapsed(self) -> None:
        now = utc(2026, 2, 13, 17)
        self.assertEqual(today_total(self.sessions, now, UTC), 7200)
        self.assertEqual(today_total(self.sessions, now, UTC, running_elapsed=42), 7242)

    def test_has_activity_on(self) -> None:
        self.assertTrue(has_activity_on(self.sessions, date(2026, 2, 12), UTC))
        self.assertFalse(has_activity_on(self.sessions, date(2026, 2, 14), UTC))

    def test_group_by_day_newest_day_first(self) -> None:
        grouped = group_by_day(self.sessions, UTC)
        self.assertEqual(list(grouped), [date(2026, 2, 13), date(2026, 2, 12)])
        self.assertEqual(len(grouped[date(2026, 2, 13)]), 3)

    def test_day_boundary_uses_local_midnight(self) -> None:
        eastern = timezone(timedelta(hours=-5))
        late = completed(utc(2026, 2, 14, 4, 30), utc(2026, 2, 14, 4, 50))

        self.assertEqual(list(group_by_day([late], eastern)), [date(2026, 2, 13)])
        self.assertEqual(total_for_date([late], date(2026, 2, 13), eastern), 1200)
        self.assertEqual(total_for_date([late], date(2026, 2, 14), UTC), 1200)


class TestAverage(unittest.TestCase):
    def test_empty_has_no_value(self) -> None:
        self.assertIsNone(average_session_length([]))

    def test_only_open_sessions_has_no_value(self) -> None:
        self.assertIsNone(average_session_length([Session(start_time=utc(2026, 2, 13, 9))]))

    def test_mean_of_completed(self) -> None:
        sessions = [
            completed(utc(2026, 2, 13, 8), utc(2026, 2, 13, 9)),
            completed(utc(2026, 2, 13, 10), utc(2026, 2, 13, 10, 30)),
        ]
        self.assertEqual(average_session_length(sessions), 2700)


class TestLastBreak(unittest.TestCase):
    def test_gap_between_two_latest_sessions(self) -> None:
        sessions = [
            completed(utc(2026, 2, 13, 9), utc(2026, 2, 13, 10)),
            completed(utc(2026, 2, 13, 10, 15), utc(2026, 2, 13, 11)),
        ]
        gap = last_break_duration(sessions)
        self.assertEqual(gap, 900)
        self.assertEqual(format_break(gap), "15m")

    def test_fewer_than_two_sessions(self) -> None:
        self.assertIsNone(last_break_duration([]))
        self.assertIsNone(last_break_duration([completed(utc(2026, 2, 13, 9), utc(2026, 2, 13, 10))]))

    def test_latest_in_progress_has_no_break(self) -> None:
        sessions = [
            completed(utc(2026, 2, 13, 9), utc(2026, 2, 13, 10)),
            Session(start_time=utc(2026, 2, 13, 10, 15)),
        ]
        self.assertIsNone(last_break_duration(sessions))

    def test_long_break_shown_in_hours(self) -> None:
        sessions = [
            completed(utc(2026, 2, 13, 13, 5), utc(2026, 2, 13, 14)),
            completed(utc(2026, 2, 13, 9), utc(2026, 2, 13, 12)),
        ]
        self.assertEqual(format_break(last_break_duration(sessions)), "1:05")


class TestWindows(unittest.TestCase):
    def setUp(self) -> None:
        self.now = utc(2026, 2, 13, 12)
        self.sessions = [
            completed(utc(2026, 2, 13, 9), utc(2026, 2, 13, 10)),
            completed(utc(2026, 2, 10, 9), utc(2026, 2, 10, 10)),
            completed(utc(2026, 2, 7, 9), utc(2026, 2, 7, 10)),
            completed(utc(2026, 1, 20, 9), utc(2026, 1, 20, 10)),
        ]

    def test_today(self) -> None:
        items = filter_window(self.sessions, HistoryWindow.TODAY, self.now, UTC)
        self.assertEqual([s.start_time.day for s in items], [13])

    def test_week_covers_last_seven_days(self) -> None:
        items = filter_window(self.sessions, HistoryWindow.WEEK, self.now, UTC)
        self.assertEqual([s.start_time.day for s in items], [13, 10, 7])

    def test_all_newest_first(self) -> None:
        items = filter_window(self.sessions, HistoryWindow.ALL, self.now, UTC)
        self.assertEqual(len(items), 4)
        self.assertEqual(items[0].start_time, utc(2026, 2, 13, 9))
        self.assertEqual(items[-1].start_time, utc(2026, 1, 20, 9))


class TestDaySummary(unittest.TestCase):
    def test_summary_fields(self) -> None:
        sessions = [
            completed(utc(2026, 2, 13, 9), utc(2026, 2, 13, 10)),
            completed(utc(2026, 2, 13, 10, 15), utc(2026, 2, 13, 11, 15)),
        ]
        summary = build_day_summary(sessions, date(2026, 2, 13), UTC)

        self.assertEqual(summary.total_sec, 7200)
        self.assertEqual(summary.formatted_total, "02:00:00")
        self.assertEqual(summary.session_count, 2)
        self.assertEqual(summary.formatted_average, "1:00")
        self.assertEqual(summary.formatted_last_break, "15m")
        self.assertAlmostEqual(summary.daily_goal_progress, 0.25)

    def test_goal_progress_is_capped(self) -> None:
        sessions = [completed(utc(2026, 2, 13, 0), utc(2026, 2, 13, 10))]
        summary = build_day_summary(sessions, date(2026, 2, 13), UTC)
        self.assertEqual(summary.daily_goal_progress, 1.0)

    def test_empty_day(self) -> None:
        summary = build_day_summary([], date(2026, 2, 13), UTC)
        self.assertEqual(summary.session_count, 0)
        self.assertIsNone(summary.formatted_average)
        self.assertEqual(summary.formatted_last_break, "--:--")


if __name__ == "__main__":
    unittest.main()
