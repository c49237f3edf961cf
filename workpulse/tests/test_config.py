from __future__ import annotations

from datetime import date, timezone
import os
from pathlib import Path
import time
import unittest
from unittest import mock
from zoneinfo import ZoneInfo

from workpulse.config import (
    DEFAULT_OUT_DIR,
    SYSTEM_LOCAL_ZONE,
    load_config,
    local_timezone,
    parse_log_level,
    parse_timezone,
)
from workpulse.days import day_bounds, local_day
from workpulse.db import default_db_path
from workpulse.tests.test_helpers import utc


class TestConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        config = load_config({})
        self.assertEqual(config.db_path, default_db_path())
        self.assertEqual(config.out_dir, DEFAULT_OUT_DIR)
        self.assertIsNone(config.journal_mode)
        self.assertEqual(config.log_level, "WARNING")
        self.assertEqual(config.daily_goal_sec, 8 * 3600)

    def test_overrides(self) -> None:
        config = load_config(
            {
                "WORKPULSE_DB": "/tmp/wp.sqlite",
                "WORKPULSE_TIMEZONE": "Europe/Berlin",
                "WORKPULSE_OUT_DIR": "/tmp/wp-out",
                "WORKPULSE_JOURNAL_MODE": "wal",
                "WORKPULSE_LOG_LEVEL": "debug",
                "WORKPULSE_DAILY_GOAL_HOURS": "6.5",
            }
        )
        self.assertEqual(config.db_path, Path("/tmp/wp.sqlite"))
        self.assertEqual(str(config.timezone), "Europe/Berlin")
        self.assertEqual(config.out_dir, Path("/tmp/wp-out"))
        self.assertEqual(config.journal_mode, "wal")
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual(config.daily_goal_sec, 6.5 * 3600)

    def test_invalid_timezone_names_the_variable(self) -> None:
        with self.assertRaisesRegex(ValueError, "WORKPULSE_TIMEZONE"):
            load_config({"WORKPULSE_TIMEZONE": "Mars/Olympus_Mons"})

    def test_invalid_goal(self) -> None:
        with self.assertRaisesRegex(ValueError, "WORKPULSE_DAILY_GOAL_HOURS"):
            load_config({"WORKPULSE_DAILY_GOAL_HOURS": "lots"})
        with self.assertRaisesRegex(ValueError, "WORKPULSE_DAILY_GOAL_HOURS"):
            load_config({"WORKPULSE_DAILY_GOAL_HOURS": "0"})

    def test_log_level(self) -> None:
        self.assertEqual(parse_log_level(" info "), "INFO")
        with self.assertRaises(ValueError):
            parse_log_level("chatty")

    def test_blank_timezone_falls_back_to_local(self) -> None:
        self.assertEqual(parse_timezone("  "), local_timezone())

    def test_tz_variable_names_the_local_zone(self) -> None:
        config = load_config({"TZ": "America/New_York"})
        self.assertEqual(config.timezone, ZoneInfo("America/New_York"))

        winter_late = utc(2026, 1, 16, 4, 30)
        summer_late = utc(2026, 7, 16, 3, 30)
        self.assertEqual(local_day(winter_late, config.timezone), date(2026, 1, 15))
        self.assertEqual(local_day(summer_late, config.timezone), date(2026, 7, 15))

    def test_tz_variable_with_leading_colon(self) -> None:
        self.assertEqual(local_timezone({"TZ": ":Europe/Berlin"}), ZoneInfo("Europe/Berlin"))


@unittest.skipUnless(hasattr(time, "tzset"), "time.tzset is not available")
class TestSystemLocalZone(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch.dict(os.environ, {"TZ": "America/New_York"})
        patcher.start()
        time.tzset()
        self.addCleanup(time.tzset)
        self.addCleanup(patcher.stop)

    def test_offset_follows_each_season(self) -> None:
        zone = SYSTEM_LOCAL_ZONE
        self.assertEqual(local_day(utc(2026, 1, 16, 4, 30), zone), date(2026, 1, 15))
        self.assertEqual(local_day(utc(2026, 7, 16, 3, 30), zone), date(2026, 7, 15))
        self.assertEqual(utc(2026, 1, 16, 4, 30).astimezone(zone).hour, 23)
        self.assertEqual(utc(2026, 7, 16, 3, 30).astimezone(zone).hour, 23)

    def test_day_bounds_are_local_midnight_in_both_seasons(self) -> None:
        zone = SYSTEM_LOCAL_ZONE
        winter_start, _ = day_bounds(date(2026, 1, 15), zone)
        summer_start, _ = day_bounds(date(2026, 7, 15), zone)
        self.assertEqual(winter_start.astimezone(timezone.utc), utc(2026, 1, 15, 5))
        self.assertEqual(summer_start.astimezone(timezone.utc), utc(2026, 7, 15, 4))


if __name__ == "__main__":
    unittest.main()
