from __future__ import annotations

from datetime import timedelta
import unittest

from workpulse.errors import InvalidRangeError
from workpulse.models import Session, newest_first, validate_range
from workpulse.tests.test_helpers import utc


class TestSession(unittest.TestCase):
    def test_duration_derived_from_times(self) -> None:
        session = Session(start_time=utc(2026, 2, 13, 8), end_time=utc(2026, 2, 13, 9, 30))
        self.assertEqual(session.duration, 5400)
        self.assertEqual(session.duration_sec, 5400)
        self.assertEqual(session.formatted_duration, "01:30:00")
        self.assertEqual(session.type_label, "Automatic")

    def test_in_progress_has_no_duration(self) -> None:
        session = Session(start_time=utc(2026, 2, 13, 8))
        self.assertIsNone(session.duration)
        self.assertFalse(session.is_completed)
        self.assertEqual(session.formatted_duration, "00:00:00")

    def test_end_before_start_rejected(self) -> None:
        with self.assertRaises(InvalidRangeError):
            Session(start_time=utc(2026, 2, 13, 9), end_time=utc(2026, 2, 13, 8))

    def test_zero_length_allowed_for_timer(self) -> None:
        moment = utc(2026, 2, 13, 9)
        self.assertEqual(Session(start_time=moment, end_time=moment).duration, 0)

    def test_with_times_keeps_identity_and_recomputes(self) -> None:
        original = Session(start_time=utc(2026, 2, 13, 8), end_time=utc(2026, 2, 13, 9), is_manual_entry=True)
        edited = original.with_times(utc(2026, 2, 13, 8), utc(2026, 2, 13, 8, 45))
        self.assertEqual(edited.id, original.id)
        self.assertTrue(edited.is_manual_entry)
        self.assertEqual(edited.duration, 2700)
        self.assertEqual(original.duration, 3600)

    def test_ids_are_unique_for_same_start(self) -> None:
        start = utc(2026, 2, 13, 8)
        self.assertNotEqual(Session(start_time=start).id, Session(start_time=start).id)

    def test_newest_first(self) -> None:
        base = utc(2026, 2, 13, 8)
        items = [Session(start_time=base + timedelta(hours=h)) for h in (1, 3, 2)]
        self.assertEqual([s.start_time.hour for s in newest_first(items)], [11, 10, 9])


class TestValidateRange(unittest.TestCase):
    def test_equal_times_rejected(self) -> None:
        moment = utc(2026, 2, 13, 8)
        with self.assertRaises(InvalidRangeError):
            validate_range(moment, moment)

    def test_invalid_range_is_a_value_error(self) -> None:
        with self.assertRaises(ValueError):
            validate_range(utc(2026, 2, 13, 9), utc(2026, 2, 13, 8))


if __name__ == "__main__":
    unittest.main()
