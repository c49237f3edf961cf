from __future__ import annotations

from datetime import datetime, tzinfo

from ..timesheet import Timesheet
from .timer_service import timer_service


def get_timesheet() -> Timesheet:
    timesheet = timer_service.timesheet()
    timesheet.reload()
    return timesheet


def localize(value: datetime, tz: tzinfo) -> datetime:
    return value.replace(tzinfo=tz) if value.tzinfo is None else value
