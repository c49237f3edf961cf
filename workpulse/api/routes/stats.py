from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends

from ...timesheet import Timesheet
from ..deps import get_timesheet
from ..schemas import DaySummaryOut

router = APIRouter(prefix="/api/v1", tags=["stats"])


@router.get("/stats/today", response_model=DaySummaryOut)
def today_stats(timesheet: Timesheet = Depends(get_timesheet)) -> DaySummaryOut:
    return DaySummaryOut.from_summary(timesheet.summary())


@router.get("/stats/day/{day}", response_model=DaySummaryOut)
def day_stats(day: date, timesheet: Timesheet = Depends(get_timesheet)) -> DaySummaryOut:
    return DaySummaryOut.from_summary(timesheet.summary(day))
