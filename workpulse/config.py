from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone as dt_timezone, tzinfo
import logging
import os
from pathlib import Path
import time
from typing import Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .db import default_db_path

DEFAULT_OUT_DIR = Path(__file__).resolve().parent / "out"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOCALTIME_PATH = Path("/etc/localtime")


@dataclass(frozen=True)
class Config:
    db_path: Path
    timezone: tzinfo
    out_dir: Path
    journal_mode: str | None
    log_level: str
    daily_goal_hours: float

    @property
    def daily_goal_sec(self) -> float:
        return self.daily_goal_hours * 3600


class SystemLocalZone(tzinfo):
    """The host zone when no IANA name is known.

    Offsets are looked up per moment through the C library, so both DST
    seasons land on their own local midnight.
    """

    def utcoffset(self, dt: datetime | None) -> timedelta:
        return timedelta(seconds=self._local(dt).tm_gmtoff)

    def dst(self, dt: datetime | None) -> timedelta:
        return timedelta(hours=1) if self._local(dt).tm_isdst > 0 else timedelta(0)

    def tzname(self, dt: datetime | None) -> str:
        return self._local(dt).tm_zone

    def fromutc(self, dt: datetime) -> datetime:
        stamp = dt.replace(tzinfo=dt_timezone.utc).timestamp()
        return dt + timedelta(seconds=time.localtime(stamp).tm_gmtoff)

    def __repr__(self) -> str:
        return "SystemLocalZone()"

    def __str__(self) -> str:
        return "localtime"

    @staticmethod
    def _local(dt: datetime | None) -> time.struct_time:
        if dt is None:
            return time.localtime()
        stamp = time.mktime(
            (dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second, dt.weekday(), 0, -1)
        )
        return time.localtime(stamp)


SYSTEM_LOCAL_ZONE = SystemLocalZone()


def _zone_from_name(name: str | None) -> ZoneInfo | None:
    key = (name or "").strip().lstrip(":")
    if not key:
        return None
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def _zone_from_localtime(path: Path) -> ZoneInfo | None:
    try:
        target = path.resolve(strict=True)
    except (OSError, RuntimeError):
        return None
    parts = target.parts
    if "zoneinfo" not in parts:
        return None
    return _zone_from_name("/".join(parts[parts.index("zoneinfo") + 1 :]))


def local_timezone(env: Mapping[str, str] | None = None) -> tzinfo:
    """The host's IANA zone from ``TZ`` or ``/etc/localtime``, else ``SYSTEM_LOCAL_ZONE``."""
    source = os.environ if env is None else env
    return (
        _zone_from_name(source.get("TZ"))
        or _zone_from_localtime(LOCALTIME_PATH)
        or SYSTEM_LOCAL_ZONE
    )


def parse_timezone(name: str | None, env: Mapping[str, str] | None = None) -> tzinfo:
    if not name or not name.strip():
        return local_timezone(env)
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Invalid timezone: {name}") from exc


def parse_log_level(raw: str) -> str:
    level = raw.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"WORKPULSE_LOG_LEVEL must be a logging level name, got {raw!r}")
    return level


def load_config(env: Mapping[str, str] | None = None) -> Config:
    source = os.environ if env is None else env

    try:
        timezone = parse_timezone(source.get("WORKPULSE_TIMEZONE"), source)
    except ValueError as exc:
        raise ValueError(f"WORKPULSE_TIMEZONE: {exc}") from exc

    goal_raw = source.get("WORKPULSE_DAILY_GOAL_HOURS", "8").strip()
    try:
        goal = float(goal_raw)
    except ValueError as exc:
        raise ValueError("WORKPULSE_DAILY_GOAL_HOURS must be a number") from exc
    if goal <= 0:
        raise ValueError("WORKPULSE_DAILY_GOAL_HOURS must be positive")

    db_raw = source.get("WORKPULSE_DB", "").strip()
    out_raw = source.get("WORKPULSE_OUT_DIR", "").strip()
    journal_raw = source.get("WORKPULSE_JOURNAL_MODE", "").strip()

    return Config(
        db_path=Path(db_raw) if db_raw else default_db_path(),
        timezone=timezone,
        out_dir=Path(out_raw) if out_raw else DEFAULT_OUT_DIR,
        journal_mode=journal_raw or None,
        log_level=parse_log_level(source.get("WORKPULSE_LOG_LEVEL", "WARNING")),
        daily_goal_hours=goal,
    )


def configure_logging(level: str = "WARNING") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
