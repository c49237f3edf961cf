from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, timezone
import logging
import os
from pathlib import Path
import sqlite3
from typing import Iterator

from .errors import PersistenceError, SessionNotFoundError
from .models import Session
from .repository import DayState

DAY_ENDED_KEY = "day_ended"
LAST_RECORDED_DAY_KEY = "last_recorded_day"

_SESSION_COLUMNS = "id, start_time, end_time, is_manual_entry"


def _to_utc_text(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S")


def _from_utc_text(text: str) -> datetime:
    return datetime.strptime(text, "%Y-%m-%dT%H:%M:%S").replace(tzinfo=timezone.utc)


class WorkPulseDB:
    def __init__(
        self,
        db_path: Path,
        journal_mode: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.db_path = Path(db_path)
        raw_mode = (journal_mode or os.getenv("WORKPULSE_JOURNAL_MODE") or "MEMORY").strip()
        self.journal_mode = raw_mode.upper() if raw_mode else "MEMORY"
        self.logger = logger or logging.getLogger(__name__)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"cannot create database directory: {exc}") from exc
        self.init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        self._apply_journal_mode(conn)
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _apply_journal_mode(self, conn: sqlite3.Connection) -> None:
        try:
            conn.execute(f"PRAGMA journal_mode={self.journal_mode}")
        except sqlite3.OperationalError:
            conn.execute("PRAGMA journal_mode=MEMORY")

    @contextmanager
    def _session(self, action: str) -> Iterator[sqlite3.Connection]:
        conn: sqlite3.Connection | None = None
        try:
            conn = self._connect()
            with conn:
                yield conn
        except sqlite3.Error as exc:
            self.logger.error("Database %s failed: %s", action, exc)
            raise PersistenceError(f"{action} failed: {exc}") from exc
        finally:
            if conn is not None:
                conn.close()

    def init_schema(self) -> None:
        with self._session("init schema") as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    id TEXT PRIMARY KEY,
                    start_time TEXT NOT NULL,
                    end_time TEXT,
                    is_manual_entry INTEGER NOT NULL CHECK (is_manual_entry IN (0, 1)),
                    CHECK (end_time IS NULL OR end_time >= start_time)
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_sessions_start_time
                ON sessions(start_time)
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS day_state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    def insert(self, session: Session) -> None:
        with self._session("insert session") as conn:
            conn.execute(
                f"INSERT INTO sessions ({_SESSION_COLUMNS}) VALUES (?, ?, ?, ?)",
                self._session_params(session),
            )

    def update(self, session: Session) -> None:
        with self._session("update session") as conn:
            cursor = conn.execute(
                """
                UPDATE sessions
                SET start_time = ?, end_time = ?, is_manual_entry = ?
                WHERE id = ?
                """,
                (*self._session_params(session)[1:], session.id),
            )
            if cursor.rowcount == 0:
                raise SessionNotFoundError(session.id)

    def delete(self, session_id: str) -> None:
        with self._session("delete session") as conn:
            cursor = conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
            if cursor.rowcount == 0:
                raise SessionNotFoundError(session_id)

    def get(self, session_id: str) -> Session | None:
        items = self._read_sessions(
            f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE id = ?",
            [session_id],
        )
        return items[0] if items else None

    def fetch_all(self) -> list[Session]:
        query = f"SELECT {_SESSION_COLUMNS} FROM sessions ORDER BY start_time DESC"
        return self._read_sessions(query, [])

    def fetch_range(self, start: datetime, end: datetime) -> list[Session]:
        query = (
            f"SELECT {_SESSION_COLUMNS} FROM sessions "
            "WHERE start_time >= ? AND start_time < ? "
            "ORDER BY start_time DESC"
        )
        return self._read_sessions(query, [_to_utc_text(start), _to_utc_text(end)])

    def load_day_state(self) -> DayState:
        with self._session("load day state") as conn:
            rows = conn.execute("SELECT key, value FROM day_state").fetchall()

        values = {row["key"]: row["value"] for row in rows}
        last_day_text = values.get(LAST_RECORDED_DAY_KEY)
        return DayState(
            day_ended=values.get(DAY_ENDED_KEY) == "1",
            last_recorded_day=date.fromisoformat(last_day_text) if last_day_text else None,
        )

    def save_day_state(self, state: DayState) -> None:
        with self._session("save day state") as conn:
            conn.execute(
                "INSERT OR REPLACE INTO day_state (key, value) VALUES (?, ?)",
                (DAY_ENDED_KEY, "1" if state.day_ended else "0"),
            )
            if state.last_recorded_day is None:
                conn.execute("DELETE FROM day_state WHERE key = ?", (LAST_RECORDED_DAY_KEY,))
            else:
                conn.execute(
                    "INSERT OR REPLACE INTO day_state (key, value) VALUES (?, ?)",
                    (LAST_RECORDED_DAY_KEY, state.last_recorded_day.isoformat()),
                )

    def _session_params(self, session: Session) -> tuple[object, ...]:
        return (
            session.id,
            _to_utc_text(session.start_time),
            _to_utc_text(session.end_time) if session.end_time is not None else None,
            1 if session.is_manual_entry else 0,
        )

    def _read_sessions(self, query: str, params: list[object]) -> list[Session]:
        with self._session("read sessions") as conn:
            rows = conn.execute(query, params).fetchall()

        items: list[Session] = []
        for row in rows:
            items.append(
                Session(
                    id=row["id"],
                    start_time=_from_utc_text(row["start_time"]),
                    end_time=_from_utc_text(row["end_time"]) if row["end_time"] else None,
                    is_manual_entry=bool(row["is_manual_entry"]),
                )
            )
        return items


def default_db_path() -> Path:
    return Path(__file__).resolve().parent / "data" / "workpulse.sqlite"
