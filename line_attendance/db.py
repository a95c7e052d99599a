"""SQLite persistence layer for LINE Attendance."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Iterator, List

from .errors import PersistenceFailure
from .models import AttendanceEntry, Member, SystemState

Connection = sqlite3.Connection

STATE_KEY = "system_state"


class Database:
    """Three independent stores: members, attendance and config."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._ready = False

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        if not self._ready:
            self._initialize()
        try:
            conn = sqlite3.connect(self._path)
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"cannot open {self._path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as exc:
            raise PersistenceFailure(str(exc)) from exc
        finally:
            conn.close()

    def _initialize(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceFailure(f"cannot create {self._path.parent}: {exc}") from exc
        self._ready = True
        try:
            self._create_tables()
        except PersistenceFailure:
            self._ready = False
            raise

    def _create_tables(self) -> None:
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS members (
                    position INTEGER NOT NULL,
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    note TEXT NOT NULL DEFAULT ''
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS attendance (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    date TEXT NOT NULL,
                    slot TEXT NOT NULL,
                    member_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    submitted_at TEXT NOT NULL,
                    UNIQUE(date, slot, member_id)
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS config (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.commit()

    # region Config
    def load_state(self) -> SystemState | None:
        with self.connect() as conn:
            row = conn.execute("SELECT value FROM config WHERE key = ?", (STATE_KEY,)).fetchone()
        if row is None:
            return None
        try:
            data = json.loads(row["value"])
            return SystemState(
                enabled=bool(data["enabled"]),
                broadcast_target=data.get("broadcast_target"),
                windows=list(data["windows"]),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise PersistenceFailure(f"corrupt system state: {exc}") from exc

    def save_state(self, state: SystemState) -> None:
        value = json.dumps(
            {
                "enabled": state.enabled,
                "broadcast_target": state.broadcast_target,
                "windows": list(state.windows),
            }
        )
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO config (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (STATE_KEY, value),
            )
            conn.commit()

    # endregion

    # region Members
    def load_roster(self) -> List[Member]:
        with self.connect() as conn:
            rows = conn.execute("SELECT * FROM members ORDER BY position").fetchall()
        return [Member(id=row["id"], name=row["name"], note=row["note"]) for row in rows]

    def replace_roster(self, members: Iterable[Member]) -> None:
        with self.connect() as conn:
            conn.execute("DELETE FROM members")
            conn.executemany(
                "INSERT INTO members (position, id, name, note) VALUES (?, ?, ?, ?)",
                [(index, m.id, m.name, m.note) for index, m in enumerate(members)],
            )
            conn.commit()

    # endregion

    # region Attendance
    def load_entries(self) -> List[AttendanceEntry]:
        with self.connect() as conn:
            rows = conn.execute("SELECT * FROM attendance ORDER BY submitted_at, id").fetchall()
        try:
            return [
                AttendanceEntry(
                    date=date.fromisoformat(row["date"]),
                    window=row["slot"],
                    member_id=row["member_id"],
                    status=row["status"],
                    submitted_at=datetime.fromisoformat(row["submitted_at"]),
                )
                for row in rows
            ]
        except ValueError as exc:
            raise PersistenceFailure(f"corrupt attendance record: {exc}") from exc

    def upsert_entry(self, entry: AttendanceEntry) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO attendance (date, slot, member_id, status, submitted_at)
                VALUES (:date, :window, :member_id, :status, :submitted_at)
                ON CONFLICT(date, slot, member_id) DO UPDATE SET
                    status=excluded.status,
                    submitted_at=excluded.submitted_at
                """,
                entry.to_dict(),
            )
            conn.commit()

    def clear_entries(self) -> None:
        with self.connect() as conn:
            conn.execute("DELETE FROM attendance")
            conn.commit()

    # endregion


__all__ = ["Database"]
