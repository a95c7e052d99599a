"""In-memory attendance ledger keyed by (date, window, member)."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional

from .models import AttendanceEntry

Key = tuple[date, str, str]


class Ledger:
    """Store of at most one entry per (date, window, member).

    Callers serialise writes; the ledger has no locking of its own.
    """

    def __init__(self, entries: Iterable[AttendanceEntry] = ()) -> None:
        self._entries: Dict[Key, AttendanceEntry] = {}
        self.load(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def load(self, entries: Iterable[AttendanceEntry]) -> None:
        for entry in entries:
            self._entries[entry.key] = entry

    def upsert(
        self,
        member_id: str,
        status: str,
        window: str,
        day: date,
        submitted_at: Optional[datetime] = None,
    ) -> AttendanceEntry:
        entry = AttendanceEntry(
            date=day,
            window=window,
            member_id=member_id,
            status=status,
            submitted_at=submitted_at or datetime.now(timezone.utc),
        )
        # Re-inserting keeps iteration order equal to submission order.
        self._entries.pop(entry.key, None)
        self._entries[entry.key] = entry
        return entry

    def query_by_bucket(self, day: date, window: str) -> List[AttendanceEntry]:
        return [e for e in self._entries.values() if e.date == day and e.window == window]

    def for_date(self, day: date) -> List[AttendanceEntry]:
        return [e for e in self._entries.values() if e.date == day]

    def entries(self) -> List[AttendanceEntry]:
        return list(self._entries.values())

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["Ledger"]
