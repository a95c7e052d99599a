"""Dataclasses representing LINE Attendance domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

DEFAULT_WINDOWS = ("09:00", "16:00", "21:00")


@dataclass(slots=True)
class Member:
    id: str
    name: str
    note: str = ""


@dataclass(frozen=True, slots=True)
class Bucket:
    """One reporting period: a calendar date plus a canonical HH:MM window."""

    date: date
    window: str


@dataclass(slots=True)
class AttendanceEntry:
    date: date
    window: str
    member_id: str
    status: str
    submitted_at: datetime

    @property
    def key(self) -> tuple[date, str, str]:
        return (self.date, self.window, self.member_id)

    def to_dict(self) -> dict[str, str]:
        return {
            "date": self.date.isoformat(),
            "window": self.window,
            "member_id": self.member_id,
            "status": self.status,
            "submitted_at": self.submitted_at.isoformat(),
        }


@dataclass(slots=True)
class SystemState:
    enabled: bool = True
    broadcast_target: Optional[str] = None
    windows: List[str] = field(default_factory=lambda: list(DEFAULT_WINDOWS))


@dataclass(slots=True)
class MemberRow:
    member: Member
    status: Optional[str] = None
    is_last: bool = False

    @property
    def present(self) -> bool:
        return self.status is not None


@dataclass(slots=True)
class AttendanceReport:
    """Structured view of one bucket reconciled against the roster."""

    bucket: Bucket
    present_count: int
    absent_count: int
    rows: List[MemberRow]
    last_submitter: Optional[Member] = None

    def to_dict(self) -> dict[str, object]:
        return {
            "date": self.bucket.date.isoformat(),
            "window": self.bucket.window,
            "present_count": self.present_count,
            "absent_count": self.absent_count,
            "last_submitter": self.last_submitter.id if self.last_submitter else None,
            "rows": [
                {
                    "member_id": row.member.id,
                    "name": row.member.name,
                    "status": row.status,
                    "is_last": row.is_last,
                }
                for row in self.rows
            ],
        }


__all__ = [
    "DEFAULT_WINDOWS",
    "Member",
    "Bucket",
    "AttendanceEntry",
    "SystemState",
    "MemberRow",
    "AttendanceReport",
]
