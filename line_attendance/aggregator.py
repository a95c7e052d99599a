"""Reconcile the ledger against the roster for one bucket."""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

from .ledger import Ledger
from .models import AttendanceReport, Bucket, Member, MemberRow


class Aggregator:
    """Read-only present/absent views over a roster and a ledger."""

    def __init__(self, roster: Sequence[Member], ledger: Ledger) -> None:
        self.roster = roster
        self.ledger = ledger

    def present(self, day: date, window: str) -> List[Member]:
        reported = {entry.member_id for entry in self.ledger.query_by_bucket(day, window)}
        return [member for member in self.roster if member.id in reported]

    def absent(self, day: date, window: str) -> List[Member]:
        reported = {entry.member_id for entry in self.ledger.query_by_bucket(day, window)}
        return [member for member in self.roster if member.id not in reported]

    def last_submitter(self, day: date, window: str) -> Optional[Member]:
        entries = self.ledger.query_by_bucket(day, window)
        if not entries:
            return None
        latest = entries[0]
        for entry in entries[1:]:
            # strict comparison keeps the first-seen entry on ties
            if entry.submitted_at > latest.submitted_at:
                latest = entry
        for member in self.roster:
            if member.id == latest.member_id:
                return member
        return Member(id=latest.member_id, name=latest.member_id)

    def report(self, day: date, window: str) -> AttendanceReport:
        statuses = {entry.member_id: entry.status for entry in self.ledger.query_by_bucket(day, window)}
        last = self.last_submitter(day, window) if statuses else None

        rows: List[MemberRow] = []
        for member in self.roster:
            status = statuses.get(member.id)
            rows.append(
                MemberRow(
                    member=member,
                    status=status,
                    is_last=last is not None and member.id == last.id,
                )
            )
        present_count = sum(1 for row in rows if row.present)
        return AttendanceReport(
            bucket=Bucket(day, window),
            present_count=present_count,
            absent_count=len(rows) - present_count,
            rows=rows,
            last_submitter=last,
        )


__all__ = ["Aggregator"]
