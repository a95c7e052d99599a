from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Tuple
from zoneinfo import ZoneInfo

import pytest

from line_attendance.config import Settings
from line_attendance.db import Database
from line_attendance.models import Member
from line_attendance.service import AttendanceService

TAIPEI = ZoneInfo("Asia/Taipei")


class FakeNotifier:
    def __init__(self, deliver: bool = True) -> None:
        self.deliver = deliver
        self.sent: List[Tuple[str, str]] = []
        self.replies: List[Tuple[str, str]] = []

    async def send(self, destination: str, text: str) -> bool:
        self.sent.append((destination, text))
        return self.deliver

    async def send_reply(self, reply_token: str, text: str) -> bool:
        self.replies.append((reply_token, text))
        return self.deliver


class Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = dict(
        line_access_token="test-token",
        database_path=tmp_path / "attendance.db",
        roster_path=tmp_path / "roster.csv",
        timezone=TAIPEI,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def clock() -> Clock:
    return Clock(datetime(2024, 1, 1, 8, 0, tzinfo=TAIPEI))


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def service(settings: Settings, notifier: FakeNotifier, clock: Clock) -> AttendanceService:
    svc = AttendanceService(settings, Database(settings.database_path), notifier, clock=clock)
    svc.load()
    svc.roster[:] = [Member("33069", "Alice"), Member("33070", "Bob")]
    return svc
