"""Core orchestration logic for LINE Attendance."""

from __future__ import annotations

import asyncio
import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Protocol

from . import messages
from .aggregator import Aggregator
from .commands import (
    AbsentQuery,
    Command,
    Disable,
    Enable,
    Help,
    ReportQuery,
    RosterQuery,
    SetSchedule,
    StatusQuery,
    Unknown,
    is_command,
    parse_command,
    parse_report,
)
from .config import Settings
from .db import Database
from .errors import InvalidSchedule, MalformedReport, PersistenceFailure, UnknownMember
from .ledger import Ledger
from .models import DEFAULT_WINDOWS, Bucket, Member, SystemState
from .schedule import resolve_bucket, validate_windows

logger = logging.getLogger(__name__)

DEFAULT_MEMBER_IDS = range(33069, 33086)

ScheduleListener = Callable[[List[str]], None]


class Notifier(Protocol):
    async def send(self, destination: str, text: str) -> bool:
        ...

    async def send_reply(self, reply_token: str, text: str) -> bool:
        ...


class AttendanceService:
    """Owns the system state, roster and ledger behind a single mutation lock."""

    def __init__(
        self,
        settings: Settings,
        database: Database,
        notifier: Notifier,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.settings = settings
        self.database = database
        self.notifier = notifier
        self._clock = clock or (lambda: datetime.now(settings.timezone))
        self.state = SystemState()
        self.roster: List[Member] = []
        self.ledger = Ledger()
        self.aggregator = Aggregator(self.roster, self.ledger)
        self._lock = asyncio.Lock()
        self._schedule_listeners: List[ScheduleListener] = []
        self._handlers: Dict[type, Callable[[Any], Awaitable[str]]] = {
            Enable: self._enable,
            Disable: self._disable,
            StatusQuery: self._status,
            SetSchedule: self._set_schedule,
            ReportQuery: self._report,
            AbsentQuery: self._absent,
            RosterQuery: self._roster,
            Help: self._help,
            Unknown: self._unknown,
        }

    # region Loading
    def load(self, persist: bool = True) -> None:
        """Load every store, falling back to defaults for any that fail.

        With ``persist=False`` defaults and the roster file are applied in memory
        only and nothing is written back to the database.
        """

        self.state = self._load_state(persist)
        self.roster[:] = self._load_roster(persist)
        try:
            entries = self.database.load_entries()
        except PersistenceFailure:
            logger.exception("Could not load attendance records; starting with an empty ledger")
            entries = []
        self.ledger.clear()
        self.ledger.load(entries)
        logger.info(
            "Loaded state: enabled=%s windows=%s members=%s records=%s",
            self.state.enabled,
            ",".join(self.state.windows),
            len(self.roster),
            len(self.ledger),
        )

    def _load_state(self, persist: bool) -> SystemState:
        try:
            state = self.database.load_state()
        except PersistenceFailure:
            logger.exception("Could not load system state; using defaults")
            return SystemState()
        if state is None:
            state = SystemState()
            if persist:
                self._persist(self.database.save_state, state)
            return state
        try:
            state.windows = validate_windows(state.windows)
        except InvalidSchedule:
            logger.warning("Stored windows %s are invalid; using defaults", state.windows)
            state.windows = list(DEFAULT_WINDOWS)
        return state

    def _load_roster(self, persist: bool) -> List[Member]:
        roster_path = self.settings.roster_path
        if roster_path.exists():
            try:
                members = list(load_roster_csv(roster_path))
            except (OSError, csv.Error, UnicodeDecodeError):
                logger.exception("Could not read roster file %s", roster_path)
            else:
                if persist:
                    self._persist(self.database.replace_roster, members)
                return members
        try:
            members = self.database.load_roster()
        except PersistenceFailure:
            logger.exception("Could not load roster; using the default roster")
            return default_roster()
        if not members:
            members = default_roster()
            if persist:
                self._persist(self.database.replace_roster, members)
        return members

    # endregion

    # region Inbound messages
    async def handle_events(self, events: Any) -> None:
        """Process a webhook batch; malformed or empty batches are ignored."""

        if not isinstance(events, list):
            return
        for event in events:
            if not isinstance(event, dict):
                continue
            try:
                await self._handle_event(event)
            except Exception:  # noqa: BLE001
                logger.exception("Failed to handle event %s", event.get("type"))

    async def _handle_event(self, event: Dict[str, Any]) -> None:
        source = event.get("source") or {}
        if source.get("type") == "group" and source.get("groupId"):
            await self.set_broadcast_target(source["groupId"])

        if event.get("type") != "message":
            return
        message = event.get("message") or {}
        text = message.get("text")
        if message.get("type") != "text" or not isinstance(text, str):
            return

        reply = await self.handle_text(text)
        reply_token = event.get("replyToken")
        if reply and reply_token:
            await self.notifier.send_reply(reply_token, reply)

    async def handle_text(self, text: str) -> Optional[str]:
        text = text.strip()
        if not text:
            return None
        if is_command(text):
            return await self.execute(parse_command(text))
        return await self.submit_report(text)

    async def submit_report(self, text: str) -> Optional[str]:
        try:
            member_id, status = parse_report(text)
        except MalformedReport:
            if not self.settings.strict_reports:
                logger.debug("Ignoring non-report message")
                return None
            return messages.MALFORMED_TEXT

        async with self._lock:
            if not self.state.enabled:
                return messages.SYSTEM_OFF_TEXT
            try:
                member = self._member(member_id)
            except UnknownMember as exc:
                logger.info("Rejected report from unknown member %s", exc.member_id)
                return messages.render_unknown_member(exc.member_id)

            now = self._clock()
            bucket = self.current_bucket(now)
            entry = self.ledger.upsert(member.id, status, bucket.window, bucket.date, submitted_at=now)
            self._persist(self.database.upsert_entry, entry)

        logger.info("Recorded %s for %s %s: %s", member.id, bucket.date, bucket.window, status)
        return messages.render_recorded(member, status, bucket)

    async def set_broadcast_target(self, target: str) -> None:
        async with self._lock:
            if self.state.broadcast_target == target:
                return
            self.state.broadcast_target = target
            self._persist(self.database.save_state, self.state)
        logger.info("Broadcast target set to %s", target)

    # endregion

    # region Commands
    async def execute(self, command: Command) -> str:
        handler = self._handlers[type(command)]
        return await handler(command)

    async def _enable(self, command: Enable) -> str:
        async with self._lock:
            self.state.enabled = True
            self._persist(self.database.save_state, self.state)
        logger.info("Reporting enabled")
        return messages.ENABLED_TEXT

    async def _disable(self, command: Disable) -> str:
        async with self._lock:
            self.state.enabled = False
            self._persist(self.database.save_state, self.state)
            if self.settings.clear_on_disable:
                self.ledger.clear()
                self._persist(self.database.clear_entries)
        logger.info("Reporting disabled (cleared=%s)", self.settings.clear_on_disable)
        if self.settings.clear_on_disable:
            return messages.DISABLED_CLEARED_TEXT
        return messages.DISABLED_TEXT

    async def _status(self, command: StatusQuery) -> str:
        async with self._lock:
            return messages.render_status(self.state, self.current_bucket(), len(self.roster))

    async def _set_schedule(self, command: SetSchedule) -> str:
        if not command.tokens:
            return messages.SCHEDULE_USAGE_TEXT
        try:
            windows = validate_windows(command.tokens)
        except InvalidSchedule as exc:
            return messages.render_invalid_schedule(exc.tokens)

        async with self._lock:
            self.state.windows = windows
            self._persist(self.database.save_state, self.state)
            for listener in self._schedule_listeners:
                listener(list(windows))
        logger.info("Windows updated to %s", ",".join(windows))
        return messages.render_schedule_updated(windows)

    async def _report(self, command: ReportQuery) -> str:
        async with self._lock:
            bucket = self.current_bucket()
            return messages.render_report(self.aggregator.report(bucket.date, bucket.window))

    async def _absent(self, command: AbsentQuery) -> str:
        async with self._lock:
            bucket = self.current_bucket()
            return messages.render_absent(bucket, self.aggregator.absent(bucket.date, bucket.window))

    async def _roster(self, command: RosterQuery) -> str:
        return messages.render_roster(list(self.roster))

    async def _help(self, command: Help) -> str:
        return messages.HELP_TEXT

    async def _unknown(self, command: Unknown) -> str:
        return messages.render_unknown_command(command.name)

    def add_schedule_listener(self, listener: ScheduleListener) -> None:
        self._schedule_listeners.append(listener)

    # endregion

    # region Reminders
    async def broadcast_reminder(self) -> None:
        """Push the current report and the list of missing members."""

        async with self._lock:
            target = self.state.broadcast_target
            if not target:
                logger.info("No broadcast target configured; skipping reminder")
                return
            if not self.state.enabled:
                logger.info("Reporting disabled; skipping reminder")
                return
            bucket = self.current_bucket()
            report_text = messages.render_report(self.aggregator.report(bucket.date, bucket.window))
            absent = self.aggregator.absent(bucket.date, bucket.window)
            absent_text = messages.render_absent_ids(bucket, absent) if absent else None

        logger.info("Sending reminder for %s %s", bucket.date, bucket.window)
        await self._broadcast(target, report_text)
        if absent_text:
            await self._broadcast(target, absent_text)

    async def _broadcast(self, target: str, text: str) -> None:
        try:
            delivered = await self.notifier.send(target, text)
        except Exception:  # noqa: BLE001
            logger.exception("Broadcast to %s failed", target)
            return
        if not delivered:
            logger.warning("Broadcast to %s was not delivered", target)

    # endregion

    # region Query helpers
    def current_bucket(self, now: Optional[datetime] = None) -> Bucket:
        return resolve_bucket(
            self.state.windows,
            now or self._clock(),
            self.settings.timezone,
            self.settings.bucket_policy,
        )

    def records(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.ledger.entries()]

    def today_records(self) -> Dict[str, Any]:
        today = self._clock().astimezone(self.settings.timezone).date()
        return {
            "date": today.isoformat(),
            "records": [entry.to_dict() for entry in self.ledger.for_date(today)],
        }

    def roster_members(self) -> List[Dict[str, str]]:
        return [{"id": m.id, "name": m.name, "note": m.note} for m in self.roster]

    def config(self) -> Dict[str, Any]:
        return {
            "enabled": self.state.enabled,
            "broadcast_target": self.state.broadcast_target,
            "windows": list(self.state.windows),
            "bucket_policy": self.settings.bucket_policy,
        }

    def current_report(self) -> Dict[str, Any]:
        bucket = self.current_bucket()
        return self.aggregator.report(bucket.date, bucket.window).to_dict()

    def current_absentees(self) -> Dict[str, Any]:
        bucket = self.current_bucket()
        absent = self.aggregator.absent(bucket.date, bucket.window)
        return {
            "date": bucket.date.isoformat(),
            "window": bucket.window,
            "absentees": [{"id": m.id, "name": m.name} for m in absent],
        }

    # endregion

    def _member(self, member_id: str) -> Member:
        for member in self.roster:
            if member.id == member_id:
                return member
        raise UnknownMember(member_id)

    def _persist(self, operation: Callable[..., None], *args: Any) -> None:
        try:
            operation(*args)
        except PersistenceFailure:
            logger.exception("Persisting %s failed", operation.__name__)


def load_roster_csv(path: Path) -> Iterable[Member]:
    with path.open(newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        for row in reader:
            member_id = (row.get("id") or "").strip()
            if not member_id:
                continue
            yield Member(
                id=member_id,
                name=(row.get("name") or member_id).strip(),
                note=(row.get("note") or "").strip(),
            )


def default_roster() -> List[Member]:
    return [Member(id=str(i), name=f"Member {i}") for i in DEFAULT_MEMBER_IDS]


__all__ = ["AttendanceService", "Notifier", "load_roster_csv", "default_roster"]
