"""Cron-driven reminders fired shortly before every report window."""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import List, Optional, Sequence

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from .schedule import reminder_time
from .service import AttendanceService

logger = logging.getLogger(__name__)

JOB_PREFIX = "reminder:"


class ReminderScheduler:
    """Keeps exactly one daily job per configured window."""

    def __init__(
        self,
        service: AttendanceService,
        tz: tzinfo,
        lead_minutes: int = 5,
        scheduler: Optional[AsyncIOScheduler] = None,
    ) -> None:
        self.service = service
        self.tz = tz
        self.lead_minutes = lead_minutes
        self._scheduler = scheduler or AsyncIOScheduler(timezone=tz)
        service.add_schedule_listener(self.sync)

    def trigger_for(self, window: str) -> CronTrigger:
        hour, minute = reminder_time(window, self.lead_minutes)
        return CronTrigger(hour=hour, minute=minute, timezone=self.tz)

    def sync(self, windows: Sequence[str]) -> None:
        """Drop every reminder job and register one per window in ``windows``."""

        for job in self._scheduler.get_jobs():
            if job.id.startswith(JOB_PREFIX):
                job.remove()
        for window in windows:
            self._scheduler.add_job(
                self.service.broadcast_reminder,
                trigger=self.trigger_for(window),
                id=f"{JOB_PREFIX}{window}",
                name=f"reminder before {window}",
                replace_existing=True,
                misfire_grace_time=60,
                coalesce=True,
            )
        logger.info("Registered reminders for windows %s", ", ".join(windows) or "(none)")

    def job_ids(self) -> List[str]:
        return sorted(job.id for job in self._scheduler.get_jobs() if job.id.startswith(JOB_PREFIX))

    def start(self) -> None:
        self.sync(self.service.state.windows)
        if not self._scheduler.running:
            self._scheduler.start()

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)


__all__ = ["ReminderScheduler", "JOB_PREFIX"]
