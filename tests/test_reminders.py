from __future__ import annotations

import asyncio
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from conftest import TAIPEI
from line_attendance.reminders import ReminderScheduler

MORNING = datetime(2024, 1, 1, 8, 0, tzinfo=TAIPEI)


def make_reminders(service, lead_minutes=5):
    return ReminderScheduler(service, TAIPEI, lead_minutes, scheduler=AsyncIOScheduler(timezone=TAIPEI))


def next_fire_times(reminders, now=MORNING):
    return [job.trigger.get_next_fire_time(None, now) for job in reminders._scheduler.get_jobs()]


def test_one_job_per_window(service):
    reminders = make_reminders(service)
    reminders.sync(["09:00", "16:00", "21:00"])

    assert reminders.job_ids() == ["reminder:09:00", "reminder:16:00", "reminder:21:00"]
    assert next_fire_times(reminders) == [
        datetime(2024, 1, 1, 8, 55, tzinfo=TAIPEI),
        datetime(2024, 1, 1, 15, 55, tzinfo=TAIPEI),
        datetime(2024, 1, 1, 20, 55, tzinfo=TAIPEI),
    ]


def test_midnight_window_fires_previous_evening(service):
    reminders = make_reminders(service)
    reminders.sync(["00:03"])
    assert next_fire_times(reminders) == [datetime(2024, 1, 1, 23, 58, tzinfo=TAIPEI)]


def test_schedule_change_reregisters_jobs(service):
    reminders = make_reminders(service)
    reminders.sync(["09:00"])

    asyncio.run(service.handle_text("/settime 10:00"))

    assert reminders.job_ids() == ["reminder:10:00"]
    fire_times = next_fire_times(reminders)
    assert datetime(2024, 1, 1, 8, 55, tzinfo=TAIPEI) not in fire_times
    assert fire_times == [datetime(2024, 1, 1, 9, 55, tzinfo=TAIPEI)]


def test_rejected_schedule_keeps_jobs(service):
    reminders = make_reminders(service)
    reminders.sync(service.state.windows)

    asyncio.run(service.handle_text("/settime 10:00 99:00"))

    assert reminders.job_ids() == ["reminder:09:00", "reminder:16:00", "reminder:21:00"]


def test_jobs_run_the_broadcast(service, notifier):
    reminders = make_reminders(service)
    reminders.sync(["09:00"])
    service.state.broadcast_target = "G1"

    job = reminders._scheduler.get_jobs()[0]
    asyncio.run(job.func())

    assert [dest for dest, _ in notifier.sent] == ["G1", "G1"]
