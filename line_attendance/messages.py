"""Plain-text renderings of replies and broadcasts."""

from __future__ import annotations

from typing import Sequence

from .models import AttendanceReport, Bucket, Member, SystemState

HELP_TEXT = "\n".join(
    [
        "Commands",
        "",
        "[Report]",
        "<member id> <status>",
        "e.g. 33069 at home",
        "",
        "[Control]",
        "/start - enable reporting",
        "/end - disable reporting",
        "/status - system status",
        "/settime HH:MM [HH:MM ...] - set report windows",
        "",
        "[Queries]",
        "/report - current window report",
        "/missing - members who have not reported",
        "/roster - member roster",
        "/help - show this help",
    ]
)


def bucket_label(bucket: Bucket) -> str:
    return f"{bucket.date.isoformat()} {bucket.window}"


def render_report(report: AttendanceReport) -> str:
    header = f"Report {bucket_label(report.bucket)}"
    if report.present_count == 0:
        return f"{header}\nNobody has reported yet"

    lines = [
        header,
        f"Reported: {report.present_count}  Missing: {report.absent_count}",
        "",
    ]
    for row in report.rows:
        status = row.status if row.present else "(no report)"
        marker = " *latest" if row.is_last else ""
        lines.append(f"{row.member.id} {row.member.name} - {status}{marker}")
    return "\n".join(lines)


def render_absent(bucket: Bucket, members: Sequence[Member]) -> str:
    if not members:
        return f"Everyone has reported for {bucket_label(bucket)}"
    lines = [f"Missing for {bucket_label(bucket)}: {len(members)}", ""]
    lines.extend(f"{member.id} {member.name}" for member in members)
    return "\n".join(lines)


def render_absent_ids(bucket: Bucket, members: Sequence[Member]) -> str:
    ids = ", ".join(member.id for member in members)
    return f"Still missing for {bucket_label(bucket)}: {ids}"


def render_roster(members: Sequence[Member]) -> str:
    lines = [f"Roster ({len(members)} members)", ""]
    lines.extend(f"{member.id} - {member.name}" for member in members)
    return "\n".join(lines)


def render_status(state: SystemState, bucket: Bucket | None, roster_size: int) -> str:
    current = bucket_label(bucket) if bucket else "none"
    return "\n".join(
        [
            "System status",
            "",
            f"Reporting: {'enabled' if state.enabled else 'disabled'}",
            f"Current window: {current}",
            f"Windows: {', '.join(state.windows) or 'none'}",
            f"Roster size: {roster_size}",
        ]
    )


def render_recorded(member: Member, status: str, bucket: Bucket) -> str:
    return f"Recorded {member.name}({member.id}) {status}\nfor {bucket_label(bucket)}"


ENABLED_TEXT = "Reporting enabled"
DISABLED_TEXT = "Reporting disabled"
DISABLED_CLEARED_TEXT = "Reporting disabled, all records cleared"
SYSTEM_OFF_TEXT = "Reporting is disabled\nSend /start to enable it"
MALFORMED_TEXT = "Unrecognised report\nFormat: <member id> <status>\ne.g. 33069 at home"
SCHEDULE_USAGE_TEXT = "Usage: /settime 09:00 16:00 21:00"


def render_unknown_member(member_id: str) -> str:
    return f"Member {member_id} is not on the roster"


def render_unknown_command(name: str) -> str:
    return f"Unknown command {name}, send /help for the command list"


def render_invalid_schedule(tokens: Sequence[str]) -> str:
    return f"Invalid time(s): {', '.join(tokens)}\nUse HH:MM, e.g. 09:00"


def render_schedule_updated(windows: Sequence[str]) -> str:
    return f"Windows updated: {', '.join(windows)}"


__all__ = [
    "HELP_TEXT",
    "ENABLED_TEXT",
    "DISABLED_TEXT",
    "DISABLED_CLEARED_TEXT",
    "SYSTEM_OFF_TEXT",
    "MALFORMED_TEXT",
    "SCHEDULE_USAGE_TEXT",
    "bucket_label",
    "render_report",
    "render_absent",
    "render_absent_ids",
    "render_roster",
    "render_status",
    "render_recorded",
    "render_unknown_member",
    "render_unknown_command",
    "render_invalid_schedule",
    "render_schedule_updated",
]
