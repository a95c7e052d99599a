"""Configuration helpers for LINE Attendance."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

BUCKET_POLICIES = ("prospective", "retrospective")


@dataclass(slots=True)
class Settings:
    """Runtime configuration values loaded from environment variables."""

    line_access_token: str
    database_path: Path
    roster_path: Path
    timezone: ZoneInfo
    bucket_policy: str = "prospective"
    strict_reports: bool = True
    clear_on_disable: bool = False
    reminder_lead_minutes: int = 5
    api_key: Optional[str] = None


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def load_settings(env_file: str | None = None) -> Settings:
    """Load settings from the environment, optionally from a specific file."""

    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    db_path = Path(os.getenv("DATABASE_PATH", "line_attendance.db")).expanduser()
    roster_path = Path(os.getenv("ROSTER_PATH", "roster.csv")).expanduser()

    token = os.getenv("LINE_ACCESS_TOKEN")
    if not token:
        raise RuntimeError("LINE_ACCESS_TOKEN must be configured")

    policy = os.getenv("BUCKET_POLICY", "prospective").strip().lower()
    if policy not in BUCKET_POLICIES:
        raise RuntimeError(f"BUCKET_POLICY must be one of: {', '.join(BUCKET_POLICIES)}")

    try:
        lead = int(os.getenv("REMINDER_LEAD_MINUTES", "5"))
    except ValueError as exc:
        raise RuntimeError("REMINDER_LEAD_MINUTES must be an integer") from exc

    return Settings(
        line_access_token=token,
        database_path=db_path,
        roster_path=roster_path,
        timezone=ZoneInfo(os.getenv("TIMEZONE", "Asia/Taipei")),
        bucket_policy=policy,
        strict_reports=_env_flag("STRICT_REPORTS", True),
        clear_on_disable=_env_flag("CLEAR_ON_DISABLE", False),
        reminder_lead_minutes=lead,
        api_key=os.getenv("API_KEY") or None,
    )


__all__ = ["BUCKET_POLICIES", "Settings", "load_settings"]
