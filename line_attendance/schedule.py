"""Window schedule validation and bucket resolution.

A schedule is a set of ``HH:MM`` window boundaries. Every instant is mapped to
exactly one ``(date, window)`` bucket in a fixed civil time zone, so the host's
local zone never influences which bucket a report lands in.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, tzinfo
from typing import Iterable, List, Sequence, Tuple

from .errors import InvalidSchedule
from .models import Bucket

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
MINUTES_PER_DAY = 24 * 60

PROSPECTIVE = "prospective"
RETROSPECTIVE = "retrospective"


def window_minutes(window: str) -> int:
    hour, minute = window.split(":")
    return int(hour) * 60 + int(minute)


def canonical_window(token: str) -> str:
    """Return the zero-padded ``HH:MM`` form of a valid token."""

    if not TIME_PATTERN.match(token):
        raise InvalidSchedule([token])
    hour, minute = token.split(":")
    return f"{int(hour):02d}:{int(minute):02d}"


def sort_windows(windows: Iterable[str]) -> List[str]:
    return sorted(set(windows), key=window_minutes)


def validate_windows(tokens: Sequence[str]) -> List[str]:
    """Validate a full window set; nothing is accepted unless every token is."""

    if not tokens:
        raise InvalidSchedule()
    invalid = [token for token in tokens if not TIME_PATTERN.match(token)]
    if invalid:
        raise InvalidSchedule(invalid)
    return sort_windows(canonical_window(token) for token in tokens)


def resolve_bucket(
    windows: Sequence[str],
    now: datetime,
    tz: tzinfo,
    policy: str = PROSPECTIVE,
) -> Bucket:
    """Map ``now`` to the bucket it belongs to under ``policy``.

    ``prospective`` files a report under the next window still to come today,
    rolling to the first window of tomorrow after the last one has passed.
    ``retrospective`` files it under the window that started most recently,
    rolling back to the last window of yesterday before the first one starts.
    """

    if not windows:
        raise InvalidSchedule()
    ordered = sort_windows(windows)

    local = now.astimezone(tz)
    current = local.hour * 60 + local.minute
    today = local.date()
    upcoming = [w for w in ordered if window_minutes(w) > current]

    if policy == PROSPECTIVE:
        if upcoming:
            return Bucket(today, upcoming[0])
        return Bucket(today + timedelta(days=1), ordered[0])
    if policy == RETROSPECTIVE:
        started = [w for w in ordered if window_minutes(w) <= current]
        if started:
            return Bucket(today, started[-1])
        return Bucket(today - timedelta(days=1), ordered[-1])
    raise ValueError(f"unknown bucket policy: {policy}")


def reminder_time(window: str, lead_minutes: int = 5) -> Tuple[int, int]:
    """Return the ``(hour, minute)`` a reminder for ``window`` should fire at."""

    offset = (window_minutes(window) - lead_minutes) % MINUTES_PER_DAY
    return divmod(offset, 60)


__all__ = [
    "TIME_PATTERN",
    "PROSPECTIVE",
    "RETROSPECTIVE",
    "window_minutes",
    "canonical_window",
    "sort_windows",
    "validate_windows",
    "resolve_bucket",
    "reminder_time",
]
