"""Error types raised by the attendance core."""

from __future__ import annotations

from typing import Iterable


class AttendanceError(Exception):
    """Base class for every attendance error."""


class InvalidSchedule(AttendanceError):
    def __init__(self, tokens: Iterable[str] = ()) -> None:
        self.tokens = list(tokens)
        if self.tokens:
            message = f"invalid window(s): {', '.join(self.tokens)}"
        else:
            message = "schedule must contain at least one window"
        super().__init__(message)


class UnknownMember(AttendanceError):
    def __init__(self, member_id: str) -> None:
        super().__init__(f"member {member_id} is not on the roster")
        self.member_id = member_id


class MalformedReport(AttendanceError):
    def __init__(self, text: str) -> None:
        super().__init__(f"cannot parse report: {text!r}")
        self.text = text


class NotificationFailure(AttendanceError):
    """Raised when the outbound notifier could not deliver a message."""


class PersistenceFailure(AttendanceError):
    """Raised when a store could not be loaded or saved."""


__all__ = [
    "AttendanceError",
    "InvalidSchedule",
    "UnknownMember",
    "MalformedReport",
    "NotificationFailure",
    "PersistenceFailure",
]
