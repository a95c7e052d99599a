"""Parsing of chat control commands and status reports."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple, Union

from .errors import MalformedReport

COMMAND_PREFIX = "/"
REPORT_PATTERN = re.compile(r"^(\d+)\s+(.+)$", re.DOTALL)


@dataclass(frozen=True, slots=True)
class Enable:
    pass


@dataclass(frozen=True, slots=True)
class Disable:
    pass


@dataclass(frozen=True, slots=True)
class StatusQuery:
    pass


@dataclass(frozen=True, slots=True)
class SetSchedule:
    tokens: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ReportQuery:
    pass


@dataclass(frozen=True, slots=True)
class AbsentQuery:
    pass


@dataclass(frozen=True, slots=True)
class RosterQuery:
    pass


@dataclass(frozen=True, slots=True)
class Help:
    pass


@dataclass(frozen=True, slots=True)
class Unknown:
    name: str


Command = Union[
    Enable,
    Disable,
    StatusQuery,
    SetSchedule,
    ReportQuery,
    AbsentQuery,
    RosterQuery,
    Help,
    Unknown,
]

COMMAND_TYPES = (
    Enable,
    Disable,
    StatusQuery,
    SetSchedule,
    ReportQuery,
    AbsentQuery,
    RosterQuery,
    Help,
    Unknown,
)

_SIMPLE_COMMANDS = {
    "/start": Enable,
    "/enable": Enable,
    "/end": Disable,
    "/disable": Disable,
    "/status": StatusQuery,
    "/report": ReportQuery,
    "/missing": AbsentQuery,
    "/absent": AbsentQuery,
    "/roster": RosterQuery,
    "/help": Help,
}
_SCHEDULE_COMMANDS = {"/settime", "/setschedule"}


def is_command(text: str) -> bool:
    return text.strip().startswith(COMMAND_PREFIX)


def parse_command(text: str) -> Command:
    """Parse a ``/name arg...`` directive; the name is case-insensitive."""

    parts = text.strip().split()
    if not parts:
        return Unknown("")
    name = parts[0].lower()
    if name in _SCHEDULE_COMMANDS:
        return SetSchedule(tuple(parts[1:]))
    factory = _SIMPLE_COMMANDS.get(name)
    if factory is None:
        return Unknown(parts[0])
    return factory()


def parse_report(text: str) -> Tuple[str, str]:
    """Split ``<member id> <status>`` into its parts."""

    match = REPORT_PATTERN.match(text.strip())
    if not match:
        raise MalformedReport(text)
    return match.group(1), match.group(2).strip()


__all__ = [
    "Command",
    "COMMAND_TYPES",
    "Enable",
    "Disable",
    "StatusQuery",
    "SetSchedule",
    "ReportQuery",
    "AbsentQuery",
    "RosterQuery",
    "Help",
    "Unknown",
    "is_command",
    "parse_command",
    "parse_report",
]
