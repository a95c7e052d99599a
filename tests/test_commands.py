from __future__ import annotations

import pytest

from line_attendance.commands import (
    COMMAND_TYPES,
    AbsentQuery,
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
from line_attendance.errors import MalformedReport


@pytest.mark.parametrize(
    "text, expected",
    [
        ("/start", Enable()),
        ("/END", Disable()),
        ("/Status", StatusQuery()),
        ("/report", ReportQuery()),
        ("/missing", AbsentQuery()),
        ("/roster", RosterQuery()),
        ("/help", Help()),
        ("/settime 09:00 16:00", SetSchedule(("09:00", "16:00"))),
        ("/SETTIME", SetSchedule(())),
        ("/dance now", Unknown("/dance")),
    ],
)
def test_parse_command(text, expected):
    assert parse_command(text) == expected


def test_is_command():
    assert is_command("  /help")
    assert not is_command("33069 home")


def test_parse_report_splits_id_and_status():
    assert parse_report("33069  在家 ") == ("33069", "在家")


def test_parse_report_keeps_multiline_status():
    assert parse_report("33069 out\nback at 5") == ("33069", "out\nback at 5")


@pytest.mark.parametrize("text", ["hello there", "33069", "alice home", ""])
def test_parse_report_rejects_malformed_text(text):
    with pytest.raises(MalformedReport):
        parse_report(text)


def test_every_command_type_has_a_handler(service):
    assert set(service._handlers) == set(COMMAND_TYPES)
