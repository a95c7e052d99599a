from __future__ import annotations

import asyncio

from line_attendance import mcp_server
from line_attendance.db import Database


def test_query_tools_do_not_write(tmp_path, monkeypatch):
    db_path = tmp_path / "attendance.db"
    monkeypatch.setenv("LINE_ACCESS_TOKEN", "test-token")
    monkeypatch.setenv("DATABASE_PATH", str(db_path))
    monkeypatch.setenv("ROSTER_PATH", str(tmp_path / "missing.csv"))

    config = asyncio.run(mcp_server.get_config())
    roster = asyncio.run(mcp_server.get_roster())
    records = asyncio.run(mcp_server.get_records())

    assert config["windows"] == ["09:00", "16:00", "21:00"]
    assert roster
    assert records == []

    database = Database(db_path)
    assert database.load_state() is None
    assert database.load_roster() == []
