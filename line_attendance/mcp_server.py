"""MCP server exposing read-only LINE Attendance data tools."""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .db import Database
from .service import AttendanceService

mcp = FastMCP("line-attendance")


class _ReadOnlyNotifier:
    """The MCP process never talks to LINE."""

    async def send(self, destination: str, text: str) -> bool:
        return False

    async def send_reply(self, reply_token: str, text: str) -> bool:
        return False


def _load_service() -> AttendanceService:
    settings = load_settings()
    service = AttendanceService(settings, Database(settings.database_path), _ReadOnlyNotifier())
    service.load(persist=False)
    return service


@mcp.tool()
async def get_records() -> list:
    """Return every stored attendance record."""

    return _load_service().records()


@mcp.tool()
async def get_today_records() -> dict:
    """Return the attendance records filed under today's date."""

    return _load_service().today_records()


@mcp.tool()
async def get_roster() -> list:
    """Return the member roster in roster order."""

    return _load_service().roster_members()


@mcp.tool()
async def get_config() -> dict:
    """Return the reporting switch, broadcast target and windows."""

    return _load_service().config()


@mcp.tool()
async def get_current_report() -> dict:
    """Return the structured report for the current window."""

    return _load_service().current_report()


@mcp.tool()
async def get_absentees() -> dict:
    """Return the members who have not reported for the current window."""

    return _load_service().current_absentees()


if __name__ == "__main__":  # pragma: no cover
    mcp.run()


__all__ = [
    "mcp",
    "get_records",
    "get_today_records",
    "get_roster",
    "get_config",
    "get_current_report",
    "get_absentees",
]
