from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi.testclient import TestClient

from conftest import TAIPEI, make_settings
from line_attendance.api import create_app
from line_attendance.db import Database
from line_attendance.reminders import ReminderScheduler
from line_attendance.service import AttendanceService


def make_client(tmp_path, notifier, clock, **overrides):
    settings = make_settings(tmp_path, **overrides)
    settings.roster_path.write_text("id,name,note\n33069,Alice,\n33070,Bob,\n", encoding="utf-8")
    service = AttendanceService(settings, Database(settings.database_path), notifier, clock=clock)
    reminders = ReminderScheduler(service, TAIPEI, scheduler=AsyncIOScheduler(timezone=TAIPEI))
    app = create_app(settings, service=service, reminders=reminders)
    return TestClient(app), service


def webhook_body(text, source=None):
    return {
        "events": [
            {
                "type": "message",
                "replyToken": "r1",
                "source": source or {"type": "group", "groupId": "G1", "userId": "U1"},
                "message": {"type": "text", "text": text},
            }
        ]
    }


def test_webhook_records_report(tmp_path, notifier, clock):
    client, service = make_client(tmp_path, notifier, clock)

    response = client.post("/webhook", json=webhook_body("33069 home"))

    assert response.status_code == 200
    assert response.text == "ok"
    assert service.state.broadcast_target == "G1"
    assert notifier.replies[0][0] == "r1"

    records = client.get("/api/records").json()
    assert [(r["member_id"], r["window"], r["date"]) for r in records] == [("33069", "09:00", "2024-01-01")]


def test_webhook_tolerates_bad_payloads(tmp_path, notifier, clock):
    client, _ = make_client(tmp_path, notifier, clock)

    assert client.post("/webhook", content=b"not json").status_code == 200
    assert client.post("/webhook", json={"events": []}).status_code == 200
    assert client.post("/webhook", json=[1, 2]).status_code == 200
    assert client.get("/webhook").status_code == 200


def test_query_endpoints(tmp_path, notifier, clock):
    client, _ = make_client(tmp_path, notifier, clock)
    client.post("/webhook", json=webhook_body("33070 out"))

    assert [m["id"] for m in client.get("/api/roster").json()] == ["33069", "33070"]
    assert client.get("/api/config").json()["windows"] == ["09:00", "16:00", "21:00"]

    today = client.get("/api/report/today").json()
    assert today["date"] == "2024-01-01"
    assert len(today["records"]) == 1

    current = client.get("/api/report/current").json()
    assert current["present_count"] == 1
    assert current["last_submitter"] == "33070"


def test_api_key_required_when_configured(tmp_path, notifier, clock):
    client, _ = make_client(tmp_path, notifier, clock, api_key="secret")

    assert client.get("/api/records").status_code == 401
    assert client.get("/api/records", headers={"X-API-Key": "secret"}).status_code == 200
    assert client.get("/healthz").json() == {"status": "ok"}
