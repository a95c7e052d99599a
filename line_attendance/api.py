"""FastAPI application exposing the LINE webhook and read-only queries."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from .config import Settings, load_settings
from .db import Database
from .line_client import LineClient
from .reminders import ReminderScheduler
from .service import AttendanceService

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[AttendanceService] = None,
    reminders: Optional[ReminderScheduler] = None,
) -> FastAPI:
    settings = settings or load_settings()
    line_client: Optional[LineClient] = None
    if service is None:
        line_client = LineClient(settings.line_access_token)
        service = AttendanceService(settings, Database(settings.database_path), line_client)
    service.load()
    if reminders is None:
        reminders = ReminderScheduler(service, settings.timezone, settings.reminder_lead_minutes)

    async def verify_api_key(x_api_key: Optional[str] = Header(None, alias="X-API-Key")) -> None:
        if settings.api_key and x_api_key != settings.api_key:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid api key")

    app = FastAPI(title="LINE Attendance API", version="1.0.0")

    @app.on_event("startup")
    async def startup_event() -> None:  # pragma: no cover - io bound
        reminders.start()

    @app.on_event("shutdown")
    async def shutdown_event() -> None:  # pragma: no cover - io bound
        reminders.shutdown()
        if line_client is not None:
            await line_client.close()

    def get_service() -> AttendanceService:
        return service

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        return "LINE Bot Webhook is running!"

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/webhook", response_class=PlainTextResponse)
    async def webhook_ready() -> str:
        return "Webhook endpoint is ready"

    @app.post("/webhook", response_class=PlainTextResponse)
    async def webhook(request: Request, svc: AttendanceService = Depends(get_service)) -> str:
        try:
            body = await request.json()
        except ValueError:
            logger.warning("Ignoring webhook call with a non-JSON body")
            return "ok"
        if isinstance(body, dict):
            await svc.handle_events(body.get("events"))
        return "ok"

    @app.get("/api/records")
    async def get_records(
        _: None = Depends(verify_api_key),
        svc: AttendanceService = Depends(get_service),
    ) -> List[Dict[str, Any]]:
        return svc.records()

    @app.get("/api/roster")
    async def get_roster(
        _: None = Depends(verify_api_key),
        svc: AttendanceService = Depends(get_service),
    ) -> List[Dict[str, str]]:
        return svc.roster_members()

    @app.get("/api/config")
    async def get_config(
        _: None = Depends(verify_api_key),
        svc: AttendanceService = Depends(get_service),
    ) -> Dict[str, Any]:
        return svc.config()

    @app.get("/api/report/today")
    async def get_today_report(
        _: None = Depends(verify_api_key),
        svc: AttendanceService = Depends(get_service),
    ) -> Dict[str, Any]:
        return svc.today_records()

    @app.get("/api/report/current")
    async def get_current_report(
        _: None = Depends(verify_api_key),
        svc: AttendanceService = Depends(get_service),
    ) -> Dict[str, Any]:
        return svc.current_report()

    return app


__all__ = ["create_app"]
