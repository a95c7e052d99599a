"""HTTP client for the LINE Messaging API."""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from .errors import NotificationFailure

LINE_API_BASE = "https://api.line.me/v2/bot"
MAX_TEXT_LENGTH = 5000

logger = logging.getLogger(__name__)


class LineApiError(NotificationFailure):
    """Raised when LINE returns an error response."""

    def __init__(self, method: str, status_code: int, error: str) -> None:
        super().__init__(f"LINE API error for {method} ({status_code}): {error}")
        self.method = method
        self.status_code = status_code
        self.error = error


def text_message(text: str) -> Dict[str, str]:
    if len(text) > MAX_TEXT_LENGTH:
        text = text[: MAX_TEXT_LENGTH - 1] + "…"
    return {"type": "text", "text": text}


class LineClient:
    """Async wrapper around the reply and push endpoints."""

    def __init__(self, token: str, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._client = httpx.AsyncClient(
            base_url=LINE_API_BASE,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _post(self, method: str, payload: Dict[str, Any]) -> None:
        response = await self._client.post(method, json=payload)
        if response.status_code >= 400:
            raise LineApiError(method, response.status_code, response.text)

    async def reply(self, reply_token: str, text: str) -> None:
        await self._post("message/reply", {"replyToken": reply_token, "messages": [text_message(text)]})

    async def push(self, to: str, text: str) -> None:
        await self._post("message/push", {"to": to, "messages": [text_message(text)]})

    async def send(self, destination: str, text: str) -> bool:
        """Push ``text`` to ``destination``; failures are logged, never raised."""

        try:
            await self.push(destination, text)
        except (LineApiError, httpx.HTTPError) as exc:
            logger.error("Push to %s failed: %s", destination, exc)
            return False
        return True

    async def send_reply(self, reply_token: str, text: str) -> bool:
        try:
            await self.reply(reply_token, text)
        except (LineApiError, httpx.HTTPError) as exc:
            logger.error("Reply failed: %s", exc)
            return False
        return True


__all__ = ["LineClient", "LineApiError", "text_message"]
