from __future__ import annotations

import asyncio
import json

import httpx

from line_attendance.line_client import MAX_TEXT_LENGTH, LineClient, text_message


def make_client(handler):
    return LineClient("token", transport=httpx.MockTransport(handler))


def test_send_pushes_text_message():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    async def scenario():
        client = make_client(handler)
        try:
            return await client.send("G1", "hello")
        finally:
            await client.close()

    assert asyncio.run(scenario()) is True
    request = seen[0]
    assert request.url.path == "/v2/bot/message/push"
    assert request.headers["Authorization"] == "Bearer token"
    assert json.loads(request.content) == {"to": "G1", "messages": [{"type": "text", "text": "hello"}]}


def test_send_reports_failure_without_raising():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"message": "bad request"})

    async def scenario():
        client = make_client(handler)
        try:
            return await client.send("G1", "hello"), await client.send_reply("r1", "hi")
        finally:
            await client.close()

    assert asyncio.run(scenario()) == (False, False)


def test_send_survives_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    async def scenario():
        client = make_client(handler)
        try:
            return await client.send("G1", "hello")
        finally:
            await client.close()

    assert asyncio.run(scenario()) is False


def test_long_text_is_truncated():
    message = text_message("x" * (MAX_TEXT_LENGTH + 10))
    assert len(message["text"]) == MAX_TEXT_LENGTH
