"""Test fixtures for lambda-mcp."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from lambda_mcp import JSONRPCMessage, JSONRPCNotification, JSONRPCRequest, JSONRPCResponse
from lambda_mcp.engine import Transport
from lambda_mcp.http import HttpBridge

JSON_HEADERS = {"accept": "application/json, text/event-stream", "content-type": "application/json"}


class ScriptedEngine:
    """In-memory JSON-RPC engine that answers requests from the event loop.

    Each request is answered by a background task, after an optional per-id
    delay, with a result echoing the method and params. Ids listed in
    ``silent_ids`` are never answered.
    """

    def __init__(
        self,
        *,
        delays: dict[Any, float] | None = None,
        silent_ids: set[Any] | None = None,
        notify_on_request: bool = False,
    ) -> None:
        self.delays = delays or {}
        self.silent_ids = silent_ids or set()
        self.notify_on_request = notify_on_request
        self.received: list[JSONRPCMessage] = []
        self.connect_calls = 0
        self.transport: Transport | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    async def connect(self, transport: Transport) -> None:
        self.connect_calls += 1
        self.transport = transport
        transport.on_message(self._on_message)
        await transport.start()

    def _on_message(self, message: JSONRPCMessage) -> None:
        self.received.append(message)
        if isinstance(message, JSONRPCRequest) and message.id not in self.silent_ids:
            task = asyncio.create_task(self._reply(message))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _reply(self, request: JSONRPCRequest) -> None:
        await asyncio.sleep(self.delays.get(request.id, 0))
        assert self.transport is not None
        if self.notify_on_request:
            await self.transport.send(
                JSONRPCNotification(jsonrpc="2.0", method="notifications/progress", params={"id": request.id})
            )
        await self.transport.send(
            JSONRPCResponse(
                jsonrpc="2.0",
                id=request.id,
                result={"content": [{"type": "text", "text": f"{request.method}:{request.id}"}]},
            )
        )


@pytest.fixture
def engine() -> ScriptedEngine:
    return ScriptedEngine()


@pytest.fixture
def bridge(engine: ScriptedEngine) -> HttpBridge:
    return HttpBridge(engine)
