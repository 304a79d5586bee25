"""HTTP server example: a code-review tool behind the one-shot bridge.

This example shows how to serve a JSON-RPC engine over plain HTTP POSTs using
HttpBridge. The same engine is exported as an AWS Lambda handler.

The engine is deliberately tiny: it answers ``initialize``, ``tools/list`` and
``tools/call`` for a single ``code-review`` tool that forwards the snippet to a
review service at ``$STACK_ENDPOINT``.

Architecture:
    - Starlette (or API Gateway + Lambda) receives one POST per invocation
    - HttpBridge validates headers and body, then hands the batch to the transport
    - HttpServerTransport dispatches each message to CodeReviewEngine
    - The engine answers asynchronously via transport.send()
    - The bridge waits for every response and renders the HTTP reply

Requirements:
    pip install lambda-mcp httpx

Usage:
    STACK_ENDPOINT=https://review.example.com/review python examples/code_review_server.py

Then call it:
    python examples/http_client.py http://localhost:8080/mcp

Lambda:
    handler = examples.code_review_server.handler
"""

import asyncio
import json
import logging
import os
from typing import Any

import httpx

from lambda_mcp import (
    ErrorData,
    JSONRPCError,
    JSONRPCMessage,
    JSONRPCRequest,
    JSONRPCResponse,
    Transport,
)
from lambda_mcp.config import BridgeSettings, configure_logging
from lambda_mcp.http import HttpBridge, create_app, make_lambda_handler

logger = logging.getLogger(__name__)

STACK_ENDPOINT = "STACK_ENDPOINT"

CODE_REVIEW_TOOL = {
    "name": "code-review",
    "description": (
        "Static review of a small, self-contained code snippet (5-50 lines). Reports bugs, code smells "
        "and suggestions on readability, performance and maintainability. Does not execute code."
    ),
    "inputSchema": {
        "type": "object",
        "properties": {"code": {"type": "string"}},
        "required": ["code"],
    },
}


class CodeReviewEngine:
    """Minimal JSON-RPC engine exposing one tool."""

    def __init__(self) -> None:
        self._transport: Transport | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    async def connect(self, transport: Transport) -> None:
        """Register with the transport and start it."""
        self._transport = transport
        transport.on_message(self._on_message)
        await transport.start()

    def _on_message(self, message: JSONRPCMessage) -> None:
        if not isinstance(message, JSONRPCRequest):
            logger.debug("Ignoring %s", type(message).__name__)
            return
        task = asyncio.create_task(self._answer(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _answer(self, request: JSONRPCRequest) -> None:
        assert self._transport is not None
        try:
            result = await self._dispatch(request.method, request.params or {})
            reply: JSONRPCMessage = JSONRPCResponse(jsonrpc="2.0", id=request.id, result=result)
        except LookupError as exc:
            reply = JSONRPCError(jsonrpc="2.0", id=request.id, error=ErrorData(code=-32601, message=str(exc)))
        await self._transport.send(reply)

    async def _dispatch(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        if method == "initialize":
            return {
                "protocolVersion": params.get("protocolVersion", "2025-03-26"),
                "capabilities": {"tools": {}},
                "serverInfo": {"name": "code-review-server", "version": "1.0.0"},
            }
        if method == "tools/list":
            return {"tools": [CODE_REVIEW_TOOL]}
        if method == "tools/call" and params.get("name") == "code-review":
            code = (params.get("arguments") or {}).get("code", "")
            return {"content": [{"type": "text", "text": await review(code)}]}
        raise LookupError(f"Method not found: {method}")


async def review(code: str) -> str:
    """Send code to the review service; failures become a readable tool result."""
    try:
        endpoint = os.environ.get(STACK_ENDPOINT)
        if not endpoint:
            raise RuntimeError("STACK_ENDPOINT environment variable is not defined")

        async with httpx.AsyncClient(timeout=20.0) as client:
            response = await client.post(endpoint, json={"code": code})
            response.raise_for_status()
        return json.dumps(response.json()["data"])
    except (RuntimeError, httpx.HTTPError, KeyError, ValueError) as exc:
        logger.error("Error performing code review: %s", exc)
        return f"Error performing code review: {exc}"


settings = BridgeSettings()
engine = CodeReviewEngine()

# AWS Lambda entry point
handler = make_lambda_handler(engine, settings)


if __name__ == "__main__":
    import uvicorn

    configure_logging(settings)
    # uvicorn serves requests concurrently: one engine per request
    bridge = HttpBridge(engine_factory=CodeReviewEngine, response_timeout=settings.response_timeout)
    app = create_app(bridge, path=settings.path)

    logger.info("Starting code review server on http://0.0.0.0:8080%s", settings.path)
    uvicorn.run(app, host="0.0.0.0", port=8080, log_level="info")
