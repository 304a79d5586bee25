"""AWS Lambda host for the bridge.

Accepts API Gateway (REST and HTTP API) and ALB proxy events. The handler keeps
one event loop for the life of the execution environment, so the engine session
and any tasks the engine keeps running survive between warm invocations.
Lambda runs one invocation at a time per environment, which is what makes
reusing the transport safe here.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from lambda_mcp.config import BridgeSettings
from lambda_mcp.engine import RpcEngine

from .bridge import HttpBridge, HttpResponse

__all__ = ["LambdaHandler", "make_lambda_handler"]

logger = logging.getLogger(__name__)


class LambdaHandler:
    """Callable ``handler(event, context)`` driving an HttpBridge.

    A closed handler cannot be called again: the engine session it drove lived
    on the closed loop. Build a new handler and bridge instead.
    """

    def __init__(self, bridge: HttpBridge) -> None:
        self._bridge = bridge
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closed = False

    def __call__(self, event: dict[str, Any], context: Any = None) -> dict[str, Any]:
        if self._closed:
            raise RuntimeError("LambdaHandler is closed")
        return self._get_loop().run_until_complete(self.handle_event(event))

    async def handle_event(self, event: dict[str, Any]) -> dict[str, Any]:
        """Run one proxy event through the bridge and build the proxy result."""
        response = await self._bridge.handle(
            event.get("headers") or {},
            event.get("body"),
            is_base64_encoded=bool(event.get("isBase64Encoded", False)),
        )
        return self._to_result(response)

    @staticmethod
    def _to_result(response: HttpResponse) -> dict[str, Any]:
        return {
            "statusCode": response.status_code,
            "headers": dict(response.headers),
            "body": response.body,
            "isBase64Encoded": False,
        }

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.new_event_loop()
            logger.debug("Created event loop for Lambda execution environment")
        return self._loop

    def close(self) -> None:
        """Close the event loop. Only needed outside Lambda (tests, local runs).

        Further calls raise RuntimeError.
        """
        self._closed = True
        if self._loop is not None and not self._loop.is_closed():
            self._loop.close()
        self._loop = None


def make_lambda_handler(engine: RpcEngine, settings: BridgeSettings | None = None) -> LambdaHandler:
    """Build a handler for a module-level ``handler = make_lambda_handler(engine)``."""
    settings = settings or BridgeSettings()
    return LambdaHandler(HttpBridge(engine, response_timeout=settings.response_timeout))
