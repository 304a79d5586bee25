"""Invocation lifecycle: negotiate, parse, correlate, render.

HttpBridge owns nothing protocol-specific. It validates the incoming request
(pre-phase), hands the parsed batch to the transport once the engine session
is up (post-phase), and turns the outcome into an HttpResponse that a host
(ASGI app, Lambda handler) writes back to the caller.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from uuid import uuid4

from lambda_mcp.engine import EngineSession, RpcEngine
from lambda_mcp.errors import ProtocolError
from lambda_mcp.schema import JSONRPCMessage, dump_messages

from .adapter import HttpServerTransport
from .validator import JSON_MEDIA_TYPE, header_value, parse_messages

__all__ = ["HttpBridge", "HttpResponse", "InvocationContext"]

logger = logging.getLogger(__name__)


@dataclass
class InvocationContext:
    """State of one HTTP invocation, discarded once the response is rendered."""

    messages: list[JSONRPCMessage]
    invocation_id: str = field(default_factory=lambda: uuid4().hex)


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    body: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def accepted(cls) -> HttpResponse:
        return cls(status_code=202)

    @classmethod
    def with_json(cls, body: str, status_code: int = 200) -> HttpResponse:
        return cls(status_code=status_code, body=body, headers={"content-type": JSON_MEDIA_TYPE})

    @classmethod
    def from_error(cls, error: ProtocolError) -> HttpResponse:
        return cls.with_json(json.dumps(error.to_envelope()), status_code=error.status_code)


class HttpBridge:
    """Runs HTTP invocations against a JSON-RPC engine.

    Two deployment modes:

    - ``HttpBridge(engine)``: one transport and engine session for the life of
      the process. Invocations served by a warm process reuse them. Each new
      invocation resets the transport, so one still waiting for the engine
      is answered 503. Use it where the host runs one invocation at a time,
      as Lambda does.
    - ``HttpBridge(engine_factory=make_engine)``: a fresh engine, transport and
      session per invocation. Nothing is shared between invocations, which
      suits hosts that serve concurrent requests, such as a Starlette app.
    """

    def __init__(
        self,
        engine: RpcEngine | None = None,
        *,
        engine_factory: Callable[[], RpcEngine] | None = None,
        response_timeout: float | None = None,
    ) -> None:
        if (engine is None) == (engine_factory is None):
            raise ValueError("Provide exactly one of engine or engine_factory")

        self._engine_factory = engine_factory
        self._response_timeout = response_timeout
        self._shared: tuple[EngineSession, HttpServerTransport] | None = None
        if engine is not None:
            self._shared = self._new_session(engine)

    @property
    def session(self) -> EngineSession | None:
        """The shared engine session, or None when running per invocation."""
        return self._shared[0] if self._shared is not None else None

    def _new_session(self, engine: RpcEngine) -> tuple[EngineSession, HttpServerTransport]:
        transport = HttpServerTransport(response_timeout=self._response_timeout)
        return EngineSession(engine, transport), transport

    def before(
        self,
        headers: Mapping[str, str] | None,
        body: str | bytes | None,
        *,
        is_base64_encoded: bool = False,
    ) -> InvocationContext:
        """Pre-phase: negotiate headers and parse the batch.

        Raises:
            ProtocolError: With the HTTP status the caller should receive.
        """
        messages = parse_messages(
            body,
            accept=header_value(headers, "accept"),
            content_type=header_value(headers, "content-type"),
            is_base64_encoded=is_base64_encoded,
        )
        return InvocationContext(messages=messages)

    def _session_for_invocation(self) -> tuple[EngineSession, HttpServerTransport]:
        if self._shared is not None:
            return self._shared
        if self._engine_factory is None:
            raise RuntimeError("HttpBridge has neither an engine nor an engine factory")
        return self._new_session(self._engine_factory())

    async def after(self, context: InvocationContext) -> HttpResponse:
        """Post-phase: run the batch through the engine and render the reply."""
        session, transport = self._session_for_invocation()
        await session.ensure_connected()

        reply = await transport.handle_batch(context.messages, invocation_id=context.invocation_id)

        if reply is None:
            return HttpResponse.accepted()
        return HttpResponse.with_json(dump_messages(reply))

    async def handle(
        self,
        headers: Mapping[str, str] | None,
        body: str | bytes | None,
        *,
        is_base64_encoded: bool = False,
    ) -> HttpResponse:
        """Run both phases for one invocation.

        Protocol errors become error responses; anything else propagates to the host.
        """
        try:
            context = self.before(headers, body, is_base64_encoded=is_base64_encoded)
            return await self.after(context)
        except ProtocolError as exc:
            logger.info("Rejecting invocation with %d: %s", exc.status_code, exc.message)
            return HttpResponse.from_error(exc)
