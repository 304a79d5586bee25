"""JSON-RPC transport over one-shot HTTP invocations.

An engine expects a transport it connects to once and then exchanges messages
with indefinitely. An HTTP invocation, on the other hand, delivers one batch and
must answer it before returning. HttpServerTransport reconciles the two:

1. The engine connects once and registers its message handler
2. Each invocation calls handle_batch(), which dispatches the batch to the handler
3. Requests in the batch get a pending future keyed by id
4. The engine's send() resolves those futures as responses come back
5. handle_batch() returns once every request in the batch is answered

Only responses to client requests can travel back. There is no channel for
server-initiated requests or notifications, so those are dropped and logged.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any
from uuid import uuid4

from lambda_mcp.engine import MessageHandler
from pydantic import ValidationError

from lambda_mcp.errors import InvocationSupersededError, ResponseTimeoutError, TransportAlreadyStartedError
from lambda_mcp.schema import (
    JSONRPCError,
    JSONRPCMessage,
    JSONRPCRequest,
    JSONRPCResponse,
    RequestId,
    parse_message,
)

__all__ = ["BatchResult", "HttpServerTransport"]

logger = logging.getLogger(__name__)

BatchResult = JSONRPCMessage | list[JSONRPCMessage] | None


class HttpServerTransport:
    """Transport that correlates engine responses with one HTTP batch at a time.

    Usage:
        transport = HttpServerTransport()
        await engine.connect(transport)  # registers handler, calls start()

        # Once per invocation
        reply = await transport.handle_batch(messages)

    The pending-request table lives as long as the transport, so a warm process
    can reuse it across invocations. The table is cleared at the start of every
    batch, so a batch never sees correlation state from another one. A batch
    still waiting when the next one starts fails with InvocationSupersededError
    instead of hanging. Hosts that may run invocations concurrently should give
    each one its own transport.
    """

    def __init__(self, *, response_timeout: float | None = None) -> None:
        """Initialize the transport.

        Args:
            response_timeout: Seconds to wait for the engine to answer every
                request of a batch. None waits until the host gives up.
        """
        self._started = False
        self._handler: MessageHandler | None = None
        self._response_timeout = response_timeout

        # id -> future resolved by send()
        self._pending: dict[RequestId, asyncio.Future[JSONRPCMessage]] = {}

    async def start(self) -> None:
        """Mark the transport as started.

        Raises:
            TransportAlreadyStartedError: If called a second time.
        """
        if self._started:
            raise TransportAlreadyStartedError()
        self._started = True

    def on_message(self, handler: MessageHandler) -> None:
        """Register the engine's incoming-message handler.

        Raises:
            RuntimeError: If a handler is already registered.
        """
        if self._handler is not None:
            raise RuntimeError("Message handler already registered")
        self._handler = handler

    async def send(self, message: JSONRPCMessage | Mapping[str, Any]) -> None:
        """Deliver an engine message to the request waiting for it.

        Args:
            message: Outgoing message, as a model or as a raw mapping.
        """
        if isinstance(message, Mapping):
            try:
                message = parse_message(message)
            except ValidationError as exc:
                logger.warning(
                    "Dropping malformed outgoing message (id=%r): %d validation error(s)",
                    message.get("id"),
                    exc.error_count(),
                )
                return

        if isinstance(message, (JSONRPCResponse, JSONRPCError)):
            future = self._pending.pop(message.id, None)
            if future is not None and not future.done():
                future.set_result(message)
                return

        logger.warning(
            "Dropping outgoing %s (id=%r): no pending request to deliver it to",
            type(message).__name__,
            getattr(message, "id", None),
        )

    async def close(self) -> None:
        """Nothing to release; there is no open connection."""
        pass

    @property
    def started(self) -> bool:
        return self._started

    @property
    def pending_ids(self) -> list[RequestId]:
        """Ids still waiting for a response."""
        return list(self._pending)

    async def handle_batch(self, messages: list[JSONRPCMessage], *, invocation_id: str | None = None) -> BatchResult:
        """Dispatch a batch to the engine and collect the responses it produces.

        Args:
            messages: Messages of one invocation, in body order.
            invocation_id: Identifier used in log lines; generated when omitted.

        Returns:
            None if the batch contains no requests. Otherwise the response to
            the single request, or a list of responses in request order.

        Raises:
            RuntimeError: If no engine has registered a message handler.
            ResponseTimeoutError: If a response timeout is configured and elapsed.
            InvocationSupersededError: If another batch started before the engine
                answered this one.
        """
        invocation_id = invocation_id or uuid4().hex
        if self._handler is None:
            raise RuntimeError("No message handler registered - connect an engine first")

        self._start_fresh_session()

        requests = [message for message in messages if isinstance(message, JSONRPCRequest)]

        # Register before dispatching so an eager engine cannot answer into the void
        loop = asyncio.get_running_loop()
        futures: list[asyncio.Future[JSONRPCMessage]] = []
        for request in requests:
            future = self._pending.get(request.id)
            if future is None:
                future = loop.create_future()
                self._pending[request.id] = future
            futures.append(future)

        logger.debug(
            "Invocation %s: dispatching %d message(s), awaiting %d response(s)",
            invocation_id,
            len(messages),
            len(requests),
        )

        try:
            for message in messages:
                self._handler(message)

            if not requests:
                return None

            responses = await self._wait_for(requests, futures)
        finally:
            self._discard(futures)

        logger.debug("Invocation %s: collected %d response(s)", invocation_id, len(responses))
        return responses if len(responses) > 1 else responses[0]

    async def _wait_for(
        self,
        requests: list[JSONRPCRequest],
        futures: list[asyncio.Future[JSONRPCMessage]],
    ) -> list[JSONRPCMessage]:
        # gather() keeps input order, whatever order the engine answers in
        gathered = asyncio.gather(*futures)
        if self._response_timeout is None:
            return list(await gathered)

        try:
            return list(await asyncio.wait_for(gathered, timeout=self._response_timeout))
        except asyncio.TimeoutError:
            unresolved = [
                request.id
                for request, future in zip(requests, futures)
                if not future.done() or future.cancelled()
            ]
            logger.warning(
                "Engine did not answer request id(s) %r within %ss",
                unresolved,
                self._response_timeout,
            )
            raise ResponseTimeoutError(unresolved, self._response_timeout) from None

    def _start_fresh_session(self) -> None:
        """Forget correlation state left over from a previous invocation."""
        superseded = [future for future in self._pending.values() if not future.done()]
        if superseded:
            logger.warning("Superseding %d unanswered request(s) of an earlier invocation", len(superseded))
        for future in superseded:
            future.set_exception(InvocationSupersededError())
        self._pending.clear()

    def _discard(self, futures: list[asyncio.Future[JSONRPCMessage]]) -> None:
        owned = {id(future) for future in futures}
        for request_id, future in list(self._pending.items()):
            if id(future) in owned:
                del self._pending[request_id]
                future.cancel()
