"""Contracts between the HTTP transport and the JSON-RPC engine.

The engine (the component that routes methods to tools) is not part of this
package. It only has to satisfy :class:`RpcEngine`: on ``connect`` it registers
a message handler on the transport, starts it, and from then on emits its
replies through ``transport.send``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from .schema import JSONRPCMessage

__all__ = ["EngineSession", "MessageHandler", "RpcEngine", "Transport"]

logger = logging.getLogger(__name__)

MessageHandler = Callable[[JSONRPCMessage], None]


@runtime_checkable
class Transport(Protocol):
    """Capability set an engine relies on to exchange messages."""

    async def start(self) -> None:
        """Start the transport. May only be called once."""
        ...

    async def send(self, message: JSONRPCMessage | Mapping[str, Any]) -> None:
        """Emit an outgoing message."""
        ...

    async def close(self) -> None:
        """Release the transport."""
        ...

    def on_message(self, handler: MessageHandler) -> None:
        """Register the handler that receives every incoming message."""
        ...


@runtime_checkable
class RpcEngine(Protocol):
    """Protocol for JSON-RPC engines that can be attached to a transport."""

    async def connect(self, transport: Transport) -> None:
        """Attach to ``transport``: register a handler and start it."""
        ...


class EngineSession:
    """One-time connection between an engine and a transport.

    Concurrent callers of :meth:`ensure_connected` all wait on the same
    handshake. A failed handshake is not remembered, so the next invocation
    tries again.
    """

    def __init__(self, engine: RpcEngine, transport: Transport) -> None:
        self._engine = engine
        self._transport = transport
        self._lock = asyncio.Lock()
        self._connected = False

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def connected(self) -> bool:
        return self._connected

    async def ensure_connected(self) -> None:
        if self._connected:
            return
        async with self._lock:
            if self._connected:
                return
            await self._engine.connect(self._transport)
            self._connected = True
            logger.info("Engine %s connected to transport", type(self._engine).__name__)
