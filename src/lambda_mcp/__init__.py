"""Serve message-oriented JSON-RPC engines over one-shot HTTP invocations."""

from .engine import EngineSession, RpcEngine, Transport
from .errors import (
    BridgeError,
    InvocationSupersededError,
    NotAcceptableError,
    ProtocolError,
    ResponseTimeoutError,
    TransportAlreadyStartedError,
    UnprocessableEntityError,
    UnsupportedMediaTypeError,
)
from .schema import (
    ErrorData,
    JSONRPCError,
    JSONRPCMessage,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
)

__all__ = [
    "BridgeError",
    "EngineSession",
    "ErrorData",
    "InvocationSupersededError",
    "JSONRPCError",
    "JSONRPCMessage",
    "JSONRPCNotification",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "NotAcceptableError",
    "ProtocolError",
    "ResponseTimeoutError",
    "RpcEngine",
    "Transport",
    "TransportAlreadyStartedError",
    "UnprocessableEntityError",
    "UnsupportedMediaTypeError",
]
