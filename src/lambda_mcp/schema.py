"""JSON-RPC 2.0 message models.

Every model forbids unknown keys, so a raw message matches exactly one variant
of :data:`JSONRPCMessage`:

- ``JSONRPCRequest``: method + id, expects exactly one response
- ``JSONRPCNotification``: method, no id, never answered
- ``JSONRPCResponse``: id + result
- ``JSONRPCError``: id + error
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, TypeAdapter

__all__ = [
    "JSONRPC_VERSION",
    "ErrorData",
    "JSONRPCError",
    "JSONRPCMessage",
    "JSONRPCNotification",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "RequestId",
    "dump_messages",
    "is_request",
    "is_response",
    "parse_message",
    "parse_messages",
]

JSONRPC_VERSION = "2.0"

RequestId = Union[StrictStr, StrictInt]


class _Message(BaseModel):
    model_config = ConfigDict(extra="forbid")

    jsonrpc: Literal["2.0"]


class JSONRPCRequest(_Message):
    """A request that expects a response."""

    id: RequestId
    method: str
    params: dict[str, Any] | None = None


class JSONRPCNotification(_Message):
    """A one-way message; no response is ever produced for it."""

    method: str
    params: dict[str, Any] | None = None


class JSONRPCResponse(_Message):
    """A successful (non-error) response to a request."""

    id: RequestId
    result: dict[str, Any]


class ErrorData(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: StrictInt
    message: str
    data: Any = None


class JSONRPCError(_Message):
    """A response to a request that indicates an error occurred."""

    id: RequestId
    error: ErrorData


JSONRPCMessage = Union[JSONRPCRequest, JSONRPCNotification, JSONRPCResponse, JSONRPCError]

_message_adapter: TypeAdapter[JSONRPCMessage] = TypeAdapter(JSONRPCMessage)
_batch_adapter: TypeAdapter[list[JSONRPCMessage]] = TypeAdapter(list[JSONRPCMessage])


def parse_message(data: Mapping[str, Any]) -> JSONRPCMessage:
    """Validate a single decoded message.

    Raises:
        pydantic.ValidationError: If the mapping is not a valid message.
    """
    return _message_adapter.validate_python(data)


def parse_messages(data: Sequence[Any]) -> list[JSONRPCMessage]:
    """Validate a decoded batch; one invalid element fails the whole batch."""
    return _batch_adapter.validate_python(data)


def dump_messages(messages: JSONRPCMessage | list[JSONRPCMessage]) -> str:
    """Serialize one message or an ordered list of messages to JSON text.

    Only fields that were actually set are emitted, so an omitted ``params``
    stays omitted instead of turning into ``null``.
    """
    if isinstance(messages, list):
        raw = _batch_adapter.dump_json(messages, exclude_unset=True)
    else:
        raw = _message_adapter.dump_json(messages, exclude_unset=True)
    return raw.decode("utf-8")


def is_request(message: JSONRPCMessage) -> bool:
    return isinstance(message, JSONRPCRequest)


def is_response(message: JSONRPCMessage) -> bool:
    return isinstance(message, (JSONRPCResponse, JSONRPCError))
