"""Error types for lambda-mcp.

All errors inherit from BridgeError for easy catching at the host level.
ProtocolError subclasses are rendered as HTTP error responses carrying a
JSON-RPC error envelope; everything else is a programming error and propagates.
"""

from __future__ import annotations

from typing import Any

from .schema import JSONRPC_VERSION, RequestId

# Header- and body-level failures happen before any request id is known.
PLACEHOLDER_ERROR_ID = 123

SERVER_ERROR_CODE = -32000


class BridgeError(Exception):
    """Base class for all lambda-mcp errors."""

    pass


class ProtocolError(BridgeError):
    """An invocation-level failure that maps onto an HTTP status code."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None, *, code: int = SERVER_ERROR_CODE) -> None:
        self.message = message or self.default_message
        self.code = code
        super().__init__(self.message)

    def to_envelope(self) -> dict[str, Any]:
        """Build the JSON-RPC error object sent as the HTTP response body."""
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": PLACEHOLDER_ERROR_ID,
            "error": {"code": self.code, "message": self.message},
        }


class NotAcceptableError(ProtocolError):
    """Raised when the client does not accept application/json."""

    status_code = 406
    default_message = "Not Acceptable: Client must accept application/json"


class UnsupportedMediaTypeError(ProtocolError):
    """Raised when the request body is not declared as application/json."""

    status_code = 415
    default_message = "Unsupported Media Type: Content-Type must be application/json"


class UnprocessableEntityError(ProtocolError):
    """Raised when the body cannot be decoded, parsed or validated."""

    status_code = 422
    default_message = "Unprocessable Entity: Invalid or malformed JSON was provided"


class ResponseTimeoutError(ProtocolError):
    """Raised when the engine did not answer every request in time."""

    status_code = 504

    def __init__(self, request_ids: list[RequestId], timeout_seconds: float) -> None:
        self.request_ids = request_ids
        self.timeout_seconds = timeout_seconds
        ids = ", ".join(repr(request_id) for request_id in request_ids)
        super().__init__(f"Gateway Timeout: no response for request id(s) {ids} after {timeout_seconds}s")


class InvocationSupersededError(ProtocolError):
    """Raised when a newer invocation reset the transport before the engine answered."""

    status_code = 503
    default_message = "Service Unavailable: superseded by a newer invocation before the engine answered"


class TransportAlreadyStartedError(BridgeError, RuntimeError):
    """Raised when start() is called twice on the same transport."""

    def __init__(self) -> None:
        super().__init__("HttpServerTransport already started")
