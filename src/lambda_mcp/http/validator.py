"""Header negotiation and body parsing for one HTTP invocation."""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from lambda_mcp.errors import NotAcceptableError, UnprocessableEntityError, UnsupportedMediaTypeError
from lambda_mcp.schema import JSONRPCMessage, parse_messages as validate_batch

__all__ = ["JSON_MEDIA_TYPE", "header_value", "parse_messages"]

JSON_MEDIA_TYPE = "application/json"


def header_value(headers: Mapping[str, str] | None, name: str) -> str | None:
    """Look up a header case-insensitively.

    Gateway events keep whatever casing the client sent, so both ``Accept``
    and ``accept`` must be found.
    """
    if not headers:
        return None
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def _decode_body(body: str | bytes, is_base64_encoded: bool) -> str:
    if is_base64_encoded:
        body = base64.b64decode(body)
    if isinstance(body, bytes):
        return body.decode("utf-8")
    return body


def parse_messages(
    body: str | bytes | None,
    *,
    accept: str | None,
    content_type: str | None,
    is_base64_encoded: bool = False,
) -> list[JSONRPCMessage]:
    """Negotiate headers and turn a raw body into an ordered message batch.

    Args:
        body: Raw request body, as received from the host.
        accept: Value of the ``Accept`` header, if any.
        content_type: Value of the ``Content-Type`` header, if any.
        is_base64_encoded: Whether the host base64-encoded the body.

    Returns:
        The messages in body order. A single JSON object becomes a one-element list.

    Raises:
        NotAcceptableError: ``accept`` is missing or excludes application/json.
        UnsupportedMediaTypeError: ``content_type`` is missing or not application/json.
        UnprocessableEntityError: The body is missing, undecodable, not JSON, or any
            element is not a valid JSON-RPC message.
    """
    if accept is None or JSON_MEDIA_TYPE not in accept:
        raise NotAcceptableError()

    if content_type is None or JSON_MEDIA_TYPE not in content_type:
        raise UnsupportedMediaTypeError()

    if body is None:
        raise UnprocessableEntityError()

    try:
        payload: Any = json.loads(_decode_body(body, is_base64_encoded))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise UnprocessableEntityError() from exc

    if not isinstance(payload, list):
        payload = [payload]

    try:
        return validate_batch(payload)
    except ValidationError as exc:
        raise UnprocessableEntityError() from exc
