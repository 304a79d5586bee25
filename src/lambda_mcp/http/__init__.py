"""One-shot HTTP transport for JSON-RPC engines.

This module lets an engine that expects a persistent, bidirectional transport
serve single HTTP request/response invocations.

Key components:
    - HttpServerTransport: Correlates engine responses with one batch at a time
    - HttpBridge: Negotiates headers, parses the batch, renders the HTTP response
    - create_app: Starlette app exposing the bridge as a POST endpoint
    - LambdaHandler: API Gateway / ALB event handler around the bridge
"""

from .adapter import HttpServerTransport
from .app import create_app
from .bridge import HttpBridge, HttpResponse, InvocationContext
from .lambda_handler import LambdaHandler, make_lambda_handler
from .validator import header_value, parse_messages

__all__ = [
    "HttpBridge",
    "HttpResponse",
    "HttpServerTransport",
    "InvocationContext",
    "LambdaHandler",
    "create_app",
    "header_value",
    "make_lambda_handler",
    "parse_messages",
]
