"""Starlette host for the bridge.

Serves a single POST route. Run it behind uvicorn for a long-lived process
where every request is one invocation. uvicorn serves requests concurrently,
so give each invocation its own engine:

    app = create_app(HttpBridge(engine_factory=make_engine))
    uvicorn.run(app, host="0.0.0.0", port=8080)
"""

from __future__ import annotations

import logging

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route

from .bridge import HttpBridge

__all__ = ["create_app"]

logger = logging.getLogger(__name__)


def create_app(bridge: HttpBridge, *, path: str = "/mcp", debug: bool = False) -> Starlette:
    """Build a Starlette app that forwards POSTs on ``path`` to ``bridge``.

    Args:
        bridge: Bridge that runs each invocation.
        path: Route of the endpoint.
        debug: Starlette debug mode (tracebacks in 500 responses).

    Returns:
        The ASGI application.
    """

    async def endpoint(request: Request) -> Response:
        body = await request.body()
        result = await bridge.handle(request.headers, body)
        return Response(
            content=result.body,
            status_code=result.status_code,
            headers=result.headers,
        )

    logger.debug("Mounting JSON-RPC endpoint at %s", path)
    return Starlette(debug=debug, routes=[Route(path, endpoint, methods=["POST"])])
