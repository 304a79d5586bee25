"""HTTP client example for the one-shot bridge.

Counterpart to code_review_server.py. Each call is a single POST: a request,
a batch of requests with a notification in between, and a lone notification
(which is answered with 202 and an empty body).

Requirements:
    pip install httpx

Usage:
    # Start the server first (in another terminal):
    python examples/code_review_server.py

    # Then run the client:
    python examples/http_client.py http://localhost:8080/mcp
"""

import asyncio
import json
import logging
import sys
from typing import Any

import httpx

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

HEADERS = {"accept": "application/json", "content-type": "application/json"}


async def post(client: httpx.AsyncClient, url: str, payload: Any) -> Any:
    response = await client.post(url, headers=HEADERS, json=payload)
    if response.status_code == 202:
        logger.info("202 Accepted (no reply expected)")
        return None
    response.raise_for_status()
    return response.json()


async def main(url: str) -> None:
    async with httpx.AsyncClient(timeout=30.0) as client:
        init = await post(
            client,
            url,
            {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "2025-03-26"}},
        )
        logger.info("initialize -> %s", json.dumps(init))

        batch = await post(
            client,
            url,
            [
                {"jsonrpc": "2.0", "id": 2, "method": "tools/list"},
                {"jsonrpc": "2.0", "method": "notifications/initialized"},
                {
                    "jsonrpc": "2.0",
                    "id": 3,
                    "method": "tools/call",
                    "params": {"name": "code-review", "arguments": {"code": "def add(a, b):\n    return a - b\n"}},
                },
            ],
        )
        for message in batch:
            logger.info("id=%s -> %s", message["id"], json.dumps(message.get("result", message.get("error"))))

        await post(client, url, {"jsonrpc": "2.0", "method": "notifications/initialized"})


if __name__ == "__main__":
    target = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8080/mcp"
    asyncio.run(main(target))
