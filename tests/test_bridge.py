"""Tests for the invocation lifecycle in HttpBridge."""

from __future__ import annotations

import asyncio
import json

import pytest

from lambda_mcp import JSONRPCNotification, TransportAlreadyStartedError, UnprocessableEntityError
from lambda_mcp.errors import PLACEHOLDER_ERROR_ID
from lambda_mcp.http import HttpBridge, HttpResponse, InvocationContext

from tests.conftest import JSON_HEADERS, ScriptedEngine

CODE_REVIEW = {"jsonrpc": "2.0", "method": "code-review", "id": 1, "params": {"code": "x=1"}}


def test_bridge_needs_exactly_one_engine_source() -> None:
    with pytest.raises(ValueError):
        HttpBridge()
    with pytest.raises(ValueError):
        HttpBridge(ScriptedEngine(), engine_factory=ScriptedEngine)


@pytest.mark.asyncio
async def test_bridge_missing_engine_source_raises_runtime_error() -> None:
    bridge = HttpBridge(engine_factory=ScriptedEngine)
    bridge._engine_factory = None

    with pytest.raises(RuntimeError, match="neither an engine nor an engine factory"):
        await bridge.handle(JSON_HEADERS, json.dumps(CODE_REVIEW))


class TestBefore:
    def test_parses_into_context(self, bridge: HttpBridge) -> None:
        context = bridge.before(JSON_HEADERS, json.dumps(CODE_REVIEW))

        assert isinstance(context, InvocationContext)
        assert len(context.messages) == 1
        assert context.invocation_id

    def test_each_invocation_gets_its_own_context(self, bridge: HttpBridge) -> None:
        first = bridge.before(JSON_HEADERS, json.dumps(CODE_REVIEW))
        second = bridge.before(JSON_HEADERS, json.dumps(CODE_REVIEW))

        assert first.invocation_id != second.invocation_id

    def test_raises_classified_errors(self, bridge: HttpBridge) -> None:
        with pytest.raises(UnprocessableEntityError):
            bridge.before(JSON_HEADERS, json.dumps({"jsonrpc": "2.0", "id": 1}))

    def test_reads_headers_case_insensitively(self, bridge: HttpBridge) -> None:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}

        context = bridge.before(headers, json.dumps(CODE_REVIEW))

        assert len(context.messages) == 1


class TestHandle:
    @pytest.mark.asyncio
    async def test_single_request_renders_200(self, bridge: HttpBridge) -> None:
        response = await asyncio.wait_for(bridge.handle(JSON_HEADERS, json.dumps(CODE_REVIEW)), timeout=1.0)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert json.loads(response.body) == {
            "jsonrpc": "2.0",
            "id": 1,
            "result": {"content": [{"type": "text", "text": "code-review:1"}]},
        }

    @pytest.mark.asyncio
    async def test_batch_renders_array_in_request_order(self) -> None:
        bridge = HttpBridge(ScriptedEngine(delays={"first": 0.03}))
        body = [
            {"jsonrpc": "2.0", "id": "first", "method": "tools/list"},
            {"jsonrpc": "2.0", "method": "notifications/initialized"},
            {"jsonrpc": "2.0", "id": "second", "method": "tools/list"},
        ]

        response = await asyncio.wait_for(bridge.handle(JSON_HEADERS, json.dumps(body)), timeout=1.0)

        assert response.status_code == 200
        assert [item["id"] for item in json.loads(response.body)] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_notification_only_renders_202(self, engine: ScriptedEngine, bridge: HttpBridge) -> None:
        response = await bridge.handle(JSON_HEADERS, json.dumps([{"jsonrpc": "2.0", "method": "ping"}]))

        assert response == HttpResponse(status_code=202)
        assert response.body == ""
        assert engine.received == [JSONRPCNotification(jsonrpc="2.0", method="ping")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("headers", "status", "message"),
        [
            ({"content-type": "application/json"}, 406, "Not Acceptable: Client must accept application/json"),
            (
                {"accept": "application/json"},
                415,
                "Unsupported Media Type: Content-Type must be application/json",
            ),
        ],
    )
    async def test_negotiation_failures(
        self, engine: ScriptedEngine, bridge: HttpBridge, headers: dict, status: int, message: str
    ) -> None:
        response = await bridge.handle(headers, json.dumps(CODE_REVIEW))

        assert response.status_code == status
        assert json.loads(response.body) == {
            "jsonrpc": "2.0",
            "id": PLACEHOLDER_ERROR_ID,
            "error": {"code": -32000, "message": message},
        }
        # Rejected invocations never reach the engine
        assert engine.connect_calls == 0
        assert engine.received == []

    @pytest.mark.asyncio
    async def test_schema_violation_renders_422_envelope(self, engine: ScriptedEngine, bridge: HttpBridge) -> None:
        body = json.dumps({"jsonrpc": "2.0", "id": 1, "params": {}})

        response = await bridge.handle(JSON_HEADERS, body)

        assert response.status_code == 422
        assert json.loads(response.body) == {
            "jsonrpc": "2.0",
            "id": 123,
            "error": {"code": -32000, "message": "Unprocessable Entity: Invalid or malformed JSON was provided"},
        }
        assert engine.received == []

    @pytest.mark.asyncio
    async def test_response_timeout_renders_504(self) -> None:
        bridge = HttpBridge(ScriptedEngine(silent_ids={1}), response_timeout=0.05)

        response = await bridge.handle(JSON_HEADERS, json.dumps(CODE_REVIEW))

        assert response.status_code == 504
        envelope = json.loads(response.body)
        assert envelope["id"] == PLACEHOLDER_ERROR_ID
        assert "Gateway Timeout" in envelope["error"]["message"]


class TestSessions:
    @pytest.mark.asyncio
    async def test_shared_engine_connects_once(self, engine: ScriptedEngine, bridge: HttpBridge) -> None:
        for _ in range(3):
            response = await asyncio.wait_for(bridge.handle(JSON_HEADERS, json.dumps(CODE_REVIEW)), timeout=1.0)
            assert response.status_code == 200

        assert engine.connect_calls == 1
        assert bridge.session is not None
        assert bridge.session.connected

    @pytest.mark.asyncio
    async def test_concurrent_first_invocations_share_the_handshake(
        self, engine: ScriptedEngine, bridge: HttpBridge
    ) -> None:
        body = json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"})

        responses = await asyncio.wait_for(
            asyncio.gather(*(bridge.handle(JSON_HEADERS, body) for _ in range(3))),
            timeout=1.0,
        )

        assert [response.status_code for response in responses] == [202, 202, 202]
        assert engine.connect_calls == 1

    @pytest.mark.asyncio
    async def test_unanswered_invocation_does_not_block_the_shared_session(self) -> None:
        bridge = HttpBridge(ScriptedEngine(silent_ids={"stuck"}))
        stuck = asyncio.create_task(bridge.handle(JSON_HEADERS, json.dumps({**CODE_REVIEW, "id": "stuck"})))
        await asyncio.sleep(0.01)

        answered = await asyncio.wait_for(
            bridge.handle(JSON_HEADERS, json.dumps({**CODE_REVIEW, "id": 2})), timeout=1.0
        )
        notified = await asyncio.wait_for(
            bridge.handle(JSON_HEADERS, json.dumps({"jsonrpc": "2.0", "method": "ping"})), timeout=1.0
        )
        superseded = await asyncio.wait_for(stuck, timeout=1.0)

        assert answered.status_code == 200
        assert json.loads(answered.body)["id"] == 2
        assert notified.status_code == 202
        assert superseded.status_code == 503
        envelope = json.loads(superseded.body)
        assert envelope["id"] == PLACEHOLDER_ERROR_ID
        assert "Service Unavailable" in envelope["error"]["message"]

    @pytest.mark.asyncio
    async def test_engine_factory_builds_an_engine_per_invocation(self) -> None:
        engines: list[ScriptedEngine] = []

        def make_engine() -> ScriptedEngine:
            engine = ScriptedEngine()
            engines.append(engine)
            return engine

        bridge = HttpBridge(engine_factory=make_engine)

        for _ in range(2):
            response = await asyncio.wait_for(bridge.handle(JSON_HEADERS, json.dumps(CODE_REVIEW)), timeout=1.0)
            assert response.status_code == 200

        assert bridge.session is None
        assert len(engines) == 2
        assert [engine.connect_calls for engine in engines] == [1, 1]

    @pytest.mark.asyncio
    async def test_engine_that_starts_twice_fails_loudly(self) -> None:
        class DoubleStartEngine(ScriptedEngine):
            async def connect(self, transport) -> None:
                await super().connect(transport)
                await transport.start()

        bridge = HttpBridge(DoubleStartEngine())

        with pytest.raises(TransportAlreadyStartedError):
            await bridge.handle(JSON_HEADERS, json.dumps(CODE_REVIEW))
