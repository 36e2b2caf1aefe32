from __future__ import annotations

from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from mcp_bridge.api.routes import mcp
from mcp_bridge.config.settings import BridgeSettings
from mcp_bridge.core.exceptions import (
    ErrorKind,
    ProcessExitError,
    ProcessTimeoutError,
    ResponseParseError,
    ServerNotFoundError,
    UnsupportedServerError,
)
from mcp_bridge.core.models import BridgeResult, ResourceAccess, ToolInvocation


class _FakeBridge:
    """Bridge factice: retourne un résultat ou lève l'erreur programmée."""

    def __init__(self, *, value=None, error: Exception | None = None, debug: bool = False):
        self.value = value
        self.error = error
        self.settings = BridgeSettings(debug_errors=debug)
        self.operations: list = []

    async def invoke(self, operation):
        self.operations.append(operation)
        if self.error is not None:
            raise self.error
        return BridgeResult(value=self.value)


def _app(bridge: _FakeBridge) -> FastAPI:
    app = FastAPI()
    app.include_router(mcp.router, prefix="/api")
    app.dependency_overrides[mcp.get_bridge] = lambda: bridge
    return app


@pytest_asyncio.fixture
async def client_for() -> AsyncGenerator:
    clients: list[httpx.AsyncClient] = []

    def _make(bridge: _FakeBridge) -> httpx.AsyncClient:
        transport = httpx.ASGITransport(app=_app(bridge))
        client = httpx.AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.aclose()


@pytest.mark.asyncio
async def test_use_tool_returns_result(client_for):
    bridge = _FakeBridge(value="hello")
    resp = await client_for(bridge).post(
        "/api/mcp/use-tool",
        json={"server_name": "discord-bot-supabase-mcp", "tool_name": "get_tables", "arguments": {"schema_name": "public"}},
    )
    assert resp.status_code == 200
    assert resp.json() == {"result": "hello"}
    assert bridge.operations == [ToolInvocation("discord-bot-supabase-mcp", "get_tables", {"schema_name": "public"})]


@pytest.mark.asyncio
async def test_access_resource_returns_result(client_for):
    bridge = _FakeBridge(value={"contents": []})
    resp = await client_for(bridge).post(
        "/api/mcp/access-resource",
        json={"server_name": "discord-bot-supabase-mcp", "uri": "postgres://x"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"result": {"contents": []}}
    assert bridge.operations == [ResourceAccess("discord-bot-supabase-mcp", "postgres://x")]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path,body",
    [
        ("/api/mcp/use-tool", {"server_name": "s", "tool_name": "t"}),
        ("/api/mcp/use-tool", {"server_name": "", "tool_name": "t", "arguments": {}}),
        ("/api/mcp/use-tool", {"server_name": "s", "tool_name": "t", "arguments": "nope"}),
        ("/api/mcp/access-resource", {"server_name": "s"}),
        ("/api/mcp/access-resource", {"uri": "x://y"}),
        ("/api/mcp/access-resource", ["not", "an", "object"]),
    ],
)
async def test_missing_parameters_return_400(client_for, path, body):
    bridge = _FakeBridge(value="unused")
    resp = await client_for(bridge).post(path, json=body)
    assert resp.status_code == 400
    assert resp.json() == {"message": "Missing required parameters"}
    assert bridge.operations == []


@pytest.mark.asyncio
async def test_invalid_json_body_returns_400(client_for):
    resp = await client_for(_FakeBridge()).post(
        "/api/mcp/use-tool", content=b"{oops", headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error,status,kind",
    [
        (ServerNotFoundError("ghost"), 400, ErrorKind.SERVER_NOT_FOUND),
        (UnsupportedServerError("other"), 400, ErrorKind.UNSUPPORTED_SERVER),
        (ProcessExitError(1, "stack trace"), 500, ErrorKind.PROCESS_EXIT_ERROR),
        (ResponseParseError("raw stdout"), 500, ErrorKind.RESPONSE_PARSE_ERROR),
        (ProcessTimeoutError(30.0), 504, ErrorKind.PROCESS_TIMEOUT),
    ],
)
async def test_bridge_errors_map_to_status_and_kind(client_for, error, status, kind):
    resp = await client_for(_FakeBridge(error=error)).post(
        "/api/mcp/access-resource", json={"server_name": "s", "uri": "x://y"}
    )
    assert resp.status_code == status
    body = resp.json()
    assert body["kind"] == kind.value
    assert body["message"] == error.message
    # stdout/stderr bruts non exposés hors mode debug
    assert "stack trace" not in resp.text
    assert "raw stdout" not in resp.text


@pytest.mark.asyncio
async def test_debug_mode_exposes_internal_details(client_for):
    bridge = _FakeBridge(error=ResponseParseError("raw stdout"), debug=True)
    resp = await client_for(bridge).post("/api/mcp/use-tool", json={"server_name": "s", "tool_name": "t", "arguments": {}})
    assert resp.status_code == 500
    assert resp.json()["error"]["raw"] == "raw stdout"


@pytest.mark.asyncio
async def test_unexpected_exception_returns_500(client_for):
    resp = await client_for(_FakeBridge(error=RuntimeError("boom"))).post(
        "/api/mcp/use-tool", json={"server_name": "s", "tool_name": "t", "arguments": {}}
    )
    assert resp.status_code == 500
    assert resp.json()["kind"] == "Internal"


def test_every_error_kind_has_a_status():
    for kind in ErrorKind:
        assert mcp.status_for_kind(kind) in {400, 500, 504}


@pytest.mark.asyncio
async def test_create_app_serves_health_and_injected_bridge():
    from mcp_bridge.main import create_app

    bridge = _FakeBridge(value=42)
    app = create_app(bridge=bridge)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        health = await client.get("/health")
        call = await client.post("/api/mcp/use-tool", json={"server_name": "s", "tool_name": "t", "arguments": {}})

    assert health.status_code == 200
    assert health.json() == {
        "status": "ok",
        "transport": "stdin",
        "timeout_s": 30.0,
        "allowed_servers": ["discord-bot-supabase-mcp"],
    }
    assert call.json() == {"result": 42}
