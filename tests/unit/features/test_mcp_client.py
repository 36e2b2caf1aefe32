"""Tests unitaires — BridgeAPIClient (httpx.MockTransport, aucun réseau)."""

from __future__ import annotations

import json

import httpx
import pytest

from mcp_bridge.features.mcp.client import BridgeAPIClient, MCPClientError


def _client(handler) -> BridgeAPIClient:
    return BridgeAPIClient("http://bridge.local/", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
@pytest.mark.unit
async def test_use_mcp_tool_posts_body_and_returns_result():
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["json"] = json.loads(request.content)
        return httpx.Response(200, json={"result": [{"table": "bots"}]})

    result = await _client(handler).use_mcp_tool("discord-bot-supabase-mcp", "get_tables", {"schema_name": "public"})

    assert result == [{"table": "bots"}]
    assert captured["url"] == "http://bridge.local/api/mcp/use-tool"
    assert captured["json"] == {
        "server_name": "discord-bot-supabase-mcp",
        "tool_name": "get_tables",
        "arguments": {"schema_name": "public"},
    }


@pytest.mark.asyncio
@pytest.mark.unit
async def test_access_mcp_resource_hits_access_resource_endpoint():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/mcp/access-resource"
        return httpx.Response(200, json={"result": "contents"})

    assert await _client(handler).access_mcp_resource("srv", "x://y") == "contents"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_error_response_raises_with_server_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"message": "Unsupported MCP server", "kind": "UnsupportedServer"})

    with pytest.raises(MCPClientError) as exc_info:
        await _client(handler).use_mcp_tool("other", "t", {})

    err = exc_info.value
    assert err.message == "MCP tool execution failed: Unsupported MCP server"
    assert err.status_code == 400
    assert err.kind == "UnsupportedServer"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_non_json_error_falls_back_to_reason_phrase():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(MCPClientError) as exc_info:
        await _client(handler).access_mcp_resource("srv", "x://y")
    assert exc_info.value.message == "MCP resource access failed: Bad Gateway"


@pytest.mark.unit
def test_base_url_defaults_to_env(monkeypatch):
    monkeypatch.setenv("MCP_BRIDGE_BASE_URL", "http://127.0.0.1:9999/")
    assert BridgeAPIClient().base_url == "http://127.0.0.1:9999"
