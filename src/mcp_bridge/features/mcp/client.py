"""mcp_bridge.features.mcp.client

Helpers côté appelant pour les endpoints HTTP du bridge
(`/api/mcp/use-tool`, `/api/mcp/access-resource`).
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

import httpx

from ...core.exceptions import BridgeProjectError


class MCPClientError(BridgeProjectError):
    """Erreur retournée par l'API du bridge."""

    def __init__(self, message: str, status_code: int = None, kind: str = None):
        details: Dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        if kind:
            details["kind"] = kind
        super().__init__(message=message, code="mcp_client_error", details=details)
        self.status_code = status_code
        self.kind = kind


def _default_base_url() -> str:
    return os.getenv("MCP_BRIDGE_BASE_URL", "http://localhost:8000").rstrip("/")


class BridgeAPIClient:
    """Client HTTP async pour l'API du bridge MCP."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout_s: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or _default_base_url()).rstrip("/")
        self.timeout = httpx.Timeout(timeout_s, connect=min(5.0, timeout_s))
        self._transport = transport

    async def _post(self, path: str, body: Dict[str, Any], failure_prefix: str) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(f"{self.base_url}{path}", json=body)

        if response.status_code >= 400:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            message = error_data.get("message") if isinstance(error_data, dict) else None
            raise MCPClientError(
                f"{failure_prefix}: {message or response.reason_phrase}",
                status_code=response.status_code,
                kind=error_data.get("kind") if isinstance(error_data, dict) else None,
            )

        data = response.json()
        return data.get("result") if isinstance(data, dict) else None

    async def use_mcp_tool(self, server_name: str, tool_name: str, arguments: Dict[str, Any]) -> Any:
        """Appelle un outil MCP via l'API et retourne `result`."""
        return await self._post(
            "/api/mcp/use-tool",
            {"server_name": server_name, "tool_name": tool_name, "arguments": arguments},
            "MCP tool execution failed",
        )

    async def access_mcp_resource(self, server_name: str, uri: str) -> Any:
        """Lit une ressource MCP via l'API et retourne `result`."""
        return await self._post(
            "/api/mcp/access-resource",
            {"server_name": server_name, "uri": uri},
            "MCP resource access failed",
        )
