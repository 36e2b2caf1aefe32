"""Routes API: bridge MCP.

Expose deux endpoints qui invoquent un serveur MCP stdio:
- POST /api/mcp/use-tool          {server_name, tool_name, arguments}
- POST /api/mcp/access-resource   {server_name, uri}

La requête est supposée déjà authentifiée (couche externe). Chaque `kind`
d'erreur du bridge est traduit en status HTTP ici, et uniquement ici.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Union

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, ValidationError, field_validator

from ...config.loader import get_bridge_settings
from ...core.exceptions import BridgeError, ErrorKind
from ...core.models import Operation, ResourceAccess, ToolInvocation
from ...features.mcp.bridge import MCPBridge, create_bridge

logger = logging.getLogger(__name__)

router = APIRouter()

# Intervalle de vérification de la déconnexion du client pendant l'invocation.
DISCONNECT_POLL_S = 0.5

# Status non standard (nginx) pour une requête abandonnée par le client.
CLIENT_CLOSED_REQUEST = 499

_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.SERVER_NOT_FOUND: 400,
    ErrorKind.UNSUPPORTED_SERVER: 400,
    ErrorKind.CONFIG_NOT_FOUND: 500,
    ErrorKind.CONFIG_INVALID: 500,
    ErrorKind.PROCESS_SPAWN_ERROR: 500,
    ErrorKind.PROCESS_EXIT_ERROR: 500,
    ErrorKind.RESPONSE_PARSE_ERROR: 500,
    ErrorKind.RPC_ERROR: 500,
    ErrorKind.PROCESS_TIMEOUT: 504,
    ErrorKind.INTERNAL: 500,
}


def status_for_kind(kind: ErrorKind) -> int:
    """Status HTTP associé à un kind d'erreur du bridge."""
    return _STATUS_BY_KIND.get(kind, 500)


class _NonEmptyServerName(BaseModel):
    server_name: str = Field(..., description="Nom du serveur dans .mcp-settings.json")

    @field_validator("server_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("server_name vide")
        return value


class ToolCallRequest(_NonEmptyServerName):
    """Body de /mcp/use-tool."""

    tool_name: str = Field(..., description="Nom de l'outil MCP")
    arguments: Dict[str, Any] = Field(..., description="Arguments de l'outil")

    @field_validator("tool_name")
    @classmethod
    def _tool_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("tool_name vide")
        return value

    def to_operation(self) -> ToolInvocation:
        return ToolInvocation(self.server_name, self.tool_name, self.arguments)


class ResourceReadRequest(_NonEmptyServerName):
    """Body de /mcp/access-resource."""

    uri: str = Field(..., description="URI de la ressource MCP")

    @field_validator("uri")
    @classmethod
    def _uri_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("uri vide")
        return value

    def to_operation(self) -> ResourceAccess:
        return ResourceAccess(self.server_name, self.uri)


def get_bridge(request: Request) -> MCPBridge:
    """Bridge injecté dans app.state, sinon construit depuis la configuration."""
    bridge = getattr(request.app.state, "bridge", None)
    if bridge is not None:
        return bridge
    return create_bridge(get_bridge_settings())


def _missing_parameters() -> JSONResponse:
    return JSONResponse(content={"message": "Missing required parameters"}, status_code=400)


async def _parse_body(request: Request, model: type[BaseModel]) -> Union[BaseModel, JSONResponse]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(content={"message": "Invalid JSON body"}, status_code=400)

    if not isinstance(body, dict):
        return _missing_parameters()
    try:
        return model.model_validate(body)
    except ValidationError as e:
        logger.error(f"Paramètres MCP manquants ou invalides: {e.errors(include_url=False)}")
        return _missing_parameters()


async def _invoke_until_disconnect(request: Request, bridge: MCPBridge, operation: Operation) -> Response:
    """Invoque le bridge; une déconnexion du client annule l'invocation (et tue le process)."""
    task = asyncio.create_task(bridge.invoke(operation))
    try:
        while True:
            done, _pending = await asyncio.wait({task}, timeout=DISCONNECT_POLL_S)
            if done:
                break
            if await request.is_disconnected():
                logger.warning(f"Client déconnecté, annulation de l'invocation MCP {operation.server_name}")
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
                return Response(status_code=CLIENT_CLOSED_REQUEST)
    finally:
        if not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    try:
        result = task.result()
    except BridgeError as e:
        logger.error(f"Échec MCP {operation.server_name}: {e.kind.value} - {e.message}")
        return JSONResponse(
            content=e.to_public_dict(debug=bridge.settings.debug_errors),
            status_code=status_for_kind(e.kind),
        )
    except Exception as e:
        logger.exception(f"Erreur inattendue MCP {operation.server_name}")
        return JSONResponse(
            content={"message": "Internal server error", "kind": ErrorKind.INTERNAL.value, "error": str(e)},
            status_code=500,
        )

    return JSONResponse(content=result.to_dict())


@router.post("/mcp/use-tool")
async def api_mcp_use_tool(request: Request, bridge: MCPBridge = Depends(get_bridge)):
    """Exécute un outil MCP (`tools/call`)."""
    parsed = await _parse_body(request, ToolCallRequest)
    if isinstance(parsed, JSONResponse):
        return parsed
    logger.info(f"MCP tool request: server={parsed.server_name} tool={parsed.tool_name}")
    return await _invoke_until_disconnect(request, bridge, parsed.to_operation())


@router.post("/mcp/access-resource")
async def api_mcp_access_resource(request: Request, bridge: MCPBridge = Depends(get_bridge)):
    """Lit une ressource MCP (`resources/read`)."""
    parsed = await _parse_body(request, ResourceReadRequest)
    if isinstance(parsed, JSONResponse):
        return parsed
    logger.info(f"MCP resource request: server={parsed.server_name} uri={parsed.uri}")
    return await _invoke_until_disconnect(request, bridge, parsed.to_operation())
