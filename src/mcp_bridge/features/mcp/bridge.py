"""mcp_bridge.features.mcp.bridge

Façade du bridge MCP: une invocation = un résultat ou une erreur classifiée.

Enchaînement (premier échec = arrêt, aucun retry):
    registry.load → allow-list → build_batch → invoker.execute
    → parser.parse → check_rpc_error → extract_result

Aucun état ne survit entre deux invocations: settings relus, un process
par appel, aucun résultat mis en cache.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Union

from ...config.settings import BridgeSettings
from ...core.exceptions import BridgeError, InternalBridgeError, UnsupportedServerError
from ...core.models import BridgeResult, Operation, ResourceAccess, ToolInvocation
from ...proxy.invoker import ProcessInvoker, create_invoker
from .extractor import extract_result
from .parser import ResponseParser, check_rpc_error
from .registry import JsonFileServerRegistry, ServerRegistry
from .requests import RequestBuilder, serialize_batch

logger = logging.getLogger(__name__)


class MCPBridge:
    """Orchestration registry → process → parsing → extraction."""

    def __init__(
        self,
        registry: ServerRegistry,
        invoker: ProcessInvoker,
        *,
        settings: Optional[BridgeSettings] = None,
        builder: Optional[RequestBuilder] = None,
        parser: Optional[ResponseParser] = None,
    ):
        self.settings = settings or BridgeSettings()
        self.registry = registry
        self.invoker = invoker
        self.builder = builder or RequestBuilder(
            protocol_version=self.settings.protocol_version,
            client_name=self.settings.client_name,
            client_version=self.settings.client_version,
        )
        self.parser = parser or ResponseParser()

    async def invoke(self, operation: Operation) -> BridgeResult:
        """Exécute une opération MCP.

        Args:
            operation: ToolInvocation ou ResourceAccess

        Returns:
            BridgeResult contenant la valeur normalisée

        Raises:
            BridgeError: sous-classe correspondant à l'étape en échec
        """
        server_name = operation.server_name
        config = await self.registry.load(server_name)

        if not self.settings.is_allowed(server_name):
            logger.error(f"Serveur MCP non supporté: {server_name}")
            raise UnsupportedServerError(server_name)

        batch = self.builder.build_batch(operation)
        call = batch[-1]
        logger.info(f"🔌 MCP {server_name} → {call.method} (id={call.id})")

        output = await self.invoker.execute(
            config,
            serialize_batch(batch),
            timeout_s=self.settings.timeout_s,
        )

        try:
            # Parsing CPU sur jusqu'à max_output_bytes: hors de la boucle d'événements.
            response = await asyncio.to_thread(self.parser.parse, output.stdout)
        except BridgeError:
            logger.error(f"[{server_name}] réponse MCP illisible, stdout brut: {output.stdout[:2000]!r}")
            raise

        check_rpc_error(response)
        value = extract_result(response)
        logger.info(f"✅ MCP {server_name} {call.method} terminé (id={call.id})")
        return BridgeResult(value=value)

    async def invoke_safe(self, operation: Operation) -> Union[BridgeResult, BridgeError]:
        """Variante sans exception: retourne le résultat ou l'erreur classifiée."""
        try:
            return await self.invoke(operation)
        except BridgeError as e:
            logger.error(f"Échec MCP {operation.server_name}: {e.kind.value} - {e.message}")
            return e
        except Exception as e:
            logger.exception(f"Erreur inattendue pendant l'invocation MCP {operation.server_name}")
            return InternalBridgeError(str(e))

    async def call_tool(self, server_name: str, tool_name: str, arguments: Dict[str, Any]) -> Any:
        """Raccourci `tools/call`: retourne directement la valeur."""
        result = await self.invoke(ToolInvocation(server_name, tool_name, arguments))
        return result.value

    async def read_resource(self, server_name: str, uri: str) -> Any:
        """Raccourci `resources/read`: retourne directement la valeur."""
        result = await self.invoke(ResourceAccess(server_name, uri))
        return result.value


def create_bridge(settings: BridgeSettings) -> MCPBridge:
    """Construit un bridge adossé au fichier de settings et au transport configurés."""
    return MCPBridge(
        registry=JsonFileServerRegistry(settings.settings_path),
        invoker=create_invoker(settings),
        settings=settings,
    )
