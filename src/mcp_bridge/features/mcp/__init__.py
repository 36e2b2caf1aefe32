"""
MCP - Bridge vers les serveurs MCP stdio.

Modules:
- registry: résolution nom de serveur → configuration de lancement
- requests: construction du batch JSON-RPC (handshake + appel)
- parser: récupération de la réponse corrélée dans stdout
- extractor: normalisation du payload de résultat
- bridge: façade et classification des erreurs
- client: helpers HTTP côté appelant
"""

from .registry import (
    ServerRegistry,
    JsonFileServerRegistry,
    InMemoryServerRegistry,
)
from .requests import RequestBuilder, serialize_batch
from .parser import ResponseParser, check_rpc_error
from .extractor import (
    Nested,
    ContentArrayText,
    ContentRaw,
    Passthrough,
    ResultShape,
    classify_result,
    extract_result,
)
from .bridge import MCPBridge, create_bridge
from .client import BridgeAPIClient, MCPClientError

__all__ = [
    "ServerRegistry",
    "JsonFileServerRegistry",
    "InMemoryServerRegistry",
    "RequestBuilder",
    "serialize_batch",
    "ResponseParser",
    "check_rpc_error",
    "Nested",
    "ContentArrayText",
    "ContentRaw",
    "Passthrough",
    "ResultShape",
    "classify_result",
    "extract_result",
    "MCPBridge",
    "create_bridge",
    "BridgeAPIClient",
    "MCPClientError",
]
