"""
Dataclasses métier du bridge MCP.

Toutes ces entités vivent le temps d'un seul appel à `invoke()`.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

JSONRPC_VERSION = "2.0"
INIT_ID_PREFIX = "init-"


def is_init_id(req_id: Any) -> bool:
    """Vrai si l'id correspond à la requête de handshake (`init-…`)."""
    return str(req_id).startswith(INIT_ID_PREFIX)


@dataclass
class ServerConfig:
    """Configuration de lancement d'un serveur MCP."""
    name: str
    command: str
    args: List[str] = field(default_factory=list)
    env: Dict[str, str] = field(default_factory=dict)

    def command_line(self) -> str:
        """Ligne de commande lisible (logs uniquement)."""
        return " ".join([self.command, *self.args])


@dataclass
class JsonRpcRequest:
    """Requête JSON-RPC 2.0."""
    id: str
    method: str
    params: Dict[str, Any] = field(default_factory=dict)
    jsonrpc: str = JSONRPC_VERSION

    @property
    def is_handshake(self) -> bool:
        return is_init_id(self.id)

    def to_dict(self) -> Dict[str, Any]:
        """Convertit la requête en dictionnaire sérialisable."""
        return {
            "jsonrpc": self.jsonrpc,
            "id": self.id,
            "method": self.method,
            "params": self.params,
        }


@dataclass
class JsonRpcResponse:
    """Réponse JSON-RPC 2.0 reçue du serveur (objet décodé conservé dans `raw`)."""
    id: Any
    jsonrpc: Optional[str] = None
    result: Any = None
    error: Any = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JsonRpcResponse":
        """Crée une instance depuis l'objet JSON décodé."""
        return cls(
            id=data.get("id"),
            jsonrpc=data.get("jsonrpc"),
            result=data.get("result"),
            error=data.get("error"),
            raw=data,
        )

    @property
    def has_result(self) -> bool:
        return "result" in self.raw

    @property
    def has_error(self) -> bool:
        # `"error": {}` compte comme une erreur; seul `null` est ignoré.
        return self.error is not None

    @property
    def is_handshake(self) -> bool:
        return is_init_id(self.id)


@dataclass
class ToolInvocation:
    """Appel d'un outil MCP (`tools/call`)."""
    server_name: str
    tool_name: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    @property
    def method(self) -> str:
        return "tools/call"

    @property
    def params(self) -> Dict[str, Any]:
        return {"name": self.tool_name, "arguments": self.arguments}


@dataclass
class ResourceAccess:
    """Lecture d'une ressource MCP (`resources/read`)."""
    server_name: str
    uri: str

    @property
    def method(self) -> str:
        return "resources/read"

    @property
    def params(self) -> Dict[str, Any]:
        return {"uri": self.uri}


Operation = Union[ToolInvocation, ResourceAccess]


@dataclass
class ProcessOutput:
    """Sortie collectée d'un sous-processus MCP."""
    stdout: str
    stderr: str
    exit_code: int


@dataclass
class BridgeResult:
    """Résultat normalisé d'une invocation."""
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"result": self.value}
