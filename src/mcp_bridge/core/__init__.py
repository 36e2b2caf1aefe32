"""
Cœur métier du bridge MCP.
Modules indépendants sans dépendances externes au package.
"""

from .exceptions import (
    BridgeProjectError,
    ConfigurationError,
    ErrorKind,
    BridgeError,
    ConfigNotFoundError,
    ConfigInvalidError,
    ServerNotFoundError,
    UnsupportedServerError,
    ProcessSpawnError,
    ProcessExitError,
    ProcessTimeoutError,
    ResponseParseError,
    RpcError,
    InternalBridgeError,
)
from .models import (
    JSONRPC_VERSION,
    INIT_ID_PREFIX,
    is_init_id,
    ServerConfig,
    JsonRpcRequest,
    JsonRpcResponse,
    ToolInvocation,
    ResourceAccess,
    Operation,
    ProcessOutput,
    BridgeResult,
)

__all__ = [
    # Exceptions
    "BridgeProjectError",
    "ConfigurationError",
    "ErrorKind",
    "BridgeError",
    "ConfigNotFoundError",
    "ConfigInvalidError",
    "ServerNotFoundError",
    "UnsupportedServerError",
    "ProcessSpawnError",
    "ProcessExitError",
    "ProcessTimeoutError",
    "ResponseParseError",
    "RpcError",
    "InternalBridgeError",
    # Models
    "JSONRPC_VERSION",
    "INIT_ID_PREFIX",
    "is_init_id",
    "ServerConfig",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "ToolInvocation",
    "ResourceAccess",
    "Operation",
    "ProcessOutput",
    "BridgeResult",
]
