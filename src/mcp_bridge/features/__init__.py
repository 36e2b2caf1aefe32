"""
Fonctionnalités du bridge MCP.
"""

from .mcp import (
    MCPBridge,
    create_bridge,
    JsonFileServerRegistry,
    ResponseParser,
    extract_result,
)

__all__ = [
    "MCPBridge",
    "create_bridge",
    "JsonFileServerRegistry",
    "ResponseParser",
    "extract_result",
]
