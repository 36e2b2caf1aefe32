"""
Configuration du bridge MCP.
"""

from .loader import load_config, reload_config, get_bridge_settings
from .settings import BridgeSettings, TRANSPORTS

__all__ = [
    "load_config",
    "reload_config",
    "get_bridge_settings",
    "BridgeSettings",
    "TRANSPORTS",
]
