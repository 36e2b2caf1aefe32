"""
Dataclasses pour la configuration.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

TRANSPORTS = ("stdin", "file")

DEFAULT_SETTINGS_PATH = ".mcp-settings.json"
DEFAULT_ALLOWED_SERVERS = ["discord-bot-supabase-mcp"]
DEFAULT_PROTOCOL_VERSION = "0.1.0"
DEFAULT_CLIENT_NAME = "discord-bot-control-center"
DEFAULT_CLIENT_VERSION = "0.1.0"
DEFAULT_MAX_OUTPUT_BYTES = 8 * 1024 * 1024  # 8 MiB


def _clamp_float(value: Any, *, default: float, min_value: float, max_value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return min(max_value, max(min_value, float(value)))


def _clamp_int(value: Any, *, default: int, min_value: int, max_value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return min(max_value, max(min_value, value))


@dataclass
class BridgeSettings:
    """Configuration du bridge MCP (section `[bridge]` du config.toml)."""
    settings_path: str = DEFAULT_SETTINGS_PATH
    allowed_servers: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_SERVERS))
    transport: str = "stdin"
    timeout_s: float = 30.0
    kill_grace_s: float = 2.0
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
    temp_dir: Optional[str] = None
    protocol_version: str = DEFAULT_PROTOCOL_VERSION
    client_name: str = DEFAULT_CLIENT_NAME
    client_version: str = DEFAULT_CLIENT_VERSION
    debug_errors: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeSettings":
        """Crée une instance depuis un dictionnaire (valeurs bornées)."""
        transport = str(data.get("transport", "stdin")).strip().lower()
        if transport not in TRANSPORTS:
            transport = "stdin"

        allowed = data.get("allowed_servers", DEFAULT_ALLOWED_SERVERS)
        if not isinstance(allowed, list):
            allowed = list(DEFAULT_ALLOWED_SERVERS)

        temp_dir = data.get("temp_dir")
        return cls(
            settings_path=str(data.get("settings_path", DEFAULT_SETTINGS_PATH)),
            allowed_servers=[str(name) for name in allowed],
            transport=transport,
            timeout_s=_clamp_float(data.get("timeout_s"), default=30.0, min_value=0.1, max_value=3600.0),
            kill_grace_s=_clamp_float(data.get("kill_grace_s"), default=2.0, min_value=0.0, max_value=60.0),
            max_output_bytes=_clamp_int(
                data.get("max_output_bytes"),
                default=DEFAULT_MAX_OUTPUT_BYTES,
                min_value=64 * 1024,
                max_value=64 * 1024 * 1024,
            ),
            temp_dir=str(temp_dir) if temp_dir else None,
            protocol_version=str(data.get("protocol_version", DEFAULT_PROTOCOL_VERSION)),
            client_name=str(data.get("client_name", DEFAULT_CLIENT_NAME)),
            client_version=str(data.get("client_version", DEFAULT_CLIENT_VERSION)),
            debug_errors=bool(data.get("debug_errors", False)),
        )

    def is_allowed(self, server_name: str) -> bool:
        """Vrai si le serveur figure dans l'allow-list."""
        return server_name in self.allowed_servers
