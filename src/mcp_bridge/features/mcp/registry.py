"""mcp_bridge.features.mcp.registry

Résolution d'un nom de serveur MCP vers sa configuration de lancement.

Le document de settings (`.mcp-settings.json`) est relu à chaque appel:
une modification du fichier s'applique immédiatement, sans redémarrage.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict

import aiofiles

from ...core.exceptions import ConfigInvalidError, ConfigNotFoundError, ServerNotFoundError
from ...core.models import ServerConfig

logger = logging.getLogger(__name__)


class ServerRegistry(ABC):
    """Source de configuration des serveurs MCP."""

    @abstractmethod
    async def load(self, server_name: str) -> ServerConfig:
        """Retourne la configuration de `server_name`.

        Raises:
            ConfigNotFoundError, ConfigInvalidError, ServerNotFoundError
        """


def parse_server_entry(server_name: str, entry: object, *, source: str = "") -> ServerConfig:
    """Valide une entrée `mcpServers.<name>` et la convertit en ServerConfig."""

    def _invalid(reason: str) -> ConfigInvalidError:
        return ConfigInvalidError(
            f'MCP server "{server_name}" has an invalid configuration',
            settings_path=source or None,
            reason=reason,
        )

    if not isinstance(entry, dict):
        raise _invalid("server entry must be an object")

    command = entry.get("command")
    if not isinstance(command, str) or not command.strip():
        raise _invalid("`command` must be a non-empty string")

    args = entry.get("args") or []
    if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
        raise _invalid("`args` must be a list of strings")

    env_obj = entry.get("env") or {}
    if not isinstance(env_obj, dict):
        raise _invalid("`env` must be an object")
    env: Dict[str, str] = {}
    for key, value in env_obj.items():
        if isinstance(value, (dict, list)) or value is None:
            raise _invalid(f"`env.{key}` must be a scalar value")
        env[str(key)] = value if isinstance(value, str) else json.dumps(value)

    return ServerConfig(name=server_name, command=command, args=list(args), env=env)


def parse_settings_document(content: str, *, source: str = "") -> Dict[str, Any]:
    """Décode le document de settings et retourne la map `mcpServers`."""
    try:
        document = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigInvalidError(
            "MCP settings file not found or invalid",
            settings_path=source or None,
            reason=str(e),
        ) from e

    if not isinstance(document, dict):
        raise ConfigInvalidError(
            "MCP settings file not found or invalid",
            settings_path=source or None,
            reason="top-level value must be an object",
        )

    servers = document.get("mcpServers")
    if not isinstance(servers, dict):
        raise ConfigInvalidError(
            "MCP settings file not found or invalid",
            settings_path=source or None,
            reason="`mcpServers` must be an object",
        )
    return servers


class JsonFileServerRegistry(ServerRegistry):
    """Registry adossée au fichier JSON `{ "mcpServers": { ... } }`."""

    def __init__(self, settings_path: str | Path):
        self.settings_path = Path(settings_path)

    async def load(self, server_name: str) -> ServerConfig:
        path = self.settings_path
        logger.debug(f"Lecture des settings MCP: {path}")

        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Settings MCP illisibles ({path}): {e}")
            raise ConfigNotFoundError(
                "MCP settings file not found or invalid",
                settings_path=str(path),
            ) from e

        servers = parse_settings_document(content, source=str(path))
        if server_name not in servers:
            logger.error(f'Serveur MCP "{server_name}" absent des settings')
            raise ServerNotFoundError(server_name)

        return parse_server_entry(server_name, servers[server_name], source=str(path))


class InMemoryServerRegistry(ServerRegistry):
    """Registry en mémoire (tests, intégration embarquée).

    Les entrées brutes sont revalidées à chaque `load()`, comme pour le fichier.
    """

    def __init__(self, servers: Dict[str, Any]):
        self._servers = servers

    async def load(self, server_name: str) -> ServerConfig:
        if server_name not in self._servers:
            raise ServerNotFoundError(server_name)
        entry = self._servers[server_name]
        if isinstance(entry, ServerConfig):
            return ServerConfig(
                name=entry.name,
                command=entry.command,
                args=list(entry.args),
                env=dict(entry.env),
            )
        return parse_server_entry(server_name, entry, source="<memory>")
