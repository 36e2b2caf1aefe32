"""mcp_bridge.config.loader

Chargement de la configuration TOML.

Note d'architecture:
- Le package `config/` est consommé par la couche Features.
- Il ne doit donc pas dépendre de `features/*`.
- Ce cache concerne uniquement config.toml: le document `.mcp-settings.json`
  des serveurs MCP n'est jamais mis en cache (voir features/mcp/registry.py).
"""
import logging
import os
import re
from pathlib import Path
from typing import Dict, Any, Optional

from ..core.exceptions import ConfigurationError
from .settings import BridgeSettings

logger = logging.getLogger(__name__)

# Cache global de configuration
_config_cache: Optional[Dict[str, Any]] = None


def _expand_env_vars(obj: Any) -> Any:
    """
    Récursivement étend les variables d'environnement ${VAR} dans la config.

    Args:
        obj: Valeur à traiter (str, dict, list)

    Returns:
        Valeur avec variables d'environnement expansiées
    """
    if isinstance(obj, str):
        def replace_env_var(match):
            var_name = match.group(1)
            return os.environ.get(var_name, match.group(0))
        return re.sub(r'\$\{([^}]+)\}', replace_env_var, obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    return obj


def _default_config_path() -> str:
    env_path = os.getenv("MCP_BRIDGE_CONFIG")
    if env_path:
        return env_path
    # Structure: project/src/mcp_bridge/config/loader.py
    current_file = os.path.abspath(__file__)
    project_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(current_file))))
    return os.path.join(project_dir, "config.toml")


def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Charge la configuration depuis config.toml.

    Un fichier absent donne une configuration vide (valeurs par défaut).

    Args:
        config_path: Chemin vers le fichier config (optionnel)

    Returns:
        Dictionnaire de configuration

    Raises:
        ConfigurationError: Si le fichier est illisible ou n'est pas un TOML valide
    """
    global _config_cache

    if _config_cache is not None:
        return _config_cache

    path = Path(config_path or _default_config_path())
    if not path.exists():
        _config_cache = {}
        return _config_cache

    try:
        import tomllib
    except ImportError:
        try:
            import tomli as tomllib
        except ImportError:
            raise ConfigurationError(
                message="tomllib ou tomli requis pour charger la configuration",
                config_key="dependencies"
            )

    try:
        with open(path, "rb") as f:
            raw_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            message=f"Fichier de configuration invalide: {path} ({e})",
            config_key="config_path"
        ) from e
    except OSError as e:
        raise ConfigurationError(
            message=f"Fichier de configuration illisible: {path} ({e})",
            config_key="config_path"
        ) from e

    _config_cache = _expand_env_vars(raw_config)
    return _config_cache


def reload_config(config_path: str = None) -> Dict[str, Any]:
    """
    Recharge la configuration depuis le fichier.

    Returns:
        Nouvelle configuration chargée
    """
    global _config_cache
    _config_cache = None
    return load_config(config_path)


def get_bridge_settings(config: Dict[str, Any] = None) -> BridgeSettings:
    """Construit les `BridgeSettings` depuis `[bridge]` puis applique les overrides env.

    Priorité: env > toml > défauts.
    """
    if config is None:
        config = load_config()

    section = config.get("bridge")
    data: Dict[str, Any] = dict(section) if isinstance(section, dict) else {}

    transport = os.getenv("MCP_BRIDGE_TRANSPORT")
    if transport:
        data["transport"] = transport

    timeout_raw = os.getenv("MCP_BRIDGE_TIMEOUT_S")
    if timeout_raw:
        try:
            data["timeout_s"] = float(timeout_raw.strip())
        except ValueError:
            logger.warning(f"MCP_BRIDGE_TIMEOUT_S ignoré (valeur invalide): {timeout_raw!r}")

    settings_path = os.getenv("MCP_SETTINGS_PATH")
    if settings_path:
        data["settings_path"] = settings_path

    return BridgeSettings.from_dict(data)
