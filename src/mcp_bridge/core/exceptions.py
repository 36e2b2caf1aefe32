"""
Exceptions personnalisées pour le bridge MCP.

Chaque échec du bridge porte un `kind` stable (ErrorKind) que la couche API
traduit en status HTTP. Les détails internes (stdout brut, stderr, ligne de
commande) restent dans `details` et ne sont exposés qu'en mode debug.
"""
from enum import Enum
from typing import Any, Dict, Optional


class BridgeProjectError(Exception):
    """Exception de base pour toutes les erreurs du projet."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code or "unknown_error"
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"[{self.code}] {self.message} - Détails: {self.details}"
        return f"[{self.code}] {self.message}"


class ConfigurationError(BridgeProjectError):
    """Erreur de configuration applicative (config.toml illisible, valeur invalide)."""

    def __init__(self, message: str, config_key: str = None):
        super().__init__(
            message=message,
            code="config_error",
            details={"key": config_key} if config_key else {}
        )


class ErrorKind(str, Enum):
    """Taxonomie des échecs d'une invocation du bridge."""

    CONFIG_NOT_FOUND = "ConfigNotFound"
    CONFIG_INVALID = "ConfigInvalid"
    SERVER_NOT_FOUND = "ServerNotFound"
    UNSUPPORTED_SERVER = "UnsupportedServer"
    PROCESS_SPAWN_ERROR = "ProcessSpawnError"
    PROCESS_EXIT_ERROR = "ProcessExitError"
    PROCESS_TIMEOUT = "ProcessTimeout"
    RESPONSE_PARSE_ERROR = "ResponseParseError"
    RPC_ERROR = "RpcError"
    INTERNAL = "Internal"


# Taille max des aperçus (stdout/stderr) conservés dans les réponses publiques.
PREVIEW_CHARS = 500


def _preview(text: Optional[str], limit: int = PREVIEW_CHARS) -> str:
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + f"... [{len(text) - limit} caractères tronqués]"


class BridgeError(BridgeProjectError):
    """Échec classifié d'une invocation du bridge."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, details: dict = None):
        super().__init__(message=message, code=self.kind.value, details=details)

    @property
    def detail(self) -> Optional[Any]:
        """Détail public (sans fuite de chemins/commandes locales)."""
        return None

    def to_public_dict(self, debug: bool = False) -> Dict[str, Any]:
        """Sérialise l'erreur pour un appelant HTTP.

        Args:
            debug: inclut les détails internes (stdout/stderr/commande)

        Returns:
            `{message, kind}` plus `error` si un détail est disponible
        """
        payload: Dict[str, Any] = {"message": self.message, "kind": self.kind.value}
        if debug and self.details:
            payload["error"] = self.details
        elif self.detail is not None:
            payload["error"] = self.detail
        return payload


class ConfigNotFoundError(BridgeError):
    """Le document de settings MCP est introuvable ou illisible."""

    kind = ErrorKind.CONFIG_NOT_FOUND

    def __init__(self, message: str, settings_path: str = None):
        super().__init__(message, details={"settings_path": settings_path} if settings_path else {})


class ConfigInvalidError(BridgeError):
    """Le document de settings MCP n'est pas un JSON valide ou mal formé."""

    kind = ErrorKind.CONFIG_INVALID

    def __init__(self, message: str, settings_path: str = None, reason: str = None):
        details = {}
        if settings_path:
            details["settings_path"] = settings_path
        if reason:
            details["reason"] = reason
        super().__init__(message, details=details)
        self.reason = reason

    @property
    def detail(self) -> Optional[Any]:
        return self.reason


class ServerNotFoundError(BridgeError):
    """Le serveur demandé est absent du document de settings."""

    kind = ErrorKind.SERVER_NOT_FOUND

    def __init__(self, server_name: str):
        super().__init__(
            f'MCP server "{server_name}" not found in settings',
            details={"server_name": server_name},
        )
        self.server_name = server_name


class UnsupportedServerError(BridgeError):
    """Le serveur existe dans les settings mais n'est pas dans l'allow-list."""

    kind = ErrorKind.UNSUPPORTED_SERVER

    def __init__(self, server_name: str):
        super().__init__("Unsupported MCP server", details={"server_name": server_name})
        self.server_name = server_name

    @property
    def detail(self) -> Optional[Any]:
        return self.server_name


class ProcessSpawnError(BridgeError):
    """La commande du serveur est introuvable ou non exécutable."""

    kind = ErrorKind.PROCESS_SPAWN_ERROR

    def __init__(self, command: str, reason: str):
        super().__init__(
            "Impossible de démarrer le serveur MCP",
            details={"command": command, "reason": reason},
        )
        self.command = command
        self.reason = reason


class ProcessExitError(BridgeError):
    """Le serveur MCP s'est terminé avec un code non nul."""

    kind = ErrorKind.PROCESS_EXIT_ERROR

    def __init__(self, exit_code: int, stderr: str):
        super().__init__(
            f"MCP server exited with code {exit_code}",
            details={"exit_code": exit_code, "stderr": _preview(stderr)},
        )
        self.exit_code = exit_code
        self.stderr = stderr

    @property
    def detail(self) -> Optional[Any]:
        return {"exit_code": self.exit_code}


class ProcessTimeoutError(BridgeError):
    """Le serveur MCP n'a pas terminé dans le délai imparti (process tué)."""

    kind = ErrorKind.PROCESS_TIMEOUT

    def __init__(self, timeout_s: float, stderr: str = ""):
        super().__init__(
            f"MCP server did not finish within {timeout_s:g}s",
            details={"timeout_s": timeout_s, "stderr": _preview(stderr)},
        )
        self.timeout_s = timeout_s
        self.stderr = stderr

    @property
    def detail(self) -> Optional[Any]:
        return {"timeout_s": self.timeout_s}


class ResponseParseError(BridgeError):
    """Aucune réponse JSON-RPC corrélée n'a pu être extraite de stdout."""

    kind = ErrorKind.RESPONSE_PARSE_ERROR

    def __init__(self, raw_output: str, reason: str = "Could not parse MCP server response"):
        super().__init__(
            "Invalid response from MCP server",
            details={"reason": reason, "raw": _preview(raw_output)},
        )
        self.raw_output = raw_output
        self.reason = reason

    @property
    def detail(self) -> Optional[Any]:
        return self.reason


class RpcError(BridgeError):
    """Le serveur MCP a répondu avec un objet `error` JSON-RPC."""

    kind = ErrorKind.RPC_ERROR

    def __init__(self, rpc_code: Optional[int], rpc_message: Optional[str], data: Any = None):
        error: Dict[str, Any] = {"code": rpc_code, "message": rpc_message}
        if data is not None:
            error["data"] = data
        super().__init__(rpc_message or "MCP request failed", details=error)
        self.rpc_code = rpc_code
        self.rpc_message = rpc_message
        self.data = data

    @property
    def detail(self) -> Optional[Any]:
        # Erreur produite par le serveur MCP lui-même: renvoyée telle quelle.
        return self.details


class InternalBridgeError(BridgeError):
    """Erreur inattendue, enveloppée pour ne jamais sortir non classifiée."""

    kind = ErrorKind.INTERNAL

    def __init__(self, reason: str):
        super().__init__("Internal server error", details={"reason": reason})
