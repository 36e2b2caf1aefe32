"""mcp_bridge.features.mcp.parser

Récupération de la réponse JSON-RPC de l'appel réel dans le stdout brut d'un
serveur MCP.

Le stdout n'a aucun framing fiable: JSON propre, JSON ligne par ligne mêlé
de logs/bannières, ou JSON indenté sur plusieurs lignes. Stratégie en
cascade (premier succès):

1. parse ligne par ligne, garder le **dernier** objet dont l'id n'est pas `init-…`
2. parse du blob complet
3. premier objet `{...}` équilibré (scan linéaire conscient des chaînes JSON)
4. sinon ResponseParseError (stdout brut conservé pour le diagnostic)

Une réponse `init-…` n'est jamais acceptée, même si c'est le seul JSON valide.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ...core.exceptions import ResponseParseError, RpcError
from ...core.models import JsonRpcResponse, is_init_id

logger = logging.getLogger(__name__)


def _is_call_response(obj: object) -> bool:
    """Objet JSON portant un id qui n'est pas celui du handshake."""
    return isinstance(obj, dict) and obj.get("id") is not None and not is_init_id(obj["id"])


def _last_call_response(items: List[object]) -> Optional[Dict[str, Any]]:
    for item in reversed(items):
        if _is_call_response(item):
            return item
    return None


def _from_lines(stdout: str) -> Optional[Dict[str, Any]]:
    last: Optional[Dict[str, Any]] = None
    for raw_line in stdout.splitlines():
        line = raw_line.strip()
        if not line or line[0] not in "{[":
            continue
        try:
            parsed = json.loads(line)
        except json.JSONDecodeError:
            continue

        # Une ligne peut contenir une réponse batch (tableau JSON).
        candidates = parsed if isinstance(parsed, list) else [parsed]
        for candidate in candidates:
            if _is_call_response(candidate):
                last = candidate
    return last


def _from_whole(stdout: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(stdout)
    except json.JSONDecodeError:
        return None

    if isinstance(parsed, list):
        return _last_call_response(parsed)
    if isinstance(parsed, dict) and not is_init_id(parsed.get("id")):
        return parsed
    return None


def iter_brace_objects(text: str) -> Iterator[str]:
    """Itère sur les sous-chaînes `{...}` équilibrées les plus externes, dans l'ordre.

    Une seule passe sur le texte avec une pile des accolades ouvrantes: un
    `{` jamais refermé n'empêche pas de retenir les objets complets qu'il
    contient. Les accolades à l'intérieur des chaînes JSON (et les
    échappements) sont ignorées.
    """
    spans: List[Tuple[int, int]] = []
    opened: List[int] = []
    in_string = False
    escaped = False

    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"' or char == "\n":
                # Une chaîne JSON ne contient jamais de retour ligne brut.
                in_string = False
            continue
        if char == "{":
            opened.append(index)
        elif char == "}" and opened:
            start = opened.pop()
            # Les objets déjà retenus à l'intérieur de celui-ci sont absorbés.
            while spans and spans[-1][0] > start:
                spans.pop()
            spans.append((start, index))
        elif char == '"' and opened:
            in_string = True

    for start, end in spans:
        yield text[start:end + 1]


def _from_braces(stdout: str) -> Optional[Dict[str, Any]]:
    for fragment in iter_brace_objects(stdout):
        try:
            parsed = json.loads(fragment)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict) and not is_init_id(parsed.get("id")):
            return parsed
    return None


class ResponseParser:
    """Parseur de stdout MCP, sans état."""

    def parse(self, stdout: str) -> JsonRpcResponse:
        """Retourne la réponse JSON-RPC de l'appel réel.

        Travail CPU pur sur au plus `max_output_bytes`: l'appelant async le
        délègue à un thread.

        Raises:
            ResponseParseError: aucune réponse corrélée exploitable
        """
        if not stdout or not stdout.strip():
            raise ResponseParseError(stdout or "", reason="MCP server produced no output")

        for strategy in (_from_lines, _from_whole, _from_braces):
            response = strategy(stdout)
            if response is not None:
                logger.debug(f"Réponse MCP trouvée via {strategy.__name__} (id={response.get('id')!r})")
                return JsonRpcResponse.from_dict(response)

        raise ResponseParseError(stdout)


def check_rpc_error(response: JsonRpcResponse) -> None:
    """Lève RpcError si la réponse porte un `error` JSON-RPC de premier niveau."""
    if not response.has_error:
        return
    error = response.error
    if isinstance(error, dict):
        code = error.get("code")
        raise RpcError(
            code if isinstance(code, int) and not isinstance(code, bool) else None,
            str(error.get("message") or "MCP request failed"),
            error.get("data"),
        )
    raise RpcError(None, str(error))
