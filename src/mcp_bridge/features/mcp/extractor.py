"""mcp_bridge.features.mcp.extractor

Normalisation du payload d'une réponse MCP en une seule valeur.

Les serveurs MCP n'enveloppent pas leur résultat de façon homogène. La
classification est une fonction pure (aucune I/O), par ordre de priorité:

1. Nested          `result.result` (payload doublement enveloppé)
2. ContentArrayText `result.content[0].text` (convention "content block")
3. ContentRaw      `result.content` sous une autre forme, tel quel
4. Passthrough     le payload `result`, ou la réponse entière sans `result`

La règle 1 n'est pas confirmée par le protocole MCP: elle reprend un
comportement observé sur certains serveurs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from ...core.models import JsonRpcResponse


@dataclass(frozen=True)
class Nested:
    value: Any


@dataclass(frozen=True)
class ContentArrayText:
    value: str


@dataclass(frozen=True)
class ContentRaw:
    value: Any


@dataclass(frozen=True)
class Passthrough:
    value: Any


ResultShape = Union[Nested, ContentArrayText, ContentRaw, Passthrough]


def classify_result(response: JsonRpcResponse) -> ResultShape:
    """Détermine la forme du payload d'une réponse JSON-RPC."""
    payload = response.result

    if isinstance(payload, dict):
        if payload.get("result") is not None:
            return Nested(payload["result"])

        if "content" in payload:
            content = payload["content"]
            if (
                isinstance(content, list)
                and content
                and isinstance(content[0], dict)
                and "text" in content[0]
            ):
                return ContentArrayText(content[0]["text"])
            return ContentRaw(content)

    if response.has_result:
        return Passthrough(payload)
    return Passthrough(response.raw)


def extract_result(response: JsonRpcResponse) -> Any:
    """Retourne la valeur normalisée destinée à l'appelant."""
    return classify_result(response).value
