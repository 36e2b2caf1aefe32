"""mcp_bridge.features.mcp.requests

Construction du batch JSON-RPC envoyé au serveur MCP.

Le sous-processus est éphémère et ne garde aucune session: le handshake
`initialize` est renvoyé à chaque invocation, dans le même batch et avant
la requête réelle.
"""

from __future__ import annotations

import json
import time
from typing import Callable, List

from ...config.settings import DEFAULT_CLIENT_NAME, DEFAULT_CLIENT_VERSION, DEFAULT_PROTOCOL_VERSION
from ...core.models import INIT_ID_PREFIX, JsonRpcRequest, Operation


def _now_ms() -> int:
    return int(time.time() * 1000)


class RequestBuilder:
    """Construit le couple [handshake, appel réel]."""

    def __init__(
        self,
        *,
        protocol_version: str = DEFAULT_PROTOCOL_VERSION,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
        clock: Callable[[], int] = _now_ms,
    ):
        self.protocol_version = protocol_version
        self.client_name = client_name
        self.client_version = client_version
        self._clock = clock

    def build_handshake(self, stamp: str) -> JsonRpcRequest:
        return JsonRpcRequest(
            id=f"{INIT_ID_PREFIX}{stamp}",
            method="initialize",
            params={
                "protocolVersion": self.protocol_version,
                "capabilities": {},
                "clientInfo": {
                    "name": self.client_name,
                    "version": self.client_version,
                },
            },
        )

    def build_batch(self, operation: Operation) -> List[JsonRpcRequest]:
        """Retourne `[handshake, call]` pour une ToolInvocation ou une ResourceAccess.

        Les deux ids dérivent du même instant: seul le préfixe `init-` les distingue.
        """
        stamp = str(self._clock())
        handshake = self.build_handshake(stamp)
        call = JsonRpcRequest(id=stamp, method=operation.method, params=operation.params)
        return [handshake, call]


def serialize_batch(batch: List[JsonRpcRequest]) -> str:
    """Sérialise le batch en tableau JSON (aucun framing supplémentaire)."""
    return json.dumps([request.to_dict() for request in batch], ensure_ascii=False)
