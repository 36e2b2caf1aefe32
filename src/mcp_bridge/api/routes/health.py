"""
Routes API pour le health check.
"""
from fastapi import APIRouter, Request

from ...config.loader import get_bridge_settings

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check: transport et allow-list effectifs (sans lancer de serveur MCP)."""
    bridge = getattr(request.app.state, "bridge", None)
    settings = bridge.settings if bridge is not None else get_bridge_settings()

    return {
        "status": "ok",
        "transport": settings.transport,
        "timeout_s": settings.timeout_s,
        "allowed_servers": list(settings.allowed_servers),
    }
