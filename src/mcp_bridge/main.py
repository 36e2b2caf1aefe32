"""
Bridge MCP - Application FastAPI Factory.
Endpoints HTTP d'invocation des serveurs MCP stdio.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.router import api_router
from .config.loader import get_bridge_settings, load_config
from .features.mcp.bridge import MCPBridge, create_bridge

logger = logging.getLogger(__name__)


def create_app(bridge: Optional[MCPBridge] = None) -> FastAPI:
    """
    Factory pour créer l'application FastAPI.

    Args:
        bridge: Bridge à utiliser (sinon construit depuis config.toml au démarrage)

    Returns:
        Instance configurée de FastAPI
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Gestion du cycle de vie de l'application."""
        _startup(app, bridge)
        yield
        _shutdown(app)

    app = FastAPI(
        title="Discord Bot MCP Bridge",
        description="Invocation de serveurs MCP stdio (tools/call, resources/read)",
        version=__version__,
        lifespan=lifespan
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    if bridge is not None:
        app.state.bridge = bridge

    return app


def _startup(app: FastAPI, bridge: Optional[MCPBridge]):
    """Initialisation au démarrage."""
    print("🚀 Démarrage du bridge MCP...")

    if bridge is None:
        config = load_config()
        settings = get_bridge_settings(config)
        app.state.bridge = create_bridge(settings)
    else:
        settings = bridge.settings

    print(f"✅ Transport: {settings.transport} (timeout {settings.timeout_s:g}s)")
    print(f"✅ {len(settings.allowed_servers)} serveur(s) MCP autorisé(s)")
    print(f"📄 Settings MCP: {settings.settings_path}")


def _shutdown(app: FastAPI):
    """Arrêt de l'application."""
    print("\n👋 Arrêt du bridge MCP")
