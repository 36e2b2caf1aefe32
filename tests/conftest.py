"""
Configuration des tests pytest.
"""
import json
import os
import sys
from pathlib import Path

import pytest

# Ajoute src au path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from mcp_bridge.core.models import ServerConfig  # noqa: E402

FAKE_SERVER_PATH = Path(__file__).resolve().parent / "fixtures" / "fake_mcp_server_stdio.py"
SERVER_NAME = "discord-bot-supabase-mcp"


def pytest_configure(config):
    """Déclare les markers du projet."""
    config.addinivalue_line("markers", "asyncio: marque un test comme asynchrone")
    config.addinivalue_line("markers", "unit: test unitaire (aucun réseau)")
    config.addinivalue_line("markers", "integration: lance de vrais sous-processus")


@pytest.fixture
def fake_server_config():
    """Fabrique de ServerConfig pointant vers le faux serveur MCP stdio."""

    def _make(mode: str = "lines", **extra_env: str) -> ServerConfig:
        env = {"FAKE_MCP_MODE": mode, **extra_env}
        return ServerConfig(
            name=SERVER_NAME,
            command=sys.executable,
            args=[str(FAKE_SERVER_PATH)],
            env=env,
        )

    return _make


@pytest.fixture
def settings_file(tmp_path):
    """Écrit un `.mcp-settings.json` et retourne son chemin."""

    def _write(servers: dict) -> Path:
        path = tmp_path / ".mcp-settings.json"
        path.write_text(json.dumps({"mcpServers": servers}), encoding="utf-8")
        return path

    return _write
