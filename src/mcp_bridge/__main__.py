"""
Point d'entrée pour `python -m mcp_bridge`.
"""
import argparse
import logging

import uvicorn


def main():
    """Fonction principale."""
    parser = argparse.ArgumentParser(description="Discord Bot MCP Bridge")
    parser.add_argument("--host", default="0.0.0.0", help="Host (défaut: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port (défaut: 8000)")
    parser.add_argument("--reload", action="store_true", help="Activer le reload auto")
    parser.add_argument("--log-level", default="info", help="Niveau de log (défaut: info)")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"🚀 Démarrage du bridge MCP sur {args.host}:{args.port}")

    uvicorn.run(
        "mcp_bridge.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
