"""
Exécution des serveurs MCP stdio (sous-processus).
"""

from .invoker import (
    ProcessInvoker,
    PipedStdinInvoker,
    FileRedirectInvoker,
    build_process_env,
    create_invoker,
    terminate_process,
)

__all__ = [
    "ProcessInvoker",
    "PipedStdinInvoker",
    "FileRedirectInvoker",
    "build_process_env",
    "create_invoker",
    "terminate_process",
]
