"""
Bridge MCP du Discord Bot Control Center.

Invoque des serveurs MCP stdio (tools/call, resources/read) et normalise
leur réponse JSON-RPC.
"""

__version__ = "1.0.0"
