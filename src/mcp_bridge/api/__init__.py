"""
Couche API HTTP du bridge MCP.
"""
