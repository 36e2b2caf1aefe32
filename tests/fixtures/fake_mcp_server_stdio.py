#!/usr/bin/env python3
"""Fake MCP stdio server for bridge verification.

Purpose:
- Provide a deterministic stdio JSON-RPC server to test the bridge behavior
  without depending on npx/network.

Behavior:
- Reads the whole stdin (a JSON array: [initialize, real call])
- Replies on stdout according to FAKE_MCP_MODE

Modes (FAKE_MCP_MODE):
- lines (default): banner line, init response, call response (1 per line)
- pretty: log line then the call response indented over several lines
- init_only: only the initialize response
- rpc_error: JSON-RPC error for the call
- exit_error: well-formed call response, then exit code 3 with stderr
- hang: never answers (sleeps)
- garbage: no JSON at all

Options:
- FAKE_MCP_RECORD_PATH: write the raw stdin payload to this path
- FAKE_MCP_PID_PATH: write the server PID to this path
"""

from __future__ import annotations

import json
import os
import sys
import time
from typing import Any


def _write(obj: object, *, indent: int | None = None) -> None:
    sys.stdout.write(json.dumps(obj, ensure_ascii=False, indent=indent) + "\n")
    sys.stdout.flush()


def _init_response(req_id: object) -> dict[str, object]:
    return {
        "jsonrpc": "2.0",
        "id": req_id,
        "result": {
            "protocolVersion": "0.1.0",
            "capabilities": {"tools": {}, "resources": {}},
            "serverInfo": {"name": "fake-mcp", "version": "0.0.1"},
        },
    }


def _call_result(request: dict[str, Any]) -> dict[str, object]:
    method = request.get("method")
    params = request.get("params") or {}
    if method == "tools/call":
        name = params.get("name")
        arguments = params.get("arguments") or {}
        if name == "echo":
            return {"content": [{"type": "text", "text": str(arguments.get("text", ""))}]}
        if name == "raw_content":
            return {"content": arguments.get("value")}
        if name == "nested":
            return {"result": arguments}
        return {"content": [{"type": "text", "text": f"called {name}"}]}
    if method == "resources/read":
        uri = params.get("uri")
        return {"contents": [{"uri": uri, "mimeType": "text/plain", "text": f"contents of {uri}"}]}
    return {}


def main() -> int:
    raw = sys.stdin.buffer.read().decode("utf-8", errors="replace")

    record_path = os.getenv("FAKE_MCP_RECORD_PATH")
    if record_path:
        with open(record_path, "w", encoding="utf-8") as f:
            f.write(raw)

    pid_path = os.getenv("FAKE_MCP_PID_PATH")
    if pid_path:
        with open(pid_path, "w", encoding="utf-8") as f:
            f.write(str(os.getpid()))

    mode = os.getenv("FAKE_MCP_MODE", "lines")

    if mode == "hang":
        sys.stderr.write("fake-mcp: hanging\n")
        sys.stderr.flush()
        while True:
            time.sleep(1)

    if mode == "garbage":
        sys.stdout.write("Server started\nnothing to see here\n")
        return 0

    batch = json.loads(raw)
    init_req, call_req = batch[0], batch[1]

    if mode == "init_only":
        _write(_init_response(init_req["id"]))
        return 0

    if mode == "rpc_error":
        _write(_init_response(init_req["id"]))
        _write({"jsonrpc": "2.0", "id": call_req["id"], "error": {"code": -32601, "message": "Method not found"}})
        return 0

    response = {"jsonrpc": "2.0", "id": call_req["id"], "result": _call_result(call_req)}

    if mode == "exit_error":
        _write(response)
        sys.stderr.write("fake-mcp: fatal error\n")
        return 3

    if mode == "pretty":
        sys.stdout.write("[fake-mcp] starting\n")
        _write(response, indent=2)
        return 0

    sys.stdout.write("Fake MCP Server running on stdio\n")
    _write(_init_response(init_req["id"]))
    _write(response)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
