"""Client for Model Context Protocol servers speaking JSON-RPC 2.0 over stdio."""

from __future__ import annotations

import itertools
import json
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_request_ids = itertools.count(1)

PROTOCOL_VERSION = "2024-11-05"
CLIENT_INFO = {"name": "argus", "version": "0.1.0"}


class McpError(Exception):
    """An MCP server could not be reached or answered with an error."""


@dataclass
class McpServerConfig:
    name: str
    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "command": self.command, "args": list(self.args), "env": dict(self.env)}

    @classmethod
    def from_dict(cls, data: Any) -> "McpServerConfig":
        if not isinstance(data, dict):
            raise ValueError("server entry must be an object")
        name, command = data["name"], data["command"]
        args = data.get("args", [])
        env = data.get("env", {})
        if not isinstance(name, str) or not isinstance(command, str):
            raise ValueError("name and command must be strings")
        if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
            raise ValueError("args must be a list of strings")
        if not isinstance(env, dict) or not all(isinstance(v, str) for v in env.values()):
            raise ValueError("env must map names to strings")
        return cls(name, command, list(args), dict(env))


@dataclass
class McpTool:
    name: str
    description: str | None
    input_schema: Any
    server_name: str = ""

    @classmethod
    def _from_json(cls, data: Any, server_name: str) -> "McpTool | None":
        if not isinstance(data, dict) or "inputSchema" not in data:
            return None
        name = data.get("name")
        description = data.get("description")
        if not isinstance(name, str) or (description is not None and not isinstance(description, str)):
            return None
        return cls(name, description, data["inputSchema"], server_name)


def config_path() -> Path:
    return Path.home() / ".argus" / "mcp.json"


def _parse_configs(text: str) -> list[McpServerConfig]:
    raw = json.loads(text)
    if not isinstance(raw, list):
        raise ValueError("expected a list of servers")
    return [McpServerConfig.from_dict(item) for item in raw]


def load_config(path: str | os.PathLike | None = None) -> list[McpServerConfig]:
    """Read server configurations; a missing file means none."""
    path = Path(path) if path is not None else config_path()
    if not path.exists():
        return []
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise McpError(str(exc)) from exc
    try:
        return _parse_configs(text)
    except (ValueError, KeyError, TypeError) as exc:
        raise McpError(f"Invalid mcp.json: {exc}") from exc


def add_server(path: str | os.PathLike | None, name: str, command: str) -> McpServerConfig:
    """Append a server whose command line is split on whitespace.

    An unreadable or invalid existing file is replaced.
    """
    path = Path(path) if path is not None else config_path()
    configs: list[McpServerConfig] = []
    if path.exists():
        try:
            configs = _parse_configs(path.read_text(encoding="utf-8"))
        except (ValueError, KeyError, TypeError):
            configs = []
    parts = command.split()
    config = McpServerConfig(name, parts[0], parts[1:]) if parts else McpServerConfig(name, command)
    configs.append(config)
    path.write_text(json.dumps([c.to_dict() for c in configs], indent=2), encoding="utf-8")
    return config


class McpServer:
    """A running MCP server process and the tools it offers."""

    def __init__(self, name: str, process: subprocess.Popen) -> None:
        self.name = name
        self._process = process
        self.tools: list[McpTool] = []

    @classmethod
    def connect(cls, config: McpServerConfig) -> "McpServer":
        """Start the server, perform the handshake and fetch its tools."""
        try:
            process = subprocess.Popen(
                [config.command, *config.args],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                env={**os.environ, **config.env},
                text=True,
                encoding="utf-8",
            )
        except OSError as exc:
            raise McpError(f"Failed to spawn MCP server '{config.name}': {exc}") from exc
        server = cls(config.name, process)
        try:
            server._initialize()
            server._list_tools()
        except McpError:
            server.close()
            raise
        return server

    def _write_line(self, payload: dict[str, Any]) -> None:
        stdin = self._process.stdin
        if stdin is None:
            raise McpError("Failed to get stdin")
        try:
            stdin.write(json.dumps(payload) + "\n")
            stdin.flush()
        except (OSError, ValueError) as exc:
            raise McpError(f"Failed to write to MCP server: {exc}") from exc

    def _send_request(self, method: str, params: Any = None) -> Any:
        request: dict[str, Any] = {"jsonrpc": "2.0", "id": next(_request_ids), "method": method}
        if params is not None:
            request["params"] = params
        self._write_line(request)
        stdout = self._process.stdout
        if stdout is None:
            raise McpError("Failed to get stdout")
        try:
            line = stdout.readline()
        except (OSError, ValueError) as exc:
            raise McpError(f"Failed to read from MCP server: {exc}") from exc
        try:
            response = json.loads(line)
        except json.JSONDecodeError as exc:
            raise McpError(f"Invalid JSON-RPC response: {exc}") from exc
        if not isinstance(response, dict):
            raise McpError("Invalid JSON-RPC response: not an object")
        error = response.get("error")
        if error is not None:
            message = error.get("message", "") if isinstance(error, dict) else str(error)
            raise McpError(f"MCP error: {message}")
        result = response.get("result")
        if result is None:
            raise McpError("No result in response")
        return result

    def _initialize(self) -> None:
        self._send_request(
            "initialize",
            {"protocolVersion": PROTOCOL_VERSION, "capabilities": {"tools": {}}, "clientInfo": CLIENT_INFO},
        )
        self._write_line({"jsonrpc": "2.0", "method": "notifications/initialized"})

    def _list_tools(self) -> None:
        result = self._send_request("tools/list")
        tools = result.get("tools") if isinstance(result, dict) else None
        if isinstance(tools, list):
            parsed = (McpTool._from_json(item, self.name) for item in tools)
            self.tools = [tool for tool in parsed if tool is not None]

    def call_tool(self, name: str, arguments: Any) -> str:
        """Call a tool and return its text output."""
        result = self._send_request("tools/call", {"name": name, "arguments": arguments})
        content = result.get("content") if isinstance(result, dict) else None
        if isinstance(content, list):
            return "\n".join(
                item["text"]
                for item in content
                if isinstance(item, dict) and item.get("type") == "text" and isinstance(item.get("text"), str)
            )
        return json.dumps(result, indent=2)

    def close(self) -> None:
        """Stop the server process."""
        if self._process.poll() is None:
            self._process.kill()
        self._process.wait()
        for stream in (self._process.stdin, self._process.stdout):
            if stream is not None:
                try:
                    stream.close()
                except OSError:
                    pass

    def __enter__(self) -> "McpServer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class McpClient:
    """All configured MCP servers and their combined tools."""

    def __init__(self, config_file: str | os.PathLike | None = None) -> None:
        self.config_file = Path(config_file) if config_file is not None else config_path()
        self.servers: list[McpServer] = []

    def connect_all(self) -> list[str]:
        """Connect every configured server; return one message per failure."""
        try:
            configs = load_config(self.config_file)
        except McpError as exc:
            return [f"Config error: {exc}"]
        errors: list[str] = []
        for config in configs:
            try:
                self.servers.append(McpServer.connect(config))
            except McpError as exc:
                errors.append(f"{config.name}: {exc}")
        return errors

    def all_tools(self) -> list[McpTool]:
        return [tool for server in self.servers for tool in server.tools]

    def call_tool(self, tool_name: str, arguments: Any) -> str:
        """Call a tool on the first server that offers it."""
        for server in self.servers:
            if any(tool.name == tool_name for tool in server.tools):
                return server.call_tool(tool_name, arguments)
        raise McpError(f"Tool '{tool_name}' not found in any MCP server")

    def close(self) -> None:
        for server in self.servers:
            server.close()
        self.servers.clear()

    def __enter__(self) -> "McpClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()