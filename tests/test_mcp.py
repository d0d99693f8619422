import json
import sys
import textwrap

import pytest

from argus.mcp import McpClient, McpError, McpServer, McpServerConfig, add_server, load_config

FAKE_SERVER = textwrap.dedent(
    """
    import json, sys
    for line in sys.stdin:
        msg = json.loads(line)
        if "id" not in msg:
            continue
        method = msg["method"]
        if method == "initialize":
            result = {"protocolVersion": msg["params"]["protocolVersion"], "capabilities": {}}
        elif method == "tools/list":
            result = {"tools": [
                {"name": "echo", "description": "Echo text", "inputSchema": {"type": "object"}},
                {"name": "bad"},
                {"name": "raw", "inputSchema": {}},
            ]}
        elif method == "tools/call":
            name = msg["params"]["name"]
            args = msg["params"]["arguments"]
            if name == "echo":
                result = {"content": [
                    {"type": "text", "text": args.get("text", "")},
                    {"type": "image", "data": "x"},
                    {"type": "text", "text": "done"},
                ]}
            elif name == "raw":
                result = {"value": args}
            else:
                print(json.dumps({"jsonrpc": "2.0", "id": msg["id"],
                                  "error": {"code": -32601, "message": "no such tool"}}))
                sys.stdout.flush()
                continue
        else:
            continue
        print(json.dumps({"jsonrpc": "2.0", "id": msg["id"], "result": result}))
        sys.stdout.flush()
    """
)


@pytest.fixture
def server_config(tmp_path):
    script = tmp_path / "server.py"
    script.write_text(FAKE_SERVER)
    return McpServerConfig("fake", sys.executable, [str(script)])


@pytest.fixture
def config_file(tmp_path, server_config):
    path = tmp_path / "mcp.json"
    path.write_text(json.dumps([server_config.to_dict()]))
    return path


def test_connect_lists_valid_tools(server_config):
    with McpServer.connect(server_config) as server:
        assert [tool.name for tool in server.tools] == ["echo", "raw"]
        assert all(tool.server_name == "fake" for tool in server.tools)
        assert server.tools[0].description == "Echo text"
        assert server.tools[1].description is None


def test_call_tool_joins_text_content(server_config):
    with McpServer.connect(server_config) as server:
        assert server.call_tool("echo", {"text": "hello"}) == "hello\ndone"


def test_call_tool_without_content_returns_pretty_json(server_config):
    with McpServer.connect(server_config) as server:
        result = server.call_tool("raw", {"a": 1})
    assert json.loads(result) == {"value": {"a": 1}}
    assert result == json.dumps({"value": {"a": 1}}, indent=2)


def test_server_error_is_raised(server_config):
    with McpServer.connect(server_config) as server:
        with pytest.raises(McpError, match="MCP error: no such tool"):
            server.call_tool("missing", {})


def test_spawn_failure(tmp_path):
    config = McpServerConfig("broken", str(tmp_path / "no-such-binary"))
    with pytest.raises(McpError, match="Failed to spawn MCP server 'broken'"):
        McpServer.connect(config)


def test_client_connects_and_routes_calls(config_file):
    with McpClient(config_file) as client:
        assert client.connect_all() == []
        assert [tool.name for tool in client.all_tools()] == ["echo", "raw"]
        assert client.call_tool("echo", {"text": "hi"}) == "hi\ndone"
        with pytest.raises(McpError) as info:
            client.call_tool("nope", {})
    assert str(info.value) == "Tool 'nope' not found in any MCP server"
    assert client.servers == []


def test_client_collects_connection_errors(tmp_path, server_config):
    path = tmp_path / "mcp.json"
    broken = McpServerConfig("broken", str(tmp_path / "missing"))
    path.write_text(json.dumps([broken.to_dict(), server_config.to_dict()]))
    with McpClient(path) as client:
        errors = client.connect_all()
        assert len(errors) == 1
        assert errors[0].startswith("broken: Failed to spawn MCP server 'broken'")
        assert [server.name for server in client.servers] == ["fake"]


def test_client_reports_config_error(tmp_path):
    path = tmp_path / "mcp.json"
    path.write_text("{not json")
    client = McpClient(path)
    errors = client.connect_all()
    assert len(errors) == 1
    assert errors[0].startswith("Config error: Invalid mcp.json")


def test_load_config_missing_file_is_empty(tmp_path):
    assert load_config(tmp_path / "absent.json") == []


def test_load_config_defaults_args_and_env(tmp_path):
    path = tmp_path / "mcp.json"
    path.write_text(json.dumps([{"name": "files", "command": "serve"}]))
    assert load_config(path) == [McpServerConfig("files", "serve", [], {})]


def test_load_config_invalid_raises(tmp_path):
    path = tmp_path / "mcp.json"
    path.write_text(json.dumps({"name": "x"}))
    with pytest.raises(McpError, match="Invalid mcp.json"):
        load_config(path)


def test_add_server_splits_command_and_appends(tmp_path):
    path = tmp_path / "mcp.json"
    add_server(path, "first", "npx -y server-files /tmp")
    added = add_server(path, "second", "serve")
    assert added == McpServerConfig("second", "serve")
    assert load_config(path) == [
        McpServerConfig("first", "npx", ["-y", "server-files", "/tmp"]),
        McpServerConfig("second", "serve"),
    ]
    assert path.read_text().startswith("[\n  {")


def test_add_server_replaces_invalid_file(tmp_path):
    path = tmp_path / "mcp.json"
    path.write_text("garbage")
    add_server(path, "only", "run it")
    assert load_config(path) == [McpServerConfig("only", "run", ["it"])]


def test_add_server_with_blank_command_keeps_it(tmp_path):
    path = tmp_path / "mcp.json"
    config = add_server(path, "blank", "   ")
    assert config == McpServerConfig("blank", "   ")
    assert load_config(path) == [config]