import pytest

from argus.chat import ArgusState, ChatMessage
from argus.mcp import McpClient, McpServer, McpTool
from argus.tui import ChatLine, avatar_for, mcp_status, render_chat_lines


@pytest.mark.parametrize(
    "state, title, color",
    [
        (ArgusState.WATCHING, " Watching ", "cyan"),
        (ArgusState.THINKING, " Thinking... ", "yellow"),
        (ArgusState.TOOL_ACTIVE, " Tool Active ", "magenta"),
        (ArgusState.SUCCESS, " Complete ", "green"),
    ],
)
def test_avatar_title_and_color(state, title, color):
    avatar = avatar_for(state)
    assert avatar.title == title
    assert avatar.color == color


def test_avatars_are_distinct():
    arts = {avatar_for(state).art for state in ArgusState}
    assert len(arts) == len(ArgusState)
    assert "ALL EYES OPEN" in avatar_for(ArgusState.WATCHING).art
    assert "EXECUTING" in avatar_for(ArgusState.TOOL_ACTIVE).art


def test_render_chat_lines_layout():
    lines = render_chat_lines([ChatMessage("You", "hi\nthere"), ChatMessage("Grok", "ok")])
    assert [line.text for line in lines] == [
        "► You",
        "  hi",
        "  there",
        "",
        "◉ Grok",
        "  ok",
        "",
    ]
    assert lines[0] == ChatLine("► You", "green", True)
    assert lines[4].color == "cyan"
    assert lines[1].color == "white"
    assert lines[5].color == "gray"


def test_render_chat_lines_empty():
    assert render_chat_lines([]) == []


def test_mcp_status_without_servers():
    assert mcp_status(McpClient(config_file="unused.json")) == ""


def test_mcp_status_counts_servers_and_tools():
    client = McpClient(config_file="unused.json")
    server = McpServer("alpha", None)
    server.tools = [McpTool("one", None, {}, "alpha"), McpTool("two", "d", {}, "alpha")]
    client.servers.append(server)
    status = mcp_status(client)
    assert status.startswith("🔌 1 MCP")
    assert "(2 tools)" in status