"""AI agent runtime: model client, tools, MCP servers, memory bridge, terminal and Telegram chat."""

__version__ = "0.1.0"