# argus

The hundred-eyed agent runtime: a chat agent that talks to a model through an
OpenAI-compatible chat-completions endpoint, runs tools on your behalf,
remembers across sessions through a helper script, and can reach extra tools
through Model Context Protocol (MCP) servers. It comes with a full-screen
terminal chat and a Telegram bot.

## Install

    pip install .

## Terminal chat

    from argus.tui import run_tui

    run_tui(api_key)

`run_tui` connects the configured MCP servers (connection errors are printed
to standard error), then opens a curses screen with an animated avatar that
shows whether the agent is watching, thinking, running a tool or done. Type a
message and press ENTER to send it, use the up and down arrows to scroll, and
press ESC to quit. Input is ignored while the agent is busy.

## Telegram bot

    from argus.telegram import run_telegram_bot

    run_telegram_bot(bot_token, api_key)

The bot long-polls the Telegram Bot API and answers each text message. Replies
longer than 4000 characters are sent in several parts (`split_message`). It
offers the model `web_search` (DuckDuckGo), `remember`, `recall` and any MCP
tools. Stop it with Ctrl+C.

## Model client

`argus.llm.OpenRouterClient(api_key, http=None, model="x-ai/grok-4.1-fast")`
posts chat completions to OpenRouter. `chat(messages, tools=None,
temperature=None)` returns the decoded JSON reply and raises `LlmError` when
the request fails or the body is not a JSON object. `first_message` and
`parse_tool_arguments` pick apart a reply; malformed parts give empty values.

`argus.chat.ChatSession(llm, executor)` keeps the visible conversation in
`messages`. `send_message(text)` sends one user message, runs every tool call
the model asks for, shows a one-line summary of each result, and makes a
follow-up request for the final answer. Its `state` is an `ArgusState`.

## Built-in tools

`argus.tools.ToolExecutor(memory=None, mcp=None, http=None)` runs tool calls
by name with `execute(name, args)` and always answers with text:

- `read_file`, `write_file` and `list_directory` work on the local file
  system. Files longer than 2000 bytes are cut short.
- `shell` runs a command with `sh -c`. Commands containing `rm -rf /`,
  `sudo`, `mkfs`, `dd if=` or `> /dev/` are refused (`is_blocked_command`).
- `web_search` searches Google and falls back to DuckDuckGo.
- `remember`, `recall` and `forget` work on persistent memory.
- Any other name is passed to the MCP servers; if none offers it the answer
  is `Unknown tool: <name>`.

`tool_definitions(mcp_tools)` gives the function schemas sent to the model.

## Memory

`argus.memory_bridge.ArgusMemory` runs a helper script as
`python3 memory.py <command> <json>` and reads one JSON object from its
output. The script is looked for at `scripts/memory.py` beside the package
directory, then at `~/.argus/memory.py`; a path may also be given directly.
`remember`, `recall` and `forget` raise `MemoryBridgeError` on failure.

## MCP servers

MCP servers are listed in `~/.argus/mcp.json` as a JSON list of objects with
`name`, `command`, and optional `args` and `env`. `argus.mcp.add_server(path,
name, command)` appends an entry, splitting the command line on whitespace;
`load_config(path)` reads them. `McpClient.connect_all()` starts each server
as a subprocess, speaks JSON-RPC 2.0 over its stdin and stdout, and returns
one message per server that failed. `call_tool` sends a call to the first
server that offers the tool. Close the client (or use it as a context
manager) to stop the server processes.

## Capabilities

`argus.capabilities.CapabilitySet` holds grants such as `FileRead(paths)` and
`Network(domains)`. `can_read_file(path)` checks path prefixes and
`can_access_domain(domain)` checks domain suffixes.

## What this package does not do

- There is no `argus` command; the terminal chat and the Telegram bot are
  started from Python as shown above.
- There is no secret storage. API keys and bot tokens are passed in by the
  caller.
- The memory helper script is not included; memory tools report an error
  until one is installed at one of the paths above.