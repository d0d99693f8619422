"""Built-in agent tools and the executor that dispatches tool calls."""

from __future__ import annotations

import os
import subprocess
import unicodedata
from typing import Any, Iterable
from urllib.parse import quote

import httpx

from argus.mcp import McpClient, McpError, McpTool
from argus.memory_bridge import ArgusMemory, MemoryBridgeError

_OUTPUT_LIMIT = 2000
_DANGEROUS = ("rm -rf /", "sudo", "mkfs", "dd if=", "> /dev/")
_BROWSER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
_GOOGLE_MARKER = '<div class="BNeawe'
_DDG_MARKER = "result__snippet"
_GOOGLE_MAX_RESULTS = 8

GOOGLE_SEARCH_URL = "https://www.google.com/search?q={}&num=10"
DUCKDUCKGO_URL = "https://html.duckduckgo.com/html/?q={}"

_MEMORY_TYPES = ["fact", "preference", "task", "learning", "relationship"]


def _function(name: str, description: str, properties: dict[str, Any], required: list[str] | None) -> dict[str, Any]:
    parameters: dict[str, Any] = {"type": "object", "properties": properties}
    if required is not None:
        parameters["required"] = required
    return {
        "type": "function",
        "function": {"name": name, "description": description, "parameters": parameters},
    }


def _string(description: str) -> dict[str, str]:
    return {"type": "string", "description": description}


def tool_definitions(mcp_tools: Iterable[McpTool] = ()) -> list[dict[str, Any]]:
    """Function schemas for the built-in tools followed by the given MCP tools."""
    definitions = [
        _function(
            "read_file",
            "Read the contents of a file from the filesystem",
            {"path": _string("The path to the file to read")},
            ["path"],
        ),
        _function(
            "list_directory",
            "List files and directories in a given path",
            {"path": _string("The directory path to list")},
            ["path"],
        ),
        _function(
            "write_file",
            "Write content to a file",
            {"path": _string("The path to write to"), "content": _string("The content to write")},
            ["path", "content"],
        ),
        _function(
            "shell",
            "Execute a shell command and return output. Use for system tasks.",
            {"command": _string("The shell command to execute")},
            ["command"],
        ),
        _function(
            "web_search",
            "Search Google for current information, news, facts, or anything you don't know. "
            "Always use this for questions about recent events, people, or things that may have changed.",
            {"query": _string("The search query")},
            ["query"],
        ),
        _function(
            "remember",
            "Store information in persistent memory. Use for facts, preferences, important details "
            "about the user, or anything worth remembering across sessions.",
            {
                "content": _string("The information to remember"),
                "type": {"type": "string", "enum": list(_MEMORY_TYPES), "description": "Category of memory"},
                "importance": {"type": "number", "description": "Importance score 1-10"},
                "reasoning": _string("Why this is worth remembering"),
            },
            ["content", "type"],
        ),
        _function(
            "recall",
            "Search and retrieve memories. Use at the start of conversations or when you need "
            "context about the user.",
            {
                "query": _string("Search term to find relevant memories"),
                "type": {"type": "string", "enum": list(_MEMORY_TYPES), "description": "Filter by memory type"},
                "limit": {"type": "number", "description": "Max memories to return (default 10)"},
            },
            None,
        ),
        _function(
            "forget",
            "Delete memories matching a search term. Use when user asks to forget something or "
            "information is outdated.",
            {"content_match": _string("Text to match for deletion")},
            ["content_match"],
        ),
    ]
    definitions.extend(
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description or "",
                "parameters": tool.input_schema,
            },
        }
        for tool in mcp_tools
    )
    return definitions


def is_blocked_command(command: str) -> bool:
    """True if the command contains a pattern considered too dangerous to run."""
    return any(pattern in command for pattern in _DANGEROUS)


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


def _head(text: str, limit: int = _OUTPUT_LIMIT) -> str:
    return text.encode("utf-8")[:limit].decode("utf-8", errors="ignore")


def _strip_controls(text: str) -> str:
    return "".join(ch for ch in text if unicodedata.category(ch) != "Cc")


def read_file(path: str) -> str:
    """File contents, cut to 2000 bytes when longer, or an error line."""
    try:
        with open(os.fspath(path), encoding="utf-8") as handle:
            content = handle.read()
    except (OSError, ValueError) as exc:
        return f"Error reading file: {exc}"
    size = _byte_len(content)
    if size > _OUTPUT_LIMIT:
        return f"{_head(content)}...\n[truncated, {size} bytes total]"
    return content


def list_directory(path: str) -> str:
    """One line per entry, marked as folder or file, sorted by name."""
    try:
        with os.scandir(os.fspath(path)) as entries:
            listing = sorted(
                (entry.name, entry.is_dir(follow_symlinks=False)) for entry in entries
            )
    except (OSError, ValueError) as exc:
        return f"Error listing directory: {exc}"
    return "".join(f"{'📁 ' if is_dir else '📄 '}{name}\n" for name, is_dir in listing)


def write_file(path: str, content: str) -> str:
    """Write ``content`` to ``path`` and report how many bytes went out."""
    try:
        with open(os.fspath(path), "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
    except (OSError, ValueError) as exc:
        return f"Error writing file: {exc}"
    return f"✅ Written {_byte_len(content)} bytes to {path}"


def run_shell(command: str) -> str:
    """Run ``command`` with ``sh -c`` unless it is blocked, and describe the outcome."""
    if is_blocked_command(command):
        return "⛔ Command blocked for safety"
    try:
        completed = subprocess.run(["sh", "-c", command], capture_output=True)
    except OSError as exc:
        return f"Error executing: {exc}"
    stdout = completed.stdout.decode("utf-8", errors="replace")
    stderr = completed.stderr.decode("utf-8", errors="replace")
    if completed.returncode == 0:
        if _byte_len(stdout) > _OUTPUT_LIMIT:
            return f"{_head(stdout)}...\n[truncated]"
        return stdout
    code = completed.returncode if completed.returncode >= 0 else -1
    return f"Exit {code}: {stderr}"


def parse_google_results(html: str) -> list[str]:
    """Bulleted text snippets pulled from a Google result page, at most eight."""
    results: list[str] = []
    for part in html.split(_GOOGLE_MARKER):
        if len(results) >= _GOOGLE_MAX_RESULTS:
            break
        start = part.find(">")
        if start < 0:
            continue
        after_tag = part[start + 1:]
        end = after_tag.find("<")
        if end < 0:
            continue
        text = (
            after_tag[:end]
            .replace("&quot;", '"')
            .replace("&amp;", "&")
            .replace("&lt;", "<")
            .replace("&gt;", ">")
            .replace("&#39;", "'")
        )
        trimmed = _strip_controls(text).strip()
        if _byte_len(trimmed) > 40 and "http" not in trimmed:
            results.append(f"• {trimmed}")
    return results


def parse_duckduckgo_results(html: str, max_chunks: int) -> list[str]:
    """Snippets from the first ``max_chunks`` results of a DuckDuckGo HTML page."""
    results: list[str] = []
    for index, chunk in enumerate(html.split(_DDG_MARKER)):
        if index == 0 or index > max_chunks:
            continue
        start = chunk.find(">")
        if start < 0:
            continue
        end = chunk.find("<", start)
        if end < 0:
            continue
        snippet = chunk[start + 1:end].replace("&quot;", '"').replace("&amp;", "&")
        clean = _strip_controls(snippet)
        if _byte_len(clean) > 20:
            results.append(clean.strip())
    return results


def web_search(query: str, http: httpx.Client | None = None) -> str:
    """Search Google, falling back to DuckDuckGo, and format what was found."""
    client = http if http is not None else httpx.Client(timeout=30.0)
    encoded = quote(query, safe="")
    try:
        try:
            response = client.get(
                GOOGLE_SEARCH_URL.format(encoded),
                headers={"User-Agent": _BROWSER_AGENT},
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            return f"Error searching: {exc}"
        try:
            html = response.text
        except (httpx.HTTPError, UnicodeDecodeError) as exc:
            return f"Error reading response: {exc}"
        results = parse_google_results(html)
        if not results:
            try:
                fallback = client.get(DUCKDUCKGO_URL.format(encoded), follow_redirects=True)
                results = [f"• {snippet}" for snippet in parse_duckduckgo_results(fallback.text, 5)]
            except (httpx.HTTPError, UnicodeDecodeError):
                results = []
    finally:
        if http is None:
            client.close()
    if not results:
        return "No results found - try rephrasing your search"
    return f"🔍 Search results for '{query}':\n\n" + "\n\n".join(results)


def _str_arg(args: Any, key: str) -> str | None:
    value = args.get(key) if isinstance(args, dict) else None
    return value if isinstance(value, str) else None


def _number_arg(args: Any, key: str) -> float | None:
    value = args.get(key) if isinstance(args, dict) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _count_arg(args: Any, key: str) -> int | None:
    value = args.get(key) if isinstance(args, dict) else None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


class ToolExecutor:
    """Runs tool calls by name and always answers with text for the model."""

    def __init__(
        self,
        memory: ArgusMemory | None = None,
        mcp: McpClient | None = None,
        http: httpx.Client | None = None,
    ) -> None:
        self.memory = memory if memory is not None else ArgusMemory()
        self.mcp = mcp if mcp is not None else McpClient()
        self.http = http

    def execute(self, name: str, args: Any) -> str:
        """Run tool ``name`` with ``args``; unknown names go to the MCP servers."""
        if name == "read_file":
            return read_file(_str_arg(args, "path") or "")
        if name == "list_directory":
            path = _str_arg(args, "path")
            return list_directory(path if path is not None else ".")
        if name == "write_file":
            return write_file(_str_arg(args, "path") or "", _str_arg(args, "content") or "")
        if name == "shell":
            return run_shell(_str_arg(args, "command") or "")
        if name == "web_search":
            return web_search(_str_arg(args, "query") or "", self.http)
        if name == "remember":
            return self._remember(args)
        if name == "recall":
            return self._recall(args)
        if name == "forget":
            return self._forget(args)
        try:
            return self.mcp.call_tool(name, args)
        except McpError:
            return f"Unknown tool: {name}"

    def _remember(self, args: Any) -> str:
        memory_type = _str_arg(args, "type")
        importance = _number_arg(args, "importance")
        try:
            return self.memory.remember(
                memory_type if memory_type is not None else "fact",
                _str_arg(args, "content") or "",
                _str_arg(args, "reasoning"),
                importance if importance is not None else 5.0,
                None,
            )
        except MemoryBridgeError as exc:
            return f"❌ Memory error: {exc}"

    def _recall(self, args: Any) -> str:
        limit = _count_arg(args, "limit")
        try:
            memories = self.memory.recall(
                _str_arg(args, "query"),
                _str_arg(args, "type"),
                limit if limit is not None else 10,
            )
        except MemoryBridgeError as exc:
            return f"❌ Recall error: {exc}"
        if not memories:
            return "No memories found."
        lines = "".join(
            f"• [{m.memory_type}] (importance: {m.importance:.1f}): {m.content}\n" for m in memories
        )
        return "🧠 Recalled memories:\n\n" + lines

    def _forget(self, args: Any) -> str:
        try:
            return self.memory.forget(_str_arg(args, "content_match") or "")
        except MemoryBridgeError as exc:
            return f"❌ Forget error: {exc}"