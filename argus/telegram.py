"""Telegram front end: answers chat messages through the model and a few tools."""

from __future__ import annotations

import threading
import time
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from argus.llm import LlmError, OpenRouterClient, first_message, parse_tool_arguments
from argus.mcp import McpClient, McpError
from argus.memory_bridge import ArgusMemory, MemoryBridgeError
from argus.tools import DUCKDUCKGO_URL, parse_duckduckgo_results

TELEGRAM_API_URL = "https://api.telegram.org/bot{}"
MESSAGE_CHUNK = 4000

SYSTEM_PROMPT = """You are Grok, made by xAI. You're chatting via Telegram through ARGUS.

IDENTITY: You are Grok (xAI). ARGUS is just the framework.

TOOLS: web_search, remember, recall, plus any MCP tools.

Keep responses concise for mobile. Use tools when helpful."""

FOLLOW_UP_PROMPT = "You are Grok (xAI) via Telegram. Be concise."


class _ChatModel(Protocol):
    def chat(
        self,
        messages: Any,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
    ) -> dict[str, Any]: ...


def split_message(text: str, size: int = MESSAGE_CHUNK) -> list[str]:
    """Cut ``text`` into pieces of at most ``size`` characters."""
    if size <= 0:
        raise ValueError("size must be positive")
    return [text[start:start + size] for start in range(0, len(text), size)]


def _builtin_tools() -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": "web_search",
                "description": "Search Google for current information, news, facts.",
                "parameters": {
                    "type": "object",
                    "properties": {"query": {"type": "string", "description": "The search query"}},
                    "required": ["query"],
                },
            },
        },
        {
            "type": "function",
            "function": {
                "name": "remember",
                "description": "Store information in persistent memory.",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "content": {"type": "string", "description": "The information to remember"},
                        "type": {"type": "string", "enum": ["fact", "preference", "task", "learning"]},
                        "importance": {"type": "number", "description": "1-10 importance"},
                    },
                    "required": ["content"],
                },
            },
        },
        {
            "type": "function",
            "function": {
                "name": "recall",
                "description": "Retrieve memories.",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "query": {"type": "string", "description": "Search term"},
                        "limit": {"type": "number", "description": "Max results"},
                    },
                },
            },
        },
    ]


def _arg(args: Any, key: str) -> Any:
    return args.get(key) if isinstance(args, dict) else None


def _str_or(args: Any, key: str, default: str | None) -> str | None:
    value = _arg(args, key)
    return value if isinstance(value, str) else default


class TelegramApi:
    """Minimal Bot API client: long polling and sending text."""

    def __init__(self, token: str, http: httpx.Client | None = None) -> None:
        self._base = TELEGRAM_API_URL.format(token)
        self._http = http if http is not None else httpx.Client(timeout=60.0)

    def _result(self, response: httpx.Response) -> Any:
        try:
            data = response.json()
        except ValueError as exc:
            raise httpx.HTTPError(f"invalid Telegram response: {exc}") from exc
        if not isinstance(data, dict) or not data.get("ok"):
            description = data.get("description") if isinstance(data, dict) else None
            raise httpx.HTTPError(f"Telegram error: {description or 'request failed'}")
        return data.get("result")

    def get_updates(self, offset: int | None = None, timeout: int = 30) -> list[dict[str, Any]]:
        """Fetch pending updates, waiting up to ``timeout`` seconds for new ones."""
        params: dict[str, Any] = {"timeout": timeout}
        if offset is not None:
            params["offset"] = offset
        response = self._http.get(f"{self._base}/getUpdates", params=params, timeout=timeout + 10)
        result = self._result(response)
        return [update for update in result or [] if isinstance(update, dict)]

    def send_message(self, chat_id: int, text: str) -> Any:
        """Send ``text`` to chat ``chat_id``."""
        response = self._http.post(f"{self._base}/sendMessage", json={"chat_id": chat_id, "text": text})
        return self._result(response)


class ArgusBot:
    """Answers one message at a time with the model and its tools."""

    def __init__(
        self,
        llm: _ChatModel,
        memory: ArgusMemory | None = None,
        mcp: McpClient | None = None,
        http: httpx.Client | None = None,
    ) -> None:
        self.llm = llm
        self.memory = memory if memory is not None else ArgusMemory()
        if mcp is None:
            mcp = McpClient()
            mcp.connect_all()
        self.mcp = mcp
        self.http = http if http is not None else httpx.Client(timeout=30.0)
        self._mcp_lock = threading.Lock()

    def _tools(self) -> list[dict[str, Any]]:
        tools = _builtin_tools()
        with self._mcp_lock:
            tools.extend(
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description or "",
                        "parameters": tool.input_schema,
                    },
                }
                for tool in self.mcp.all_tools()
            )
        return tools

    def process_message(self, user_msg: str) -> str:
        """Return the reply to ``user_msg``; failures come back as text."""
        try:
            response = self.llm.chat(
                [{"role": "system", "content": SYSTEM_PROMPT}, {"role": "user", "content": user_msg}],
                tools=self._tools(),
                temperature=0.7,
            )
        except LlmError as exc:
            return f"❌ Error: {exc}"

        message = first_message(response)
        tool_calls = message.get("tool_calls")
        if isinstance(tool_calls, list):
            conversation: list[dict[str, Any]] = [
                {"role": "system", "content": FOLLOW_UP_PROMPT},
                {"role": "user", "content": user_msg},
                message,
            ]
            for tool_call in tool_calls:
                function = _arg(tool_call, "function")
                name = _str_or(function, "name", "") or ""
                result = self.execute_tool(name, parse_tool_arguments(tool_call))
                conversation.append(
                    {"role": "tool", "tool_call_id": _str_or(tool_call, "id", "") or "", "content": result}
                )
            try:
                follow_up = self.llm.chat(conversation, temperature=0.7)
            except LlmError:
                return "Tool executed."
            content = first_message(follow_up).get("content")
            return content if isinstance(content, str) else "Done."

        content = message.get("content")
        return content if isinstance(content, str) else "..."

    def execute_tool(self, name: str, args: Any) -> str:
        """Run one tool and describe its outcome as text."""
        if name == "web_search":
            return self._web_search(_str_or(args, "query", "") or "")
        if name == "remember":
            importance = _arg(args, "importance")
            if isinstance(importance, bool) or not isinstance(importance, (int, float)):
                importance = 5.0
            try:
                return self.memory.remember(
                    _str_or(args, "type", "fact") or "fact",
                    _str_or(args, "content", "") or "",
                    None,
                    float(importance),
                    None,
                )
            except MemoryBridgeError as exc:
                return f"Memory error: {exc}"
        if name == "recall":
            limit = _arg(args, "limit")
            if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
                limit = 5
            try:
                memories = self.memory.recall(_str_or(args, "query", None), None, limit)
            except MemoryBridgeError as exc:
                return f"Error: {exc}"
            if not memories:
                return "No memories found."
            return "\n".join(f"[{m.memory_type}] {m.content}" for m in memories)
        with self._mcp_lock:
            try:
                return self.mcp.call_tool(name, args)
            except McpError:
                return f"Unknown tool: {name}"

    def _web_search(self, query: str) -> str:
        url = DUCKDUCKGO_URL.format(quote(query, safe=""))
        try:
            response = self.http.get(url, headers={"User-Agent": "Mozilla/5.0"})
        except httpx.HTTPError as exc:
            return f"Error: {exc}"
        try:
            html = response.text
        except (httpx.HTTPError, UnicodeDecodeError):
            return "Search failed"
        results = parse_duckduckgo_results(html, 3)
        return "\n\n".join(results) if results else "No results found"


def run_telegram_bot(token: str, api_key: str) -> None:
    """Poll Telegram for messages and answer each until interrupted."""
    print("🤖 Argus Telegram bot starting...")
    api = TelegramApi(token)
    bot = ArgusBot(OpenRouterClient(api_key))
    offset: int | None = None
    try:
        while True:
            try:
                updates = api.get_updates(offset)
            except httpx.HTTPError:
                time.sleep(1)
                continue
            for update in updates:
                update_id = update.get("update_id")
                if isinstance(update_id, int):
                    offset = update_id + 1
                message = update.get("message")
                if not isinstance(message, dict):
                    continue
                text = message.get("text")
                chat_id = _arg(message.get("chat"), "id")
                if not isinstance(text, str) or chat_id is None:
                    continue
                response = bot.process_message(text)
                try:
                    for chunk in split_message(response):
                        api.send_message(chat_id, chunk)
                except httpx.HTTPError:
                    continue
    except KeyboardInterrupt:
        pass
    finally:
        bot.mcp.close()