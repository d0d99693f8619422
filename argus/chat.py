"""A chat session that sends user messages to the model and runs its tool calls."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from argus.llm import first_message, parse_tool_arguments
from argus.tools import ToolExecutor, tool_definitions

USER_ROLE = "You"
ASSISTANT_ROLE = "Grok"

SYSTEM_PROMPT = """You are Grok, made by xAI. You operate within ARGUS - a secure local agent framework.

IDENTITY (be honest about this):
• You are Grok, trained by xAI
• ARGUS is just the application/framework you're running in
• Never claim to be trained by anyone other than xAI
• Never pretend to be a different AI or hide your true identity

TOOLS AVAILABLE:
• read_file, write_file, list_directory, shell - file/system ops
• web_search - current info, news, facts
• remember, recall, forget - persistent memory

BEHAVIOR:
• Be direct, be yourself
• Use tools when helpful, not excessively
• Answer questions honestly
• Temperature is low - stay grounded, no hallucinations"""

FOLLOW_UP_PROMPT = "You are Grok (xAI) in ARGUS. Respond based on tool results. Be direct, honest, no fluff."


class _ChatModel(Protocol):
    def chat(
        self,
        messages: Any,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
    ) -> dict[str, Any]: ...


class ArgusState(Enum):
    """What the agent is doing right now."""

    WATCHING = "watching"
    THINKING = "thinking"
    TOOL_ACTIVE = "tool_active"
    SUCCESS = "success"


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str


def _first_line(text: str) -> str:
    return text.split("\n", 1)[0].removesuffix("\r")


def _tool_name(tool_call: Any) -> str:
    try:
        name = tool_call["function"]["name"]
    except (KeyError, TypeError):
        return ""
    return name if isinstance(name, str) else ""


def _tool_call_id(tool_call: Any) -> str:
    call_id = tool_call.get("id") if isinstance(tool_call, dict) else None
    return call_id if isinstance(call_id, str) else ""


class ChatSession:
    """Conversation shown to the user, with one model round trip per message."""

    def __init__(self, llm: _ChatModel, executor: ToolExecutor) -> None:
        self.llm = llm
        self.executor = executor
        self.messages: list[ChatMessage] = []
        self.state = ArgusState.WATCHING

    @property
    def busy(self) -> bool:
        return self.state in (ArgusState.THINKING, ArgusState.TOOL_ACTIVE)

    def _say(self, content: str) -> None:
        self.messages.append(ChatMessage(ASSISTANT_ROLE, content))

    def send_message(self, text: str) -> None:
        """Send ``text`` to the model, run any tools it asks for and record the replies."""
        if not text.strip():
            return
        self.messages.append(ChatMessage(USER_ROLE, text))
        self.state = ArgusState.THINKING

        tools = tool_definitions(self.executor.mcp.all_tools())
        response = self.llm.chat(
            [{"role": "system", "content": SYSTEM_PROMPT}, {"role": "user", "content": text}],
            tools=tools,
            temperature=0.7,
        )
        message = first_message(response)
        tool_calls = message.get("tool_calls")

        if isinstance(tool_calls, list):
            conversation: list[dict[str, Any]] = [
                {"role": "system", "content": FOLLOW_UP_PROMPT},
                {"role": "user", "content": text},
                message,
            ]
            for tool_call in tool_calls:
                name = _tool_name(tool_call)
                self.state = ArgusState.TOOL_ACTIVE
                result = self.executor.execute(name, parse_tool_arguments(tool_call))
                self._say(f"🔧 {name}: {_first_line(result)}")
                conversation.append(
                    {"role": "tool", "tool_call_id": _tool_call_id(tool_call), "content": result}
                )
            follow_up = first_message(self.llm.chat(conversation, tools=tools))
            content = follow_up.get("content")
            if not isinstance(content, str):
                content = "Done."
            if content:
                self._say(content)
        else:
            content = message.get("content")
            self._say(content if isinstance(content, str) else "Error: No response")
        self.state = ArgusState.SUCCESS