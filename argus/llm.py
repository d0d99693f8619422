"""Chat-completion client and the types that describe model responses."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

import httpx

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL = "x-ai/grok-4.1-fast"


class LlmError(Exception):
    """The model could not be reached or answered with something unusable."""


@dataclass
class LlmConfig:
    """Which provider and model to use, and how to sample."""

    provider: str = "anthropic"
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 8192
    temperature: float = 0.7


class StopReason(Enum):
    """Why the model stopped generating."""

    END_TURN = "end_turn"
    TOOL_USE = "tool_use"
    MAX_TOKENS = "max_tokens"


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the model."""

    name: str
    arguments: Any
    id: str = ""


@dataclass
class LlmResponse:
    """Text and tool calls returned by the model."""

    content: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    stop_reason: StopReason = StopReason.END_TURN


def first_message(response: Any) -> dict[str, Any]:
    """The message of the first choice in a completion, or an empty mapping."""
    try:
        message = response["choices"][0]["message"]
    except (KeyError, IndexError, TypeError):
        return {}
    return message if isinstance(message, dict) else {}


def parse_tool_arguments(tool_call: Any) -> dict[str, Any]:
    """Decode the JSON argument string of a tool call; malformed input gives ``{}``."""
    try:
        raw = tool_call["function"]["arguments"]
    except (KeyError, TypeError):
        raw = None
    if not isinstance(raw, str):
        raw = "{}"
    try:
        arguments = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    return arguments if isinstance(arguments, dict) else {}


class OpenRouterClient:
    """Sends chat completions to an OpenAI-compatible endpoint."""

    def __init__(self, api_key: str, http: httpx.Client | None = None, model: str = DEFAULT_MODEL) -> None:
        self.api_key = api_key
        self.model = model
        self._http = http if http is not None else httpx.Client(timeout=120.0)

    def chat(
        self,
        messages: Iterable[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
    ) -> dict[str, Any]:
        """Post one completion request and return the decoded JSON reply."""
        body: dict[str, Any] = {"model": self.model, "messages": list(messages)}
        if tools is not None:
            body["tools"] = tools
            body["tool_choice"] = "auto"
        if temperature is not None:
            body["temperature"] = temperature
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = self._http.post(OPENROUTER_URL, headers=headers, json=body)
        except httpx.HTTPError as exc:
            raise LlmError(f"request failed: {exc}") from exc
        try:
            data = response.json()
        except ValueError as exc:
            raise LlmError(f"invalid response body: {exc}") from exc
        if not isinstance(data, dict):
            raise LlmError("invalid response body: not an object")
        return data