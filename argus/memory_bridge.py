"""Persistent memory served by an external ``memory.py`` helper script.

Each operation runs the script as ``python3 memory.py <command> <json>`` and
reads one JSON object from its standard output.
"""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any


class MemoryBridgeError(Exception):
    """The memory helper failed or answered with an error."""


@dataclass(frozen=True)
class MemoryRecord:
    memory_type: str
    content: str
    importance: float
    created_at: str | None = None

    @classmethod
    def _from_json(cls, data: Any) -> "MemoryRecord":
        if not isinstance(data, dict):
            raise ValueError("memory record must be an object")
        memory_type = data["type"]
        content = data["content"]
        importance = data["importance"]
        created_at = data.get("created_at")
        if not isinstance(memory_type, str) or not isinstance(content, str):
            raise ValueError("type and content must be strings")
        if isinstance(importance, bool) or not isinstance(importance, (int, float)):
            raise ValueError("importance must be a number")
        if created_at is not None and not isinstance(created_at, str):
            raise ValueError("created_at must be a string")
        return cls(memory_type, content, float(importance), created_at)


def memory_script_path() -> Path:
    """The helper in a source checkout if present, else ``~/.argus/memory.py``."""
    dev_path = Path(__file__).resolve().parent.parent / "scripts" / "memory.py"
    if dev_path.exists():
        return dev_path
    return Path.home() / ".argus" / "memory.py"


class ArgusMemory:
    """Remember, recall and forget through the helper script."""

    def __init__(self, script_path: str | os.PathLike | None = None, python: str = "python3") -> None:
        self.script_path = Path(script_path) if script_path is not None else memory_script_path()
        self.python = python

    def call(self, command: str, data: dict[str, Any]) -> dict[str, Any]:
        """Run one helper command and return its decoded response."""
        try:
            completed = subprocess.run(
                [self.python, str(self.script_path), command, json.dumps(data)],
                capture_output=True,
            )
        except OSError as exc:
            raise MemoryBridgeError(f"Failed to run memory.py: {exc}") from exc
        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace")
            raise MemoryBridgeError(f"memory.py failed: {stderr}")
        stdout = completed.stdout.decode("utf-8", errors="replace")
        try:
            response = json.loads(stdout)
        except json.JSONDecodeError as exc:
            raise MemoryBridgeError(f"Invalid response: {exc}") from exc
        if not isinstance(response, dict) or not isinstance(response.get("success"), bool):
            raise MemoryBridgeError("Invalid response: missing success flag")
        return response

    @staticmethod
    def _raise_failure(response: dict[str, Any]) -> None:
        raise MemoryBridgeError(response.get("error") or "Unknown error")

    def remember(
        self,
        memory_type: str,
        content: str,
        reasoning: str | None = None,
        importance: float = 5.0,
        tags: list[str] | None = None,
    ) -> str:
        """Store a memory and return a confirmation line. Tags are not sent."""
        response = self.call(
            "remember",
            {"type": memory_type, "content": content, "reasoning": reasoning, "importance": importance},
        )
        if not response["success"]:
            self._raise_failure(response)
        return f"✅ {response.get('message') or 'Remembered'}"

    def recall(self, query: str | None = None, memory_type: str | None = None, limit: int = 10) -> list[MemoryRecord]:
        """Return memories matching ``query`` and ``memory_type``."""
        response = self.call("recall", {"query": query, "type": memory_type, "limit": limit})
        if not response["success"]:
            self._raise_failure(response)
        try:
            return [MemoryRecord._from_json(item) for item in response.get("memories") or []]
        except (KeyError, ValueError, TypeError) as exc:
            raise MemoryBridgeError(f"Invalid response: {exc}") from exc

    def forget(self, content_match: str) -> str:
        """Delete memories whose content matches and report how many went."""
        response = self.call("forget", {"match": content_match})
        if not response["success"]:
            self._raise_failure(response)
        return f"✅ Forgot {response.get('deleted') or 0} memories"