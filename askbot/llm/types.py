"""
askbot/llm/types.py

Data model for the tool-calling loop.

Conversation messages stay plain dicts (the shape ollama.Client.chat accepts);
everything the loop produces or returns is a frozen dataclass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Tuple, Union

Message = Dict[str, Any]
ToolArgs = Dict[str, Any]


@dataclass(frozen=True)
class ToolCall:
    name: str
    arguments: ToolArgs = field(default_factory=dict)


@dataclass(frozen=True)
class ToolSuccess:
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {"success": True, **self.payload}


@dataclass(frozen=True)
class ToolFailure:
    error: str

    @property
    def success(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.error}


ToolResult = Union[ToolSuccess, ToolFailure]


@dataclass(frozen=True)
class ToolExecutionRecord:
    name: str
    args: ToolArgs
    result: ToolResult
    duration_ms: float


@dataclass(frozen=True)
class ProcessMessageResult:
    response: str
    tools_used: Tuple[ToolExecutionRecord, ...] = ()


@dataclass(frozen=True)
class ChatReply:
    """One assistant turn: its text, requested tool calls, and the message to append."""

    text: str
    tool_calls: Tuple[ToolCall, ...] = ()
    raw_message: Message = field(default_factory=dict)


OnToolCallCallback = Callable[[str, ToolArgs], None]
