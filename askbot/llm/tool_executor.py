"""
askbot/llm/tool_executor.py

The tool-calling loop. One process_message() call turns a user question into
zero or more model ↔ tool round trips:

  AWAITING_MODEL ──(no tool calls)──────────────► NO_TOOL_CALLS        (return model text)
        │  ▲
        │  └──(results appended)── HAS_TOOL_CALLS
        │
        └──(max_iterations round trips done)──► ITERATION_EXHAUSTED  (return fixed message)

Tool calls in one assistant turn are executed sequentially, in the order the
model returned them, so tool messages enter the conversation deterministically.
Tool failures (unknown name, exceptions) become ToolFailure results and never
stop the loop; chat service errors propagate to the caller.
"""

from __future__ import annotations

import enum
import json
import logging
import time
from typing import Any, Dict, List, Protocol

from askbot.metrics import tool_execution_duration, tool_executions

from .tools.registry import ToolRegistry
from .types import (
    ChatReply,
    Message,
    OnToolCallCallback,
    ProcessMessageResult,
    ToolCall,
    ToolExecutionRecord,
    ToolFailure,
    ToolResult,
)

DEFAULT_MAX_ITERATIONS = 5
NO_RESPONSE_MESSAGE = "No response generated"
MAX_ITERATIONS_MESSAGE = "Maximum tool iterations reached. Please try a simpler question."
UNKNOWN_TOOL_LABEL = "unknown"

# Tools whose structured output is passed through the summarizer model.
SUMMARIZABLE_TOOLS = frozenset({"qbittorrent"})

TOOL_HINTS: Dict[str, str] = {
    "calculate": "- calculate: use for any arithmetic instead of computing it yourself.",
    "get_current_time": (
        "- get_current_time: use when asked about the current date or time; "
        "pass an IANA timezone if the user mentions a place."
    ),
    "qbittorrent": (
        "- qbittorrent: use for questions about torrents, downloads, seeding or "
        "transfer speeds. Use action=list first; details needs a torrent hash."
    ),
}


class LoopState(enum.Enum):
    AWAITING_MODEL = "awaiting_model"
    HAS_TOOL_CALLS = "has_tool_calls"
    NO_TOOL_CALLS = "no_tool_calls"
    ITERATION_EXHAUSTED = "iteration_exhausted"


class ChatService(Protocol):
    def chat(self, messages: List[Message], tool_schemas: List[Dict[str, Any]] | None = None) -> ChatReply: ...


class Summarizer(Protocol):
    def summarize(self, data: Any, user_question: str) -> str: ...


def build_system_prompt(tool_names: List[str]) -> str:
    lines = [
        "You are a helpful assistant running inside a Discord bot.",
        "Answer concisely. Call a tool whenever it gives a more accurate answer than you could on your own.",
    ]
    if tool_names:
        lines.append(f"Available tools: {', '.join(tool_names)}.")
        lines.extend(TOOL_HINTS[n] for n in tool_names if n in TOOL_HINTS)
    return "\n".join(lines)


class ToolExecutor:
    def __init__(
        self,
        chat_service: ChatService,
        registry: ToolRegistry,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        summarizer: Summarizer | None = None,
    ):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self._chat = chat_service
        self._registry = registry
        self.max_iterations = max_iterations
        self.summarizer = summarizer

    # ── Main loop ───────────────────────────────────────────────────────────

    def process_message(
        self,
        user_message: str,
        on_tool_call: OnToolCallCallback | None = None,
    ) -> ProcessMessageResult:
        messages: List[Message] = [
            {"role": "system", "content": build_system_prompt(self._registry.get_tool_names())},
            {"role": "user", "content": user_message},
        ]
        tool_schemas = self._registry.get_tool_schemas()
        tools_used: List[ToolExecutionRecord] = []
        iterations = 0
        state = LoopState.AWAITING_MODEL

        while state is LoopState.AWAITING_MODEL:
            if iterations >= self.max_iterations:
                state = LoopState.ITERATION_EXHAUSTED
                break
            iterations += 1

            reply = self._chat.chat(messages, tool_schemas)
            if not reply.tool_calls:
                state = LoopState.NO_TOOL_CALLS
                logging.info("ToolExecutor: answered after %d round trip(s), %d tool call(s)", iterations, len(tools_used))
                return ProcessMessageResult(
                    response=reply.text or NO_RESPONSE_MESSAGE,
                    tools_used=tuple(tools_used),
                )

            state = LoopState.HAS_TOOL_CALLS
            messages.append(reply.raw_message)
            for call in reply.tool_calls:
                if on_tool_call is not None:
                    on_tool_call(call.name, call.arguments)
                record = self._execute(call)
                tools_used.append(record)
                messages.append({"role": "tool", "content": self._tool_message(record, user_message)})
            state = LoopState.AWAITING_MODEL

        logging.warning(
            "ToolExecutor: %s after %d round trip(s); %d tool call(s) made",
            state.value, iterations, len(tools_used),
        )
        return ProcessMessageResult(response=MAX_ITERATIONS_MESSAGE, tools_used=tuple(tools_used))

    # ── Single tool call ────────────────────────────────────────────────────

    def _execute(self, call: ToolCall) -> ToolExecutionRecord:
        tool = self._registry.get(call.name)
        start = time.perf_counter()
        if tool is None:
            logging.warning("ToolExecutor: unknown tool '%s'", call.name)
            result: ToolResult = ToolFailure(f"Unknown tool: {call.name}")
        else:
            logging.info("ToolExecutor: '%s' args=%s", call.name, call.arguments)
            try:
                result = tool.execute(dict(call.arguments))
            except Exception as e:
                logging.error("ToolExecutor: tool '%s' failed: %s", call.name, e)
                result = ToolFailure(str(e) or "Unknown error")
        elapsed = time.perf_counter() - start

        # names the model made up share one series
        label = call.name if tool is not None else UNKNOWN_TOOL_LABEL
        tool_executions.labels(tool=label, status="success" if result.success else "error").inc()
        tool_execution_duration.labels(tool=label).observe(elapsed)
        return ToolExecutionRecord(
            name=call.name,
            args=call.arguments,
            result=result,
            duration_ms=elapsed * 1000,
        )

    def _tool_message(self, record: ToolExecutionRecord, user_message: str) -> str:
        """Content of the tool-role message: a summary when eligible, else the raw result."""
        raw = record.result.to_dict()
        if (
            record.name in SUMMARIZABLE_TOOLS
            and record.result.success
            and self.summarizer is not None
        ):
            try:
                summary = self.summarizer.summarize(raw, user_message)
            except Exception as e:
                logging.warning("ToolExecutor: summarizer failed for '%s', using raw result: %s", record.name, e)
            else:
                return json.dumps({"success": True, "summary": summary}, ensure_ascii=False)
        return json.dumps(raw, ensure_ascii=False, default=str)
