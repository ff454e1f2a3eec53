"""
askbot/llm/ollama_service.py

Thin request/response boundary to the primary Ollama model.

OllamaService.chat() performs exactly one round trip: it sends the whole
conversation plus the tool schemas and returns the assistant turn as a
ChatReply. The tool-calling loop itself lives in askbot/llm/tool_executor.py.

Every chat call is timed into `ollama_request_duration_seconds` (errors
included); is_available() drives the `ollama_available` gauge.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, List, Sequence

from dotenv import load_dotenv
from ollama import Client

from askbot.metrics import ollama_available, ollama_request_duration

from .errors import wrap_ollama_error
from .types import ChatReply, Message, ToolCall


def response_field(obj: Any, key: str, default: Any = None) -> Any:
    """Read a field from an ollama response object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def build_ollama_client(host: str, timeout: float | None = None) -> Client:
    load_dotenv()
    api_key = os.getenv("OLLAMA_API_KEY")
    headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
    return Client(host=host, headers=headers, timeout=timeout)


def to_chat_reply(message: Any) -> ChatReply:
    """Convert an ollama Message into a ChatReply with a dict assistant turn."""
    text = response_field(message, "content") or ""
    calls: list[ToolCall] = []
    raw_calls: list[dict[str, Any]] = []
    for call in response_field(message, "tool_calls") or []:
        fn = response_field(call, "function")
        name = response_field(fn, "name") or ""
        arguments = dict(response_field(fn, "arguments") or {})
        calls.append(ToolCall(name=name, arguments=arguments))
        raw_calls.append({"function": {"name": name, "arguments": arguments}})

    raw: Message = {"role": "assistant", "content": text}
    if raw_calls:
        raw["tool_calls"] = raw_calls
    return ChatReply(text=text, tool_calls=tuple(calls), raw_message=raw)


class OllamaService:
    def __init__(
        self,
        host: str,
        model: str,
        timeout: float = 120.0,
        client: Client | None = None,
    ):
        """
        host    — Ollama server URL
        model   — model used for the tool-calling conversation
        timeout — per-request timeout in seconds (passed to the HTTP client)
        client  — optional pre-built ollama.Client (tests inject a mock here)
        """
        self.host = host
        self.timeout = timeout
        self._model = model
        self.client = client or build_ollama_client(host, timeout)

    @property
    def model(self) -> str:
        return self._model

    def chat(
        self,
        messages: Sequence[Message],
        tool_schemas: List[Dict[str, Any]] | None = None,
    ) -> ChatReply:
        kwargs: dict[str, Any] = dict(model=self._model, messages=list(messages), stream=False)
        if tool_schemas:
            kwargs["tools"] = tool_schemas

        start = time.perf_counter()
        try:
            response = self.client.chat(**kwargs)
        except Exception as e:
            logging.warning("OllamaService: chat with '%s' failed: %s", self._model, e)
            raise wrap_ollama_error(e) from e
        finally:
            ollama_request_duration.observe(time.perf_counter() - start)

        reply = to_chat_reply(response_field(response, "message") or {})
        logging.info(
            "OllamaService: response content=%r, tool_calls=%s",
            reply.text[:200],
            [c.name for c in reply.tool_calls],
        )
        return reply

    def is_available(self) -> bool:
        try:
            self.client.list()
        except Exception as e:
            logging.warning("OllamaService: service unavailable: %s", e)
            ollama_available.set(0)
            return False
        ollama_available.set(1)
        return True
