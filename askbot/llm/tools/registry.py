"""
askbot/llm/tools/registry.py

Single source of truth for ALL bot tools.

A tool is anything with a `name`, a `schema` (name/description/parameters)
and an `execute(args) -> ToolResult` method. Plain functions are adapted with
FunctionTool, which unpacks the argument mapping into keyword arguments.

Adding a new tool only requires:
  1. Create askbot/llm/tools/my_tool.py  (fn + SCHEMA, or a class)
  2. Register it in build_tool_registry() below
  3. Optionally add a usage hint in askbot/llm/tool_executor.py
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Protocol, runtime_checkable

from askbot.clients.qbittorrent import QBittorrentClient

from ..errors import InvalidToolError
from ..types import ToolResult
from .calculator import CALCULATE_SCHEMA, calculate
from .clock import CURRENT_TIME_SCHEMA, get_current_time
from .qbittorrent import QBittorrentTool


# ── Tool contract ─────────────────────────────────────────────────────────────

@runtime_checkable
class Tool(Protocol):
    name: str
    schema: Dict[str, Any]

    def execute(self, args: Dict[str, Any]) -> ToolResult: ...


@dataclass(frozen=True)
class FunctionTool:
    name: str
    schema: Dict[str, Any]          # name/description/parameters, sent to the model
    fn: Callable[..., ToolResult]   # called with the model's arguments as kwargs

    def execute(self, args: Dict[str, Any]) -> ToolResult:
        return self.fn(**args)


# ── Registry ──────────────────────────────────────────────────────────────────

class ToolRegistry:
    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        name = getattr(tool, "name", None)
        schema = getattr(tool, "schema", None)
        if not isinstance(name, str) or not name:
            raise InvalidToolError("Invalid tool: missing name")
        if not isinstance(schema, Mapping) or not schema:
            raise InvalidToolError(f"Invalid tool '{name}': missing schema")
        if not callable(getattr(tool, "execute", None)):
            raise InvalidToolError(f"Invalid tool '{name}': missing execute method")

        if name in self._tools:
            logging.warning("ToolRegistry: replacing already registered tool '%s'", name)
        self._tools[name] = tool
        logging.debug("ToolRegistry: registered tool '%s'", name)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def get_tool_schemas(self) -> List[Dict[str, Any]]:
        """Schemas in the {"type": "function", "function": ...} shape the chat API expects."""
        return [{"type": "function", "function": tool.schema} for tool in self._tools.values()]

    def get_tool_names(self) -> List[str]:
        return list(self._tools)

    def get_tool_descriptions(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.schema.get("description", ""),
                "parameters": tool.schema.get("parameters", {}),
            }
            for tool in self._tools.values()
        ]

    def size(self) -> int:
        return len(self._tools)


# ── Registry builder ──────────────────────────────────────────────────────────

def build_tool_registry(config: Dict[str, Any] | None = None) -> ToolRegistry:
    """
    Return a fully-wired tool registry.

    calculate and get_current_time are always available. qbittorrent is only
    registered when `qbittorrent.enabled` is true, since it needs a reachable
    WebUI at `qbittorrent.host`.
    """
    config = config or {}
    registry = ToolRegistry()
    registry.register(FunctionTool("calculate", CALCULATE_SCHEMA, calculate))
    registry.register(FunctionTool("get_current_time", CURRENT_TIME_SCHEMA, get_current_time))

    qbit_cfg = config.get("qbittorrent") or {}
    if qbit_cfg.get("enabled"):
        client = QBittorrentClient(qbit_cfg["host"], timeout=qbit_cfg.get("timeout", 10))
        registry.register(QBittorrentTool(client))
        logging.info("ToolRegistry: qbittorrent → %s", qbit_cfg["host"])

    logging.info("ToolRegistry: loaded %d tools: %s", registry.size(), ", ".join(registry.get_tool_names()))
    return registry
