from .registry import (
    FunctionTool,
    Tool,
    ToolRegistry,
    build_tool_registry,
)
from .calculator import CALCULATE_SCHEMA, calculate
from .clock import CURRENT_TIME_SCHEMA, get_current_time
from .qbittorrent import QBITTORRENT_SCHEMA, QBittorrentTool

__all__ = [
    "FunctionTool",
    "Tool",
    "ToolRegistry",
    "build_tool_registry",
    "CALCULATE_SCHEMA",
    "calculate",
    "CURRENT_TIME_SCHEMA",
    "get_current_time",
    "QBITTORRENT_SCHEMA",
    "QBittorrentTool",
]
