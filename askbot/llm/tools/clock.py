"""
askbot/llm/tools/clock.py

Current date/time in an IANA timezone (defaults to UTC).
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..types import ToolFailure, ToolResult, ToolSuccess


def get_current_time(timezone: str | None = None) -> ToolResult:
    tz_name = timezone or "UTC"
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        return ToolFailure(f"Invalid timezone: {tz_name}")

    now = datetime.now(tz)
    return ToolSuccess({
        "timezone": tz_name,
        "datetime": now.strftime("%A, %B %d, %Y at %I:%M:%S %p %Z"),
        "iso": now.isoformat(),
    })


# ── Schema ────────────────────────────────────────────────────────────────────

CURRENT_TIME_SCHEMA = {
    "name": "get_current_time",
    "description": "Get the current date and time in a specified timezone",
    "parameters": {
        "type": "object",
        "properties": {
            "timezone": {
                "type": "string",
                "description": (
                    'IANA timezone name (e.g., "America/New_York", "Europe/London", '
                    '"Asia/Tokyo"). Defaults to UTC.'
                ),
            },
        },
        "required": [],
    },
}
