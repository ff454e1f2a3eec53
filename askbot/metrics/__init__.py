"""
askbot/metrics

Prometheus collectors for the bot, kept on a dedicated registry so the
exposition only contains what the bot itself reports.
"""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

REGISTRY = CollectorRegistry()

# ── Discord ───────────────────────────────────────────────────────────────────

discord_bot_up = Gauge(
    "discord_bot_up",
    "1=connected to Discord, 0=disconnected",
    registry=REGISTRY,
)
discord_websocket_latency = Gauge(
    "discord_bot_websocket_latency_seconds",
    "Discord WebSocket ping latency in seconds",
    registry=REGISTRY,
)
discord_messages_processed = Counter(
    "discord_bot_messages_processed",
    "Total interactions processed",
    ["command", "status"],
    registry=REGISTRY,
)
discord_request_duration = Histogram(
    "discord_bot_request_duration_seconds",
    "Command processing duration in seconds",
    ["command"],
    buckets=(0.1, 0.5, 1, 2, 5, 10),
    registry=REGISTRY,
)

# ── Ollama ────────────────────────────────────────────────────────────────────

ollama_available = Gauge(
    "ollama_available",
    "1=Ollama reachable, 0=unavailable",
    registry=REGISTRY,
)
ollama_request_duration = Histogram(
    "ollama_request_duration_seconds",
    "AI request duration in seconds",
    buckets=(0.5, 1, 2, 5, 10, 30),
    registry=REGISTRY,
)

# ── Tools ─────────────────────────────────────────────────────────────────────

tool_executions = Counter(
    "tool_executions",
    "Tool executions",
    ["tool", "status"],
    registry=REGISTRY,
)
tool_execution_duration = Histogram(
    "tool_execution_duration_seconds",
    "Per-tool execution time in seconds",
    ["tool"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1),
    registry=REGISTRY,
)

# ── qBittorrent ───────────────────────────────────────────────────────────────

qbittorrent_available = Gauge(
    "qbittorrent_available",
    "1=qBittorrent reachable, 0=unavailable",
    registry=REGISTRY,
)
qbittorrent_request_duration = Histogram(
    "qbittorrent_request_duration_seconds",
    "qBittorrent API request duration in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2.5),
    registry=REGISTRY,
)


def get_metrics() -> bytes:
    """Render every collector in the Prometheus text format."""
    return generate_latest(REGISTRY)


def sample_value(name: str, labels: dict[str, str] | None = None) -> float:
    """Current value of one sample, 0.0 when it has not been observed yet."""
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


__all__ = [
    "CONTENT_TYPE_LATEST",
    "REGISTRY",
    "discord_bot_up",
    "discord_websocket_latency",
    "discord_messages_processed",
    "discord_request_duration",
    "ollama_available",
    "ollama_request_duration",
    "tool_executions",
    "tool_execution_duration",
    "qbittorrent_available",
    "qbittorrent_request_duration",
    "get_metrics",
    "sample_value",
]
