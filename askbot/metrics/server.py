"""
askbot/metrics/server.py

Small aiohttp app serving Prometheus metrics and a liveness probe:
  GET /metrics  → text exposition of askbot.metrics.REGISTRY
  GET /health   → {"status": "ok", "timestamp": ...}
Anything else is a plain 404.

aiohttp is already pulled in by discord.py, so the server shares the bot's
event loop instead of running in a separate thread.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from aiohttp import web

from . import CONTENT_TYPE_LATEST, get_metrics

_runner: web.AppRunner | None = None


async def _metrics_handler(request: web.Request) -> web.Response:
    try:
        body = get_metrics()
    except Exception as e:
        logging.error("Metrics: failed to render exposition: %s", e)
        return web.Response(status=500, text="Error generating metrics")
    # CONTENT_TYPE_LATEST carries charset, which content_type= refuses
    return web.Response(body=body, headers={"Content-Type": CONTENT_TYPE_LATEST})


async def _health_handler(request: web.Request) -> web.Response:
    return web.json_response(
        {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
    )


def create_metrics_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/metrics", _metrics_handler)
    app.router.add_get("/health", _health_handler)
    return app


async def start_metrics_server(port: int, host: str = "0.0.0.0") -> web.AppRunner:
    """Start serving on host:port. Raises RuntimeError if a server is already running."""
    global _runner
    if _runner is not None:
        raise RuntimeError("Metrics server is already running")

    runner = web.AppRunner(create_metrics_app())
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    try:
        await site.start()
    except OSError:
        await runner.cleanup()
        raise
    _runner = runner
    logging.info("Metrics: serving /metrics and /health on %s:%d", host, port)
    return runner


async def stop_metrics_server() -> None:
    global _runner
    if _runner is None:
        return
    await _runner.cleanup()
    _runner = None
    logging.debug("Metrics: server stopped")
