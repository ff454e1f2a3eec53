"""
Entrypoint: `python -m askbot.main` or the `askbot` console script.

Builds the process-wide collaborators once (tool registry, chat service,
optional summarizer), starts the metrics server and runs the Discord client.
"""

import asyncio
import logging
import os
from typing import Any

from askbot.config.loader import get_config
from askbot.discord.bot import AskBot
from askbot.discord.commands import BotContext
from askbot.llm.ollama_service import OllamaService
from askbot.llm.summarizer import build_summarizer
from askbot.llm.tools import build_tool_registry
from askbot.metrics.server import start_metrics_server, stop_metrics_server


def setup_logging(level: str = "INFO") -> None:
    if os.environ.get("DEBUG"):
        level = "DEBUG"
        logging.getLogger("httpx").setLevel(logging.DEBUG)
    else:
        logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.basicConfig(level=level.upper(), format="%(asctime)s %(levelname)s: %(message)s")
    logging.getLogger("discord").setLevel(logging.INFO if level.upper() == "DEBUG" else logging.WARNING)


def build_context(config: dict[str, Any]) -> BotContext:
    ollama_cfg = config["ollama"]
    chat_service = OllamaService(
        host=ollama_cfg["host"],
        model=ollama_cfg["model"],
        timeout=ollama_cfg["timeout"],
    )
    summarizer = build_summarizer(config)
    if summarizer is not None and not summarizer.is_available():
        logging.warning("Summarizer model '%s' is not installed on the Ollama server", summarizer.model)
    return BotContext(
        config=config,
        registry=build_tool_registry(config),
        chat_service=chat_service,
        summarizer=summarizer,
    )


async def run_bot(config: dict[str, Any]) -> None:
    ctx = build_context(config)
    bot = AskBot(ctx)

    metrics_cfg = config["metrics"]
    if metrics_cfg["enabled"]:
        await start_metrics_server(metrics_cfg["port"])
    try:
        async with bot:
            await bot.start(config["discord"]["bot_token"])
    finally:
        await stop_metrics_server()


def main() -> None:
    config = get_config()
    setup_logging(config.get("log_level", "INFO"))
    logging.info(
        "🚀 Bot starting | model: %s | host: %s",
        config["ollama"]["model"],
        config["ollama"]["host"],
    )
    try:
        asyncio.run(run_bot(config))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
