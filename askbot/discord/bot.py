from __future__ import annotations

import logging
import math

import discord
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from discord import app_commands
from discord.ext import commands

from askbot.metrics import discord_bot_up, discord_websocket_latency

from .commands import BotContext, handle_ask, handle_info, handle_tools
from .errors import handle_app_command_error

LATENCY_POLL_SECONDS = 15


class AskBot(commands.Bot):
    """Slash-command-only bot: no message content intent, no prefix commands used."""

    def __init__(self, ctx: BotContext):
        intents = discord.Intents.default()
        status = (ctx.config["discord"].get("status_message") or "/ask me anything")[:128]
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            activity=discord.CustomActivity(name=status),
        )
        self.ctx = ctx
        self.scheduler = AsyncIOScheduler()
        ctx.client = self
        self._register_commands()

    def _register_commands(self) -> None:
        ctx = self.ctx

        @self.tree.command(name="ask", description="Ask the AI a question (can use tools)")
        @app_commands.describe(question="Your question for the AI")
        async def ask_command(interaction: discord.Interaction, question: str) -> None:
            await handle_ask(interaction, question, ctx)

        @self.tree.command(name="info", description="Get bot information")
        async def info_command(interaction: discord.Interaction) -> None:
            await handle_info(interaction, ctx)

        @self.tree.command(name="tools", description="List available AI tools")
        async def tools_command(interaction: discord.Interaction) -> None:
            await handle_tools(interaction, ctx)

        @self.tree.error
        async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError) -> None:
            await handle_app_command_error(interaction, error, self, ctx.admin_ids)

    async def setup_hook(self) -> None:
        synced = await self.tree.sync()
        logging.info("Synced %d slash commands", len(synced))

    # ── Events ──────────────────────────────────────────────────────────────

    async def on_ready(self) -> None:
        discord_bot_up.set(1)
        logging.info("Discord bot logged in as %s", self.user)
        logging.info("Ollama model: %s", self.ctx.chat_service.model)
        logging.info("Allowed users: %d", len(self.ctx.allowed_users))
        if client_id := self.ctx.config["discord"].get("client_id"):
            logging.info(
                "\n\nBOT INVITE URL:\nhttps://discord.com/oauth2/authorize?client_id=%s&scope=bot+applications.commands\n",
                client_id,
            )
        if not self.scheduler.running:
            self.scheduler.add_job(
                self.record_latency, "interval", seconds=LATENCY_POLL_SECONDS,
                id="websocket_latency", replace_existing=True,
            )
            self.scheduler.start()
            logging.info("Scheduler started")

    async def on_resumed(self) -> None:
        discord_bot_up.set(1)

    async def on_disconnect(self) -> None:
        discord_bot_up.set(0)

    async def record_latency(self) -> None:
        # latency is inf/nan until the first heartbeat ack
        if math.isfinite(self.latency):
            discord_websocket_latency.set(self.latency)

    async def close(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        discord_bot_up.set(0)
        await super().close()
