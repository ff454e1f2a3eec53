"""
askbot/discord/commands.py

Handlers for the /ask, /info and /tools slash commands.

Handlers receive the interaction plus a BotContext holding the process-wide
collaborators (config, tool registry, chat service, summarizer). The blocking
tool-calling loop runs in a worker thread so the gateway heartbeat keeps going.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Iterable

import discord

from askbot.llm.errors import format_user_friendly_error
from askbot.llm.ollama_service import OllamaService
from askbot.llm.summarizer import SummarizerService
from askbot.llm.tool_executor import ToolExecutor
from askbot.llm.tools.registry import ToolRegistry
from askbot.llm.types import ProcessMessageResult
from askbot.metrics import discord_messages_processed, discord_request_duration

from .errors import notify_admin_error

EMBED_COLOR = discord.Color(0x5865F2)
EMBED_FIELD_LIMIT = 1024
DM_CHUNK_SIZE = 1900

UNAUTHORIZED_MESSAGE = "You are not authorized to use this command."
UNAVAILABLE_MESSAGE = "AI service is currently unavailable. Please try again later."


@dataclass
class BotContext:
    config: dict[str, Any]
    registry: ToolRegistry
    chat_service: OllamaService
    summarizer: SummarizerService | None = None
    client: discord.Client | None = None

    @property
    def allowed_users(self) -> list[str]:
        return [str(i) for i in self.config["discord"].get("allowed_user_ids", [])]

    @property
    def admin_ids(self) -> list[str]:
        return [str(i) for i in self.config["discord"].get("admin_ids", [])]

    def build_executor(self) -> ToolExecutor:
        return ToolExecutor(
            self.chat_service,
            self.registry,
            max_iterations=self.config["tools"]["max_iterations"],
            summarizer=self.summarizer,
        )


# ── Helpers ───────────────────────────────────────────────────────────────────

def is_user_authorized(user_id: int | str, allowed_users: Iterable[str]) -> bool:
    """An empty allow-list means everyone may use the bot."""
    allowed = list(allowed_users)
    if not allowed:
        return True
    return str(user_id) in allowed


def truncate(text: str | None, max_length: int) -> str:
    if not text:
        return "No response"
    return text if len(text) <= max_length else text[: max_length - 3] + "..."


def chunk_text(text: str, size: int = DM_CHUNK_SIZE) -> list[str]:
    return [text[i:i + size] for i in range(0, len(text), size)]


def build_answer_embed(question: str, result: ProcessMessageResult, requester: str) -> discord.Embed:
    embed = discord.Embed(title="AI Response", color=EMBED_COLOR, timestamp=discord.utils.utcnow())
    embed.add_field(name="Question", value=truncate(question, EMBED_FIELD_LIMIT), inline=False)
    embed.add_field(name="Answer", value=truncate(result.response, EMBED_FIELD_LIMIT), inline=False)
    if result.tools_used:
        summary = ", ".join(f"`{r.name}`" for r in result.tools_used)
        embed.add_field(name="Tools Used", value=truncate(summary, EMBED_FIELD_LIMIT), inline=False)
    embed.set_footer(text=f"Requested by {requester}")
    return embed


def build_info_embed(ctx: BotContext, ai_available: bool) -> discord.Embed:
    embed = discord.Embed(title="Bot Information", color=EMBED_COLOR, timestamp=discord.utils.utcnow())
    embed.add_field(name="Status", value="Online", inline=True)
    embed.add_field(name="AI Model", value=ctx.chat_service.model, inline=True)
    embed.add_field(name="AI Service", value="Available" if ai_available else "Unavailable", inline=True)
    embed.add_field(name="Authorized Users", value=str(len(ctx.allowed_users)), inline=True)
    embed.add_field(name="Available Tools", value=str(ctx.registry.size()), inline=True)
    embed.add_field(
        name="Commands",
        value="`/ask` - Ask the AI a question\n`/info` - Show bot info\n`/tools` - List available tools",
        inline=False,
    )
    return embed


def build_tools_embed(registry: ToolRegistry) -> discord.Embed:
    embed = discord.Embed(
        title="Available AI Tools",
        description="The AI can use these tools to help answer your questions:",
        color=EMBED_COLOR,
        timestamp=discord.utils.utcnow(),
    )
    tools = registry.get_tool_descriptions()
    if not tools:
        embed.add_field(name="No tools available", value="No tools have been registered.", inline=False)
    for tool in tools:
        embed.add_field(
            name=f"`{tool['name']}`",
            value=truncate(tool["description"] or "No description", EMBED_FIELD_LIMIT),
            inline=False,
        )
    return embed


async def send_full_response_dm(interaction: discord.Interaction, text: str) -> None:
    """DM the whole answer in chunks; fall back to ephemeral follow-ups if DMs are closed."""
    chunks = chunk_text(text)
    try:
        dm = await interaction.user.create_dm()
        for chunk in chunks:
            await dm.send(content=chunk)
        await interaction.followup.send(content="Full answer sent to your DMs.", ephemeral=True)
        return
    except discord.HTTPException as e:
        logging.warning("Could not DM user %s; falling back to follow-ups: %s", interaction.user.id, e)

    try:
        for chunk in chunks:
            await interaction.followup.send(content=chunk, ephemeral=True)
    except discord.HTTPException as e:
        logging.error("Failed to send full answer in follow-ups: %s", e)


# ── /ask ──────────────────────────────────────────────────────────────────────

async def handle_ask(interaction: discord.Interaction, question: str, ctx: BotContext) -> None:
    if not is_user_authorized(interaction.user.id, ctx.allowed_users):
        discord_messages_processed.labels(command="ask", status="unauthorized").inc()
        try:
            await interaction.response.send_message(UNAUTHORIZED_MESSAGE, ephemeral=True)
        except discord.HTTPException as e:
            logging.warning("Auth reply failed: %s", e)
        return

    # Must happen within 3 seconds of the interaction.
    try:
        await interaction.response.defer(thinking=True)
    except discord.HTTPException as e:
        logging.error("deferReply failed - interaction likely expired: %s", e)
        return

    start = time.perf_counter()
    status = "error"
    try:
        if not await asyncio.to_thread(ctx.chat_service.is_available):
            await interaction.edit_original_response(content=UNAVAILABLE_MESSAGE)
            status = "unavailable"
            return

        logging.info("/ask (uid:%s): %s", interaction.user.id, question)

        def on_tool_call(name: str, args: dict[str, Any]) -> None:
            logging.info("/ask (uid:%s) → tool %s %s", interaction.user.id, name, args)

        executor = ctx.build_executor()
        result = await asyncio.to_thread(executor.process_message, question, on_tool_call)

        embed = build_answer_embed(question, result, str(interaction.user))
        try:
            await interaction.edit_original_response(embed=embed)
        except discord.HTTPException as e:
            logging.error("Failed to send embed reply: %s", e)

        if len(result.response) > EMBED_FIELD_LIMIT:
            await send_full_response_dm(interaction, result.response)
        status = "success"

    except Exception as e:
        logging.exception("Ask command error")
        if ctx.client is not None:
            await notify_admin_error(ctx.client, ctx.admin_ids, e, f"/ask by {interaction.user.id}")
        try:
            await interaction.edit_original_response(content=format_user_friendly_error(e))
        except discord.HTTPException as reply_err:
            logging.error("Failed to send error reply: %s", reply_err)
    finally:
        discord_messages_processed.labels(command="ask", status=status).inc()
        discord_request_duration.labels(command="ask").observe(time.perf_counter() - start)


# ── /info ─────────────────────────────────────────────────────────────────────

async def handle_info(interaction: discord.Interaction, ctx: BotContext) -> None:
    try:
        await interaction.response.defer()
    except discord.HTTPException as e:
        logging.warning("deferReply failed: %s", e)
        return

    start = time.perf_counter()
    status = "error"
    try:
        available = await asyncio.to_thread(ctx.chat_service.is_available)
        await interaction.edit_original_response(embed=build_info_embed(ctx, available))
        status = "success"
    except discord.HTTPException as e:
        logging.warning("Failed to send info embed reply: %s", e)
        try:
            await interaction.followup.send(content="Failed to send info in channel.", ephemeral=True)
        except discord.HTTPException as fu_err:
            logging.error("followUp failed: %s", fu_err)
    finally:
        discord_messages_processed.labels(command="info", status=status).inc()
        discord_request_duration.labels(command="info").observe(time.perf_counter() - start)


# ── /tools ────────────────────────────────────────────────────────────────────

async def handle_tools(interaction: discord.Interaction, ctx: BotContext) -> None:
    start = time.perf_counter()
    status = "error"
    try:
        await interaction.response.send_message(embed=build_tools_embed(ctx.registry))
        status = "success"
    except discord.HTTPException as e:
        logging.warning("Failed to send tools embed reply: %s", e)
        try:
            await interaction.followup.send(content="Failed to send tools list.", ephemeral=True)
        except discord.HTTPException as fu_err:
            logging.error("followUp failed: %s", fu_err)
    finally:
        discord_messages_processed.labels(command="tools", status=status).inc()
        discord_request_duration.labels(command="tools").observe(time.perf_counter() - start)
