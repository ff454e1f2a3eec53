"""
askbot/discord/errors.py

Error reporting shared by the slash command handlers: admins get a DM with
the admin-facing message, the user gets the same friendly text /ask uses.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

import discord
from discord import app_commands

from askbot.llm.errors import format_user_friendly_error, parse_error_message
from askbot.metrics import discord_messages_processed


def build_admin_notification(error: Exception, context: str = "") -> str:
    return (
        "🤖 **Bot Error Notification**\n"
        f"⏰ Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n"
        f"📝 Context: {context or 'n/a'}\n\n"
        f"Error: {parse_error_message(error)}"
    )


async def notify_admin_error(
    discord_bot: discord.Client,
    admin_ids: Iterable[int | str],
    error: Exception,
    context: str = "",
) -> None:
    """DM every admin; ids that are malformed or unreachable are logged and skipped."""
    msg = None
    for admin_id in admin_ids:
        try:
            uid = int(admin_id)
        except (TypeError, ValueError):
            logging.warning("Skipping invalid admin id %r", admin_id)
            continue

        msg = msg or build_admin_notification(error, context)
        try:
            user = discord_bot.get_user(uid) or await discord_bot.fetch_user(uid)
            await user.send(msg)
        except discord.HTTPException as e:
            logging.warning("Could not notify admin %s: %s", uid, e)


async def handle_app_command_error(
    interaction: discord.Interaction,
    error: app_commands.AppCommandError | Exception,
    discord_bot: discord.Client,
    admin_ids: Iterable[int | str],
) -> None:
    """Tree-level fallback for errors the command handlers did not catch themselves."""
    original = getattr(error, "original", error)
    command = getattr(interaction.command, "name", "unknown")
    logging.error("App command /%s failed: %s", command, original, exc_info=original)
    discord_messages_processed.labels(command=command, status="error").inc()

    await notify_admin_error(discord_bot, admin_ids, original, f"/{command} by {interaction.user.id}")

    message = format_user_friendly_error(original)
    try:
        if interaction.response.is_done():
            await interaction.followup.send(content=message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)
    except discord.HTTPException as e:
        logging.warning("Could not send error reply: %s", e)
