from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from .constants import ERROR_MESSAGES
from .utils import error_embed, safe_response

log = logging.getLogger("embassy.error_handlers")


class ErrorHandler(commands.Cog):
    """Dispatch-boundary error handling for application commands."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot
        self._previous_handler = None

    async def cog_load(self) -> None:
        tree = self.bot.tree
        self._previous_handler = tree.on_error
        tree.on_error = self.on_app_command_error

    async def cog_unload(self) -> None:
        if self._previous_handler is not None:
            self.bot.tree.on_error = self._previous_handler

    async def on_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        if isinstance(error, app_commands.NoPrivateMessage):
            await safe_response(interaction, embed=error_embed(ERROR_MESSAGES["guild_only"]))
            return

        if isinstance(error, app_commands.MissingPermissions):
            await safe_response(interaction, embed=error_embed(ERROR_MESSAGES["missing_permissions"]))
            return

        if isinstance(error, app_commands.BotMissingPermissions):
            await safe_response(interaction, embed=error_embed(ERROR_MESSAGES["bot_missing_permissions"]))
            return

        if isinstance(error, app_commands.CheckFailure):
            # interaction_check already told the user why
            return

        command = interaction.command.qualified_name if interaction.command else "unknown"
        original = getattr(error, "original", error)
        log.error("Error handling command %s", command, exc_info=original)
        await safe_response(interaction, embed=error_embed(f"❌ {ERROR_MESSAGES['generic']}"))


async def setup_error_handlers(bot: commands.Bot) -> None:
    """Setup error handlers for the bot."""
    await bot.add_cog(ErrorHandler(bot))
