from __future__ import annotations

import logging

import discord
from discord.ext import commands

from .constants import ERROR_MESSAGES
from .utils import error_embed, safe_response

log = logging.getLogger("embassy.base_cog")


class BaseCog(commands.Cog):
    """Base class for all cogs with common functionality."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot
        self.log = logging.getLogger(f"embassy.cog.{self.__class__.__name__.lower()}")

    async def cog_load(self) -> None:
        self.log.info(f"Loaded {self.__class__.__name__}")

    async def cog_unload(self) -> None:
        self.log.info(f"Unloaded {self.__class__.__name__}")

    async def deny(self, interaction: discord.Interaction, message: str) -> None:
        await safe_response(interaction, embed=error_embed(message), ephemeral=True)

    def is_admin(self, interaction: discord.Interaction) -> bool:
        """Whether the invoking member holds Administrator in this guild."""
        perms = interaction.permissions
        return bool(perms and perms.administrator)


class AdminCog(BaseCog):
    """Base class for admin-only, guild-only cogs."""

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.guild is None:
            await self.deny(interaction, ERROR_MESSAGES["guild_only"])
            return False
        if not self.is_admin(interaction):
            await self.deny(interaction, ERROR_MESSAGES["missing_permissions"])
            return False
        return True
