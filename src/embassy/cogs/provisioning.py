"""
Provisioning Cog

/setup and /update run the idempotent topology builder in the background;
/cleanup removes everything it created.
"""

from __future__ import annotations

import asyncio
from typing import Dict

import discord
from discord import app_commands

from ..base_cog import AdminCog
from ..provisioning import CleanupEngine, Pacer, TopologyBuilder, get_profile, send_safe_followup

SETUP_STARTED = (
    "🚀 **Server setup started!**\n\n"
    "⏱️ **Estimated time:** ~5-10 minutes\n"
    "📊 **Progress:** Creating {roles} country roles, {categories} embassy categories "
    "and their embassy channels\n\n"
    "✅ Setup is running in the background. Check the bot logs for detailed progress.\n"
    "⚠️ Existing roles and channels are reused, so running it again later is safe."
)

UPDATE_STARTED = (
    "🔄 **Server update started!**\n\n"
    "⏱️ **Estimated time:** ~1-3 minutes\n"
    "📊 **Progress:** Checking roles, channels, and permissions...\n\n"
    "✅ Update is running in the background. Check the bot logs for detailed progress."
)


class ProvisioningCog(AdminCog):
    """Server setup, update and cleanup commands (Administrator only)."""

    def __init__(self, bot) -> None:
        super().__init__(bot)
        self.profile = get_profile(bot.settings.topology_profile)
        self.pacing_seconds = bot.settings.pacing_ms / 1000
        # One pass per guild; tasks are kept referenced until they finish
        self._jobs: Dict[int, asyncio.Task] = {}

    async def cog_unload(self) -> None:
        await super().cog_unload()
        for task in self._jobs.values():
            self.log.warning("Cog unloading while a pass is running: %s", task.get_name())

    @app_commands.command(name="setup", description="Set up the server with roles, channels, and embassies (Admin only)")
    @app_commands.guild_only()
    @app_commands.default_permissions(administrator=True)
    async def setup(self, interaction: discord.Interaction) -> None:
        estimate = SETUP_STARTED.format(
            roles=len(self.profile.country_role_specs()),
            categories=len(self.profile.continents),
        )
        await self._start_pass(interaction, "Setup", estimate)

    @app_commands.command(name="update", description="Update server roles and channels with new changes (Admin only)")
    @app_commands.guild_only()
    @app_commands.default_permissions(administrator=True)
    async def update(self, interaction: discord.Interaction) -> None:
        await self._start_pass(interaction, "Update", UPDATE_STARTED)

    @app_commands.command(name="cleanup", description="Remove all bot-created roles and channels (Admin only)")
    @app_commands.guild_only()
    @app_commands.default_permissions(administrator=True)
    @app_commands.describe(confirm="Confirm you want to delete all bot-created roles and channels")
    async def cleanup(self, interaction: discord.Interaction, confirm: bool = False) -> None:
        engine = CleanupEngine(interaction.guild, profile=self.profile, pacer=Pacer(self.pacing_seconds))
        if not confirm:
            result = await engine.run(confirm=False)
            await interaction.response.send_message(result.message(), ephemeral=True)
            return

        guild = interaction.guild
        if guild.id in self._jobs:
            await interaction.response.send_message(
                "⏳ Another pass is still running for this server. Wait for it to finish first.", ephemeral=True
            )
            return

        # Held for the whole cleanup so /setup and /update are refused meanwhile
        self._jobs[guild.id] = asyncio.current_task()
        try:
            await interaction.response.defer(ephemeral=True, thinking=True)
            self.log.info("=== CLEANUP STARTED === guild=%s (%s) by %s", guild.name, guild.id, interaction.user.id)
            result = await engine.run(confirm=True)
            await send_safe_followup(interaction, result.message(), filename="cleanup_report.txt")
        finally:
            self._jobs.pop(guild.id, None)

    async def _start_pass(self, interaction: discord.Interaction, label: str, estimate: str) -> None:
        guild = interaction.guild
        running = self._jobs.get(guild.id)
        if running is not None and not running.done():
            await interaction.response.send_message(
                f"⏳ Another pass is already running for this server. Run `/{label.lower()}` again once it finishes.",
                ephemeral=True,
            )
            return

        await interaction.response.send_message(estimate, ephemeral=True)

        self.log.info(
            "=== SERVER %s STARTED === guild=%s (%s) by %s (%s)",
            label.upper(), guild.name, guild.id, interaction.user, interaction.user.id,
        )
        task = asyncio.create_task(self._run_pass(interaction, guild, label), name=f"{label.lower()}-{guild.id}")
        self._jobs[guild.id] = task
        task.add_done_callback(lambda _t, gid=guild.id: self._jobs.pop(gid, None))

    async def _run_pass(self, interaction: discord.Interaction, guild: discord.Guild, label: str) -> None:
        """Detached from the interaction: the follow-up is best effort."""
        builder = TopologyBuilder(guild, profile=self.profile, pacer=Pacer(self.pacing_seconds))
        try:
            result = await builder.run()
        except Exception:
            self.log.exception("=== SERVER %s FAILED === guild=%s", label.upper(), guild.id)
            await send_safe_followup(interaction, f"❌ {label} failed. Check the bot logs for details.")
            return

        self.log.info("=== SERVER %s COMPLETE === guild=%s ok=%s", label.upper(), guild.id, result.ok)
        content = f"✅ **{label} Complete!**\n\n{result.message()}"
        if result.stats.failures:
            content += "\n\n**Failed items:**\n" + "\n".join(result.stats.failures)
        await send_safe_followup(interaction, content, filename=f"{label.lower()}_report.txt")
