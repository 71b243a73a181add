from __future__ import annotations

import asyncio
import logging

import discord
from discord.ext import commands

from .config import Settings
from .error_handlers import setup_error_handlers
from .services.verification import VerificationService
from .services.warera import WarEraClient

log = logging.getLogger("embassy.bot")


class _CommandSyncManager:
    def __init__(self, bot: "EmbassyBot") -> None:
        self.bot = bot
        self._lock = asyncio.Lock()

    async def sync_startup(self) -> None:
        if self.bot.settings.sync_guild_id:
            await self.sync_guild(self.bot.settings.sync_guild_id)
        else:
            await self.sync_global()

    async def sync_global(self) -> None:
        async with self._lock:
            synced = await self.bot.tree.sync()
            log.info("Commands synced globally: %s", ", ".join(f"/{c.name}" for c in synced))

    async def sync_guild(self, guild_id: int) -> None:
        async with self._lock:
            guild = discord.Object(id=guild_id)
            self.bot.tree.copy_global_to(guild=guild)
            synced = await self.bot.tree.sync(guild=guild)
            log.info("Commands synced to guild %d: %s", guild_id, ", ".join(f"/{c.name}" for c in synced))


class EmbassyBot(commands.Bot):
    def __init__(self, settings: Settings) -> None:
        intents = discord.Intents.default()
        intents.members = True

        log.info("INTENTS: guilds=%s members=%s", intents.guilds, intents.members)

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            application_id=settings.application_id or None,
            allowed_mentions=discord.AllowedMentions(everyone=False, roles=False, users=True),
            help_command=None,
        )

        self.settings = settings
        self.warera = WarEraClient(
            settings.warera_api_base,
            timeout_seconds=settings.warera_timeout_seconds,
        )
        self.verification = VerificationService(
            self.warera,
            accept_id_claims=settings.identify_accept_id,
            precheck_verified=settings.identify_precheck,
            verified_role_id=settings.verified_role_id,
        )
        self._sync_mgr = _CommandSyncManager(self)

    async def setup_hook(self) -> None:
        await self.warera.start()
        await setup_error_handlers(self)

        from .cogs.identify import IdentifyCog
        from .cogs.provisioning import ProvisioningCog

        loaded: list[str] = []
        failed: list[str] = []

        # One bad cog must not prevent the others from registering commands.
        for factory in (lambda: IdentifyCog(self, self.verification), lambda: ProvisioningCog(self)):
            try:
                cog = factory()
                await self.add_cog(cog)
                loaded.append(cog.qualified_name)
            except Exception as e:
                log.exception("Failed to load cog")
                failed.append(type(e).__name__)

        log.info("Startup cog load summary: loaded=%d failed=%d", len(loaded), len(failed))
        if loaded:
            log.info("Successfully loaded cogs: %s", ", ".join(loaded))
        await self._sync_mgr.sync_startup()

    async def close(self) -> None:
        try:
            await self.warera.close()
        finally:
            await super().close()

    async def on_ready(self) -> None:
        log.info("✅ Bot is ready! Logged in as %s", self.user)
        log.info("📊 Serving %d guilds", len(self.guilds))
