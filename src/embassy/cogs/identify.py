from __future__ import annotations

import discord
from discord import app_commands

from ..base_cog import BaseCog
from ..constants import ERROR_MESSAGES
from ..services.verification import (
    ClaimKind,
    GrantReport,
    IdentityClaim,
    VerificationError,
    VerificationService,
    VerifiedIdentity,
)


def format_success(identity: VerifiedIdentity, report: GrantReport) -> str:
    lines = ["✅ **Successfully verified!**", f"**WarEra Username:** {identity.user.username}"]
    if identity.country_name:
        lines.append(f"**Country:** {identity.country_name}")
    if report.granted:
        lines.append("")
        lines.append(f"**Roles Assigned:** {', '.join(report.granted)}")
    if report.failed or report.missing:
        lines.append(f"⚠️ Could not assign: {', '.join(report.failed + report.missing)}. Please contact an admin.")
    lines.append("")
    lines.append("You now have access to your country's channels!")
    return "\n".join(lines)


class IdentifyCog(BaseCog):
    """WarEra character verification. Always answers privately."""

    identify = app_commands.Group(
        name="identify",
        description="Verify your WarEra character and get country roles",
        guild_only=True,
    )

    def __init__(self, bot, service: VerificationService) -> None:
        super().__init__(bot)
        self.service = service

    @identify.command(name="username", description="Identify by username")
    @app_commands.describe(value="Your WarEra username")
    async def identify_username(self, interaction: discord.Interaction, value: str) -> None:
        await self._identify(interaction, IdentityClaim(ClaimKind.USERNAME, value))

    @identify.command(name="id", description="Identify by ID")
    @app_commands.describe(value="Your WarEra ID")
    async def identify_id(self, interaction: discord.Interaction, value: str) -> None:
        await self._identify(interaction, IdentityClaim(ClaimKind.ID, value))

    async def _identify(self, interaction: discord.Interaction, claim: IdentityClaim) -> None:
        member = interaction.user
        if interaction.guild is None or isinstance(member, discord.User):
            await self.deny(interaction, ERROR_MESSAGES["guild_only"])
            return

        await interaction.response.defer(ephemeral=True, thinking=True)

        try:
            identity = await self.service.verify(member, claim)
        except VerificationError as e:
            self.log.info("Verification refused for %s (%s): %s", member.id, claim.kind.value, type(e).__name__)
            await interaction.followup.send(f"❌ {e.user_message}", ephemeral=True)
            return

        report = await self.service.grant_roles(member, identity)
        await interaction.followup.send(format_success(identity, report), ephemeral=True)
