from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import discord

from .reconciler import MUTATION_ERRORS, Outcome, Pacer, ReconcileStats
from .spec import ALLY_PROFILE, TopologyProfile

log = logging.getLogger("embassy.cleanup")

CLEANUP_REASON = "Embassy bot cleanup"


@dataclass
class CleanupResult:
    cancelled: bool = False
    roles_deleted: int = 0
    categories_deleted: int = 0
    channels_deleted: int = 0
    failures: List[str] = field(default_factory=list)

    def message(self) -> str:
        if self.cancelled:
            return "❌ Cleanup cancelled. Set confirm to true to proceed."
        lines = [
            "✅ **Cleanup Complete!**",
            "",
            "**Deleted:**",
            f"🎭 Roles: {self.roles_deleted}",
            f"📁 Categories: {self.categories_deleted}",
            f"📝 Channels: {self.channels_deleted}",
        ]
        if self.failures:
            lines.append(f"⚠️ Failed: {len(self.failures)} (see bot logs)")
        lines.append("")
        lines.append("You can now run `/setup` again to recreate everything.")
        return "\n".join(lines)


class CleanupEngine:
    """Delete everything the topology builder creates, matched by name."""

    def __init__(
        self,
        guild: discord.Guild,
        profile: TopologyProfile = ALLY_PROFILE,
        pacer: Optional[Pacer] = None,
    ) -> None:
        self.guild = guild
        self.profile = profile
        self.pacer = pacer or Pacer()
        self.stats = ReconcileStats()

    async def run(self, *, confirm: bool = False) -> CleanupResult:
        if confirm is not True:
            log.info("Cleanup requested without confirmation, nothing deleted")
            return CleanupResult(cancelled=True)

        result = CleanupResult()

        for name in self.profile.managed_role_names():
            role = discord.utils.get(self.guild.roles, name=name)
            if role is None:
                continue
            if await self._delete("role", f"@{name}", role):
                result.roles_deleted += 1

        for name in self.profile.managed_category_names():
            category = discord.utils.get(self.guild.categories, name=name)
            if category is None:
                continue
            # Children first; Discord may refuse a non-empty category
            for channel in list(category.channels):
                if await self._delete("channel", f"#{channel.name}", channel):
                    result.channels_deleted += 1
            if await self._delete("category", f'"{name}"', category):
                result.categories_deleted += 1

        result.failures = list(self.stats.failures)
        log.info(
            "✅ Cleanup complete - deleted %d roles, %d categories, %d channels, %d failed",
            result.roles_deleted,
            result.categories_deleted,
            result.channels_deleted,
            len(result.failures),
        )
        return result

    async def _delete(self, kind: str, label: str, target: discord.abc.Snowflake) -> bool:
        try:
            await target.delete(reason=CLEANUP_REASON)
        except discord.NotFound:
            log.info("  %s %s already gone", kind, label)
            self.stats.record(kind, Outcome.SKIPPED)
            return False
        except MUTATION_ERRORS as e:
            log.error("  ❌ Failed to delete %s %s: %s", kind, label, e)
            self.stats.record(kind, Outcome.FAILED, label)
            return False
        log.info("  Deleted %s %s", kind, label)
        self.stats.record(kind, Outcome.DELETED)
        await self.pacer.pace()
        return True
