from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import discord

from .reconciler import MUTATION_ERRORS, REASON, Outcome, Overwrites, Pacer, ReconcileStats, Reconciler
from .spec import ALLY_PROFILE, CategorySpec, Grant, Subject, TopologyProfile

log = logging.getLogger("embassy.engine")


@dataclass
class RoleBook:
    """Live role handles resolved during a pass, keyed the way grants refer to them."""

    leadership: List[discord.Role] = field(default_factory=list)
    auxiliary: List[discord.Role] = field(default_factory=list)
    verified: Optional[discord.Role] = None
    home: Optional[discord.Role] = None
    countries: Dict[str, discord.Role] = field(default_factory=dict)

    def targets(self, subject: Subject, country: Optional[discord.Role] = None) -> List[discord.Role]:
        if subject is Subject.LEADERSHIP:
            return list(self.leadership)
        if subject is Subject.VERIFIED:
            return [self.verified] if self.verified else []
        if subject is Subject.HOME:
            return [self.home] if self.home else []
        if subject is Subject.COUNTRY:
            return [country] if country else []
        return []


def build_overwrites(
    guild: discord.Guild,
    grants: Optional[Sequence[Grant]],
    roles: RoleBook,
    *,
    country: Optional[discord.Role] = None,
) -> Optional[Overwrites]:
    """Turn symbolic grants into a discord.py overwrite mapping.

    Grants whose role could not be resolved are left out; the rest still apply.
    """
    if grants is None:
        return None
    overwrites: Overwrites = {}
    for grant in grants:
        if grant.subject is Subject.EVERYONE:
            overwrites[guild.default_role] = grant.overwrite()
            continue
        targets = roles.targets(grant.subject, country)
        if not targets:
            log.warning("  ⚠️ No role resolved for %s grant, leaving it out", grant.subject.value)
        for role in targets:
            overwrites[role] = grant.overwrite()
    return overwrites


@dataclass
class SetupResult:
    roles: RoleBook
    stats: ReconcileStats
    channels: Dict[str, List[discord.TextChannel]] = field(default_factory=dict)
    embassies: Dict[str, discord.TextChannel] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.stats.failed == 0

    def message(self) -> str:
        lines = [
            "Server setup complete!" if self.ok else "Server setup finished with some failures.",
            "",
            f"✅ Leadership roles: {', '.join(r.name for r in self.roles.leadership) or 'none'}",
            f"✅ Country roles: {len(self.roles.countries)}",
            f"✅ Channel groups: {', '.join(self.channels) or 'none'}",
            f"✅ Embassy channels: {len(self.embassies)}",
            "",
            f"Created {self.stats.created}, skipped {self.stats.skipped}, failed {self.stats.failed}.",
        ]
        if not self.ok:
            lines.append("Run `/update` again to retry the missing items; existing ones are reused.")
        lines.extend([
            "",
            "**Next steps:**",
            "1. Assign leadership roles to the appropriate members",
            "2. Members verify with /identify to get their country role",
        ])
        return "\n".join(lines)


class TopologyBuilder:
    """Reconcile a guild towards the fixed embassy topology.

    Each step consumes role handles resolved by earlier steps, so the order
    matters. Rerunning is safe: existing entities are found by name and reused.
    """

    def __init__(
        self,
        guild: discord.Guild,
        profile: TopologyProfile = ALLY_PROFILE,
        pacer: Optional[Pacer] = None,
    ) -> None:
        self.guild = guild
        self.profile = profile
        self.stats = ReconcileStats()
        self.reconciler = Reconciler(guild, pacer=pacer, stats=self.stats)
        self.roles = RoleBook()

    async def run(self) -> SetupResult:
        log.info("📋 Step 1: leadership roles")
        await self._leadership_roles()

        log.info("📋 Step 2: base roles")
        await self._base_roles()

        log.info("📋 Step 3: country roles")
        await self._country_roles()

        log.info("📋 Step 4: channel groups")
        channels = await self._channel_groups()

        log.info("📋 Step 5: embassies")
        embassies = await self._embassies()

        log.info("📋 Step 6: leadership role position")
        await self._position_leadership()

        log.info("Setup pass finished\n%s", self.stats.summary())
        return SetupResult(roles=self.roles, stats=self.stats, channels=channels, embassies=embassies)

    async def _leadership_roles(self) -> None:
        for spec in self.profile.leadership:
            role = await self.reconciler.ensure_role(spec.name, colour=spec.colour, permissions=spec.permission_bits())
            if role:
                self.roles.leadership.append(role)
        for spec in self.profile.auxiliary:
            role = await self.reconciler.ensure_role(spec.name, colour=spec.colour, permissions=spec.permission_bits())
            if role:
                self.roles.auxiliary.append(role)

    async def _base_roles(self) -> None:
        verified, home = self.profile.base_roles()
        self.roles.verified = await self.reconciler.ensure_role(verified.name, colour=verified.colour)
        self.roles.home = await self.reconciler.ensure_role(home.name, colour=home.colour)
        if self.roles.home:
            self.roles.countries[self.profile.home_country] = self.roles.home

    async def _country_roles(self) -> None:
        specs = self.profile.country_role_specs()
        log.info("  Resolving %d country roles...", len(specs))
        for country, spec in specs:
            role = await self.reconciler.ensure_role(spec.name, colour=spec.colour)
            if role:
                self.roles.countries[country] = role

    async def _channel_groups(self) -> Dict[str, List[discord.TextChannel]]:
        groups: Dict[str, List[discord.TextChannel]] = {}
        for spec in self.profile.categories():
            groups[spec.name] = await self._category_group(spec)
        return groups

    async def _category_group(self, spec: CategorySpec) -> List[discord.TextChannel]:
        category = await self.reconciler.ensure_category(
            spec.name,
            overwrites=build_overwrites(self.guild, spec.overwrites, self.roles),
        )
        if category is None:
            for channel in spec.channels:
                self.stats.record("channel", Outcome.SKIPPED)
                log.warning("  ⚠️ Skipping #%s, category %s unavailable", channel.name, spec.name)
            return []

        channels: List[discord.TextChannel] = []
        for channel_spec in spec.channels:
            channel = await self.reconciler.ensure_text_channel(
                channel_spec.name,
                category=category,
                topic=channel_spec.topic,
                overwrites=build_overwrites(self.guild, channel_spec.overwrites, self.roles),
            )
            if channel:
                channels.append(channel)
        return channels

    async def _embassies(self) -> Dict[str, discord.TextChannel]:
        embassies: Dict[str, discord.TextChannel] = {}
        for category_name, countries in self.profile.continents.items():
            log.info("  📁 Processing %s...", category_name)
            category_spec = self.profile.embassy_category(category_name)
            category = await self.reconciler.ensure_category(
                category_spec.name,
                overwrites=build_overwrites(self.guild, category_spec.overwrites, self.roles),
            )
            for country in countries:
                role = self.roles.countries.get(country)
                if category is None or role is None:
                    log.warning("  ⚠️ No role or category for %s, skipping embassy", country)
                    self.stats.record("embassy", Outcome.SKIPPED)
                    continue
                spec = self.profile.embassy_channel(country, role.name)
                channel = await self.reconciler.ensure_text_channel(
                    spec.name,
                    category=category,
                    topic=spec.topic,
                    overwrites=build_overwrites(self.guild, spec.overwrites, self.roles, country=role),
                )
                if channel:
                    embassies[country] = channel
        log.info("  Embassy channels ready: %d", len(embassies))
        return embassies

    async def _position_leadership(self) -> None:
        """Best effort: move leadership roles directly below the bot's top role."""
        me = self.guild.me
        if me is None or not me.guild_permissions.manage_roles:
            log.info("  Bot cannot manage roles, leaving role order alone")
            return

        target = me.top_role.position - 1
        if target <= 0:
            return

        positions: Dict[discord.Role, int] = {}
        for offset, role in enumerate(self.roles.leadership):
            desired = target - offset
            if desired > 0 and role.position < desired:
                positions[role] = desired
        if not positions:
            return

        try:
            await self.guild.edit_role_positions(positions=positions, reason=f"{REASON}: leadership order")
            log.info("  Moved %s below the bot's top role", ", ".join(f"@{r.name}" for r in positions))
        except MUTATION_ERRORS as e:
            log.warning("  ⚠️ Failed to reorder roles: %s", e)
        else:
            await self.reconciler.pacer.pace()
