from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, TypeVar, Union

import aiohttp
import discord

log = logging.getLogger("embassy.reconciler")

T = TypeVar("T")

Overwrites = Dict[Union[discord.Role, discord.Member, discord.Object], discord.PermissionOverwrite]

# Errors a single remote mutation can fail with. Anything else is a bug and
# propagates.
MUTATION_ERRORS = (discord.HTTPException, aiohttp.ClientError, asyncio.TimeoutError)

REASON = "Embassy bot setup"


class Outcome(str, Enum):
    CREATED = "created"
    EXISTING = "existing"
    UPDATED = "updated"
    DELETED = "deleted"
    SKIPPED = "skipped"
    FAILED = "failed"


class Pacer:
    """Fixed delay after every mutation to stay under Discord's burst limits."""

    def __init__(self, delay_seconds: float = 0.3) -> None:
        self.delay_seconds = max(0.0, delay_seconds)

    async def pace(self) -> None:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)


@dataclass
class ReconcileStats:
    """Outcome counters for one reconciliation pass."""

    counts: Dict[str, Counter] = field(default_factory=dict)
    failures: List[str] = field(default_factory=list)

    def record(self, kind: str, outcome: Outcome, label: str = "") -> None:
        self.counts.setdefault(kind, Counter())[outcome.value] += 1
        if outcome is Outcome.FAILED and label:
            self.failures.append(f"{kind} {label}")

    def count(self, outcome: Outcome, kind: Optional[str] = None) -> int:
        if kind is not None:
            return self.counts.get(kind, Counter())[outcome.value]
        return sum(c[outcome.value] for c in self.counts.values())

    @property
    def created(self) -> int:
        return self.count(Outcome.CREATED)

    @property
    def skipped(self) -> int:
        return self.count(Outcome.EXISTING) + self.count(Outcome.SKIPPED)

    @property
    def failed(self) -> int:
        return self.count(Outcome.FAILED)

    def summary(self) -> str:
        lines = []
        for kind, counter in self.counts.items():
            parts = [f"{name}={counter[name]}" for name in (o.value for o in Outcome) if counter[name]]
            lines.append(f"{kind}: {' '.join(parts)}")
        lines.append(f"Total: created={self.created} skipped={self.skipped} failed={self.failed}")
        return "\n".join(lines)


def overwrites_differ(current: Mapping, desired: Mapping) -> bool:
    if set(current) != set(desired):
        return True
    return any(current[target] != desired[target] for target in desired)


class Reconciler:
    """Create-or-get primitives for roles, categories and text channels.

    Strictly sequential: every mutation is awaited, then paced. A failed
    mutation is logged and counted, never raised.
    """

    def __init__(
        self,
        guild: discord.Guild,
        pacer: Optional[Pacer] = None,
        stats: Optional[ReconcileStats] = None,
    ) -> None:
        self.guild = guild
        self.pacer = pacer or Pacer()
        self.stats = stats or ReconcileStats()

    async def reconcile(
        self,
        kind: str,
        label: str,
        *,
        find: Callable[[], Optional[T]],
        create: Callable[[], Awaitable[T]],
        update: Optional[Callable[[T], Awaitable[bool]]] = None,
    ) -> Optional[T]:
        """Resolve one entity: reuse it if ``find`` sees it, otherwise create it.

        ``update`` reconciles mutable attributes of an existing entity and
        returns whether it changed anything.
        """
        existing = find()
        if existing is not None:
            if update is None:
                log.info("  ✓ %s %s already exists", kind, label)
                self.stats.record(kind, Outcome.EXISTING)
                return existing
            try:
                changed = await update(existing)
            except MUTATION_ERRORS as e:
                log.warning("  ⚠️ Failed to update %s %s: %s", kind, label, e)
                self.stats.record(kind, Outcome.FAILED, label)
                return existing
            if changed:
                log.info("  ↻ Updated %s %s", kind, label)
                self.stats.record(kind, Outcome.UPDATED)
                await self.pacer.pace()
            else:
                log.info("  ✓ %s %s already exists", kind, label)
                self.stats.record(kind, Outcome.EXISTING)
            return existing

        try:
            created = await create()
        except MUTATION_ERRORS as e:
            log.error("  ❌ Failed to create %s %s: %s", kind, label, e)
            self.stats.record(kind, Outcome.FAILED, label)
            return None
        log.info("  ✅ Created %s %s", kind, label)
        self.stats.record(kind, Outcome.CREATED)
        await self.pacer.pace()
        return created

    async def ensure_role(
        self,
        name: str,
        *,
        colour: int,
        permissions: Optional[discord.Permissions] = None,
    ) -> Optional[discord.Role]:
        desired = permissions or discord.Permissions.none()

        async def create() -> discord.Role:
            return await self.guild.create_role(
                name=name,
                colour=discord.Colour(colour),
                permissions=desired,
                reason=f"{REASON}: {name} role",
            )

        async def update(role: discord.Role) -> bool:
            if desired.value == 0 or desired.is_subset(role.permissions):
                return False
            await role.edit(permissions=role.permissions | desired, reason=f"{REASON}: {name} permissions")
            return True

        return await self.reconcile(
            "role",
            f"@{name}",
            find=lambda: discord.utils.get(self.guild.roles, name=name),
            create=create,
            update=update,
        )

    async def ensure_category(
        self,
        name: str,
        *,
        overwrites: Optional[Overwrites] = None,
    ) -> Optional[discord.CategoryChannel]:
        async def create() -> discord.CategoryChannel:
            return await self.guild.create_category(
                name,
                overwrites=overwrites or {},
                reason=f"{REASON}: {name} category",
            )

        return await self.reconcile(
            "category",
            f'"{name}"',
            find=lambda: discord.utils.get(self.guild.categories, name=name),
            create=create,
            update=self._overwrite_updater(overwrites, name),
        )

    async def ensure_text_channel(
        self,
        name: str,
        *,
        category: Optional[discord.CategoryChannel] = None,
        topic: str = "",
        overwrites: Optional[Overwrites] = None,
    ) -> Optional[discord.TextChannel]:
        async def create() -> discord.TextChannel:
            kwargs = {}
            if topic:
                kwargs["topic"] = topic
            if overwrites is not None:
                kwargs["overwrites"] = overwrites
            return await self.guild.create_text_channel(
                name,
                category=category,
                reason=f"{REASON}: {name} channel",
                **kwargs,
            )

        def find() -> Optional[discord.TextChannel]:
            if category is None:
                return discord.utils.get(self.guild.text_channels, name=name)
            return discord.utils.get(self.guild.text_channels, name=name, category_id=category.id)

        return await self.reconcile(
            "channel",
            f"#{name}",
            find=find,
            create=create,
            update=self._overwrite_updater(overwrites, name),
        )

    def _overwrite_updater(
        self, desired: Optional[Overwrites], name: str
    ) -> Optional[Callable[[discord.abc.GuildChannel], Awaitable[bool]]]:
        if desired is None:
            return None

        async def update(channel: discord.abc.GuildChannel) -> bool:
            if not overwrites_differ(channel.overwrites, desired):
                return False
            # edit(overwrites=...) replaces the whole list
            await channel.edit(overwrites=desired, reason=f"{REASON}: {name} permissions")
            return True

        return update
