"""
Embassy Topology Specification

Single source of truth for the server structure.
Used by the topology builder and by the cleanup engine, so both work from the
same naming scheme.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

import discord

from .countries import CONTINENT_EMBASSIES, COUNTRY_ROLE_MAP, HOME_COUNTRY

log = logging.getLogger("embassy.provisioning.spec")


class Subject(Enum):
    """Symbolic overwrite target, resolved against live roles at build time."""
    EVERYONE = "everyone"
    LEADERSHIP = "leadership"
    VERIFIED = "verified"
    HOME = "home"
    COUNTRY = "country"


VIEW = "view_channel"
SEND = "send_messages"
HISTORY = "read_message_history"


@dataclass(frozen=True)
class Grant:
    subject: Subject
    allow: Tuple[str, ...] = ()
    deny: Tuple[str, ...] = ()

    def overwrite(self) -> discord.PermissionOverwrite:
        values: Dict[str, Optional[bool]] = {perm: True for perm in self.allow}
        values.update({perm: False for perm in self.deny})
        return discord.PermissionOverwrite(**values)


@dataclass(frozen=True)
class RoleSpec:
    name: str
    colour: int
    permissions: Tuple[str, ...] = ()

    def permission_bits(self) -> discord.Permissions:
        return discord.Permissions(**{perm: True for perm in self.permissions})


@dataclass(frozen=True)
class ChannelSpec:
    name: str
    topic: str = ""
    # None leaves the channel synced with its category and never touches
    # overwrites on an existing channel.
    overwrites: Optional[Tuple[Grant, ...]] = None


@dataclass(frozen=True)
class CategorySpec:
    name: str
    channels: Tuple[ChannelSpec, ...] = ()
    overwrites: Optional[Tuple[Grant, ...]] = None


ROLE_COLORS = MappingProxyType({
    "president": 0xF1C40F,
    "government": 0x3498DB,
    "ally": 0x1ABC9C,
    "mods": 0xE67E22,
    "verified": 0x57F287,
    "home": 0xFDB913,
    "country": 0x95A5A6,
})

PRESIDENT = RoleSpec("President", ROLE_COLORS["president"], ("manage_roles",))
GOVERNMENT = RoleSpec("Government", ROLE_COLORS["government"], ("manage_roles",))
ALLY = RoleSpec("Ally", ROLE_COLORS["ally"])
MODS = RoleSpec("Mods", ROLE_COLORS["mods"])
VERIFIED = RoleSpec("Verified", ROLE_COLORS["verified"])

PUBLIC_CATEGORY = "📋 PUBLIC"
ANNOUNCEMENTS_CATEGORY = "📢 ANNOUNCEMENTS"
COMMUNITY_CATEGORY = "💬 COMMUNITY"
VOTING_CATEGORY = "🗳️ VOTING"
GOVERNMENT_CATEGORY = "🏛️ GOVERNMENT"

_WHITESPACE_RE = re.compile(r"\s+")

# Permission matrix building blocks
_HIDDEN = Grant(Subject.EVERYONE, deny=(VIEW,))
_LEADERSHIP_RW = Grant(Subject.LEADERSHIP, allow=(VIEW, SEND))
_HOME_RW = Grant(Subject.HOME, allow=(VIEW, SEND))
_EMBASSY_RW = (VIEW, SEND, HISTORY)


def slugify(name: str) -> str:
    return _WHITESPACE_RE.sub("-", name.strip().lower())


def embassy_channel_name(role_name: str) -> str:
    """``"South Korea"`` -> ``"south-korea-embassy"``."""
    return f"{slugify(role_name)}-embassy"


def _voting_channels(home_name: str) -> Tuple[ChannelSpec, ...]:
    return (
        ChannelSpec(
            "government-voting",
            topic="Internal government voting and discussions",
            overwrites=(_HIDDEN, _LEADERSHIP_RW),
        ),
        ChannelSpec(
            "public-voting",
            topic=f"Public voting for {home_name} citizens",
            overwrites=(_HIDDEN, _HOME_RW),
        ),
    )


@dataclass(frozen=True)
class TopologyProfile:
    """One deployment variant of the server structure.

    The variants differ only in their auxiliary roles and in whether the
    voting channels get their own category or live under announcements.
    """

    name: str
    leadership: Tuple[RoleSpec, ...] = (PRESIDENT, GOVERNMENT)
    auxiliary: Tuple[RoleSpec, ...] = (ALLY,)
    split_voting: bool = True
    home_country: str = HOME_COUNTRY
    country_roles: Mapping[str, str] = field(default_factory=lambda: COUNTRY_ROLE_MAP)
    continents: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: CONTINENT_EMBASSIES)

    @property
    def home_role_name(self) -> str:
        return self.country_roles.get(self.home_country, self.home_country)

    def base_roles(self) -> Tuple[RoleSpec, RoleSpec]:
        return VERIFIED, RoleSpec(self.home_role_name, ROLE_COLORS["home"])

    def country_role_specs(self) -> List[Tuple[str, RoleSpec]]:
        """(country, role spec) for every mapped country except the home one."""
        return [
            (country, RoleSpec(role_name, ROLE_COLORS["country"]))
            for country, role_name in self.country_roles.items()
            if country != self.home_country
        ]

    def categories(self) -> Tuple[CategorySpec, ...]:
        """The fixed category groups, in creation order."""
        home = self.home_role_name
        voting = _voting_channels(home)

        announcements = (ChannelSpec("announcements", topic="Server and game announcements"),)
        if not self.split_voting:
            announcements += voting

        groups = [
            CategorySpec(
                PUBLIC_CATEGORY,
                channels=(
                    ChannelSpec(
                        "welcome",
                        topic="Welcome to the server! Use /identify to verify your WarEra character.",
                    ),
                    ChannelSpec(
                        "rules",
                        topic="Server rules and guidelines",
                        overwrites=(
                            Grant(Subject.EVERYONE, allow=(VIEW,), deny=(SEND,)),
                            _LEADERSHIP_RW,
                        ),
                    ),
                ),
            ),
            CategorySpec(
                ANNOUNCEMENTS_CATEGORY,
                channels=announcements,
                overwrites=(
                    _HIDDEN,
                    Grant(Subject.HOME, allow=(VIEW,), deny=(SEND,)),
                    _LEADERSHIP_RW,
                ),
            ),
            CategorySpec(
                COMMUNITY_CATEGORY,
                channels=(
                    ChannelSpec("memes", topic="Share your memes"),
                    ChannelSpec("game-help", topic="Ask for in-game advice"),
                    ChannelSpec("chat", topic="General chat for all verified players"),
                    ChannelSpec(
                        f"{slugify(home)}-chat",
                        topic=f"Chat for verified {home} citizens",
                        overwrites=(
                            _HIDDEN,
                            Grant(Subject.VERIFIED, deny=(VIEW,)),
                            _HOME_RW,
                        ),
                    ),
                    ChannelSpec("chat-for-dummies", topic="Spam and do whatever you want here"),
                ),
                overwrites=(_HIDDEN, Grant(Subject.VERIFIED, allow=(VIEW, SEND))),
            ),
        ]
        if self.split_voting:
            groups.append(CategorySpec(VOTING_CATEGORY, channels=voting))
        groups.append(
            CategorySpec(
                GOVERNMENT_CATEGORY,
                channels=(ChannelSpec("government", topic="Government and leadership discussions"),),
                overwrites=(_HIDDEN, _LEADERSHIP_RW),
            )
        )
        return tuple(groups)

    def embassy_category(self, name: str) -> CategorySpec:
        return CategorySpec(name, overwrites=(_HIDDEN,))

    def embassy_channel(self, country: str, role_name: str) -> ChannelSpec:
        return ChannelSpec(
            embassy_channel_name(role_name),
            topic=f"Embassy channel for {country} citizens",
            overwrites=(
                _HIDDEN,
                Grant(Subject.COUNTRY, allow=_EMBASSY_RW),
                Grant(Subject.LEADERSHIP, allow=_EMBASSY_RW),
            ),
        )

    def managed_role_names(self) -> List[str]:
        names: List[str] = [spec.name for spec in self.leadership + self.auxiliary]
        names.extend(spec.name for spec in self.base_roles())
        names.extend(spec.name for _, spec in self.country_role_specs())
        return list(dict.fromkeys(names))

    def managed_category_names(self) -> List[str]:
        names = [category.name for category in self.categories()]
        names.extend(self.continents.keys())
        return list(dict.fromkeys(names))


ALLY_PROFILE = TopologyProfile(name="ally")
MODERATION_PROFILE = TopologyProfile(name="moderation", auxiliary=(MODS,), split_voting=False)

PROFILES: Mapping[str, TopologyProfile] = MappingProxyType({
    ALLY_PROFILE.name: ALLY_PROFILE,
    MODERATION_PROFILE.name: MODERATION_PROFILE,
})


def get_profile(name: str) -> TopologyProfile:
    profile = PROFILES.get((name or "").strip().lower())
    if profile is None:
        log.warning("Unknown topology profile %r, falling back to %r", name, ALLY_PROFILE.name)
        return ALLY_PROFILE
    return profile
