from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import discord

from ..provisioning.countries import role_name_for
from ..provisioning.reconciler import MUTATION_ERRORS
from ..provisioning.spec import VERIFIED
from .warera import WarEraClient, WarEraCountry, WarEraUnavailable, WarEraUser

log = logging.getLogger("embassy.verification")


class VerificationError(Exception):
    """A verification refusal with a message safe to show the member."""

    user_message = "Failed to verify your WarEra character."

    def __init__(self, user_message: Optional[str] = None) -> None:
        if user_message:
            self.user_message = user_message
        super().__init__(self.user_message)


class AlreadyVerified(VerificationError):
    user_message = "You are already verified."


class ClaimNotAccepted(VerificationError):
    user_message = "Verification by WarEra ID is disabled on this server. Use your username instead."


class UserNotFound(VerificationError):
    pass


class MultipleMatches(VerificationError):
    pass


class IdentityServiceUnavailable(VerificationError):
    user_message = "WarEra could not be reached right now. Please try again later."


class ClaimKind(str, Enum):
    USERNAME = "username"
    ID = "id"


@dataclass(frozen=True)
class IdentityClaim:
    kind: ClaimKind
    value: str


@dataclass(frozen=True)
class VerifiedIdentity:
    user: WarEraUser
    country: Optional[WarEraCountry] = None

    @property
    def country_name(self) -> Optional[str]:
        return self.country.name if self.country else None


@dataclass
class GrantReport:
    granted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)


class VerificationService:
    """Resolve one identity claim to one WarEra character and grant roles.

    ``accept_id_claims`` and ``precheck_verified`` select between the two
    deployment variants of the identify flow.
    """

    def __init__(
        self,
        client: WarEraClient,
        *,
        accept_id_claims: bool = True,
        precheck_verified: bool = True,
        verified_role_id: int = 0,
    ) -> None:
        self.client = client
        self.accept_id_claims = accept_id_claims
        self.precheck_verified = precheck_verified
        self.verified_role_id = verified_role_id

    def verified_role(self, guild: discord.Guild) -> Optional[discord.Role]:
        if self.verified_role_id:
            role = guild.get_role(self.verified_role_id)
            if role is not None:
                return role
        return discord.utils.get(guild.roles, name=VERIFIED.name)

    def is_verified(self, member: discord.Member) -> bool:
        role = self.verified_role(member.guild)
        role_id = role.id if role is not None else self.verified_role_id
        if not role_id:
            return False
        return any(r.id == role_id for r in member.roles)

    async def verify(self, member: discord.Member, claim: IdentityClaim) -> VerifiedIdentity:
        """Check preconditions, then resolve the claim. Raises ``VerificationError``."""
        if self.precheck_verified and self.is_verified(member):
            raise AlreadyVerified()
        identity = await self.resolve(claim)
        log.info(
            "✅ Verified %s (Discord %s) as WarEra %s - Country: %s",
            claim.value,
            member.id,
            identity.user.id,
            identity.country_name,
        )
        return identity

    async def resolve(self, claim: IdentityClaim) -> VerifiedIdentity:
        value = claim.value.strip()
        if not value:
            raise UserNotFound("Please provide a WarEra username or ID.")

        try:
            if claim.kind is ClaimKind.ID:
                if not self.accept_id_claims:
                    raise ClaimNotAccepted()
                user = await self.client.get_user(value)
                if user is None:
                    raise UserNotFound(f'No WarEra character with ID "{value}" was found.')
            else:
                user = await self._find_by_username(value)
        except WarEraUnavailable as e:
            log.warning("Identity lookup for %r failed: %s", value, e)
            raise IdentityServiceUnavailable() from e

        return VerifiedIdentity(user=user, country=await self._country_of(user))

    async def _find_by_username(self, username: str) -> WarEraUser:
        user_ids = await self.client.search_user_ids(username)
        if not user_ids:
            raise UserNotFound(f'Character "{username}" not found in WarEra. Please check your username.')
        if len(user_ids) > 1:
            raise MultipleMatches(
                f'{len(user_ids)} WarEra characters match "{username}". '
                "Please use `/identify id` with your WarEra ID instead."
            )
        user = await self.client.get_user(user_ids[0])
        if user is None:
            raise UserNotFound(f'Character "{username}" not found in WarEra. Please check your username.')
        return user

    async def _country_of(self, user: WarEraUser) -> Optional[WarEraCountry]:
        if not user.country_id:
            return None
        try:
            return await self.client.get_country(user.country_id)
        except WarEraUnavailable as e:
            log.warning("Country lookup for %s failed, continuing without it: %s", user.country_id, e)
            return None

    async def grant_roles(self, member: discord.Member, identity: VerifiedIdentity) -> GrantReport:
        """Grant the verified role and the mapped country role, independently."""
        report = GrantReport()
        guild = member.guild

        targets: List[tuple[str, Optional[discord.Role]]] = [(VERIFIED.name, self.verified_role(guild))]
        if identity.country_name:
            role_name = role_name_for(identity.country_name)
            if role_name:
                targets.append((role_name, discord.utils.get(guild.roles, name=role_name)))
            else:
                log.info("Country %r has no mapped role", identity.country_name)

        for name, role in targets:
            if role is None:
                log.warning("Role %r not found in guild %s", name, guild.id)
                report.missing.append(name)
                continue
            try:
                await member.add_roles(role, reason=f"WarEra verification: {identity.user.username}")
            except MUTATION_ERRORS as e:
                log.error("Failed to assign role %s to %s: %s", role.name, member.id, e)
                report.failed.append(role.name)
                continue
            report.granted.append(role.name)
        return report
