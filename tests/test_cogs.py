"""
Tests for the slash command layer, invoking callbacks directly.

Validates:
- Admin and guild gating
- /setup acknowledges immediately and reports when the pass finishes
- One pass per guild at a time
- /cleanup requires confirmation and blocks other passes while it runs
- /identify always answers privately
- Error handler messages
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest
from discord import app_commands

from embassy.cogs import provisioning as provisioning_cog
from embassy.cogs.identify import IdentifyCog
from embassy.cogs.provisioning import ProvisioningCog
from embassy.config import Settings
from embassy.error_handlers import ErrorHandler
from embassy.provisioning import Pacer
from embassy.services.verification import VerificationService
from embassy.services.warera import WarEraCountry, WarEraUser
from embassy.testing.fakes import FakeFollowup, FakeInteraction, FakeWarEraClient, forbidden


@pytest.fixture
def cog(small_profile):
    bot = SimpleNamespace(settings=Settings(token="token", pacing_ms=0))
    cog = ProvisioningCog(bot)
    cog.profile = small_profile
    return cog


@pytest.fixture
def interaction(guild):
    return FakeInteraction(guild, guild.add_member("Admin"))


async def finish(cog, guild):
    await cog._jobs[guild.id]
    await asyncio.sleep(0)


class TestAdminGate:

    async def test_non_admin_is_denied(self, cog, guild):
        interaction = FakeInteraction(guild, guild.add_member(), administrator=False)

        assert await cog.interaction_check(interaction) is False
        assert interaction.response.messages[0]["embed"].title == "Error"

    async def test_dm_is_denied(self, cog):
        interaction = FakeInteraction(None)

        assert await cog.interaction_check(interaction) is False

    async def test_admin_is_allowed(self, cog, interaction):
        assert await cog.interaction_check(interaction) is True


class TestSetupCommand:

    async def test_acknowledges_then_reports(self, cog, guild, interaction):
        await cog.setup.callback(cog, interaction)

        assert "Server setup started" in interaction.response.messages[0]["content"]
        await finish(cog, guild)

        assert guild.channel("latvia-embassy") is not None
        assert "Setup Complete" in interaction.followup.messages[0]["content"]
        assert guild.id not in cog._jobs

    async def test_second_pass_is_refused_while_running(self, cog, guild, interaction):
        second = FakeInteraction(guild, interaction.user)

        await cog.setup.callback(cog, interaction)
        await cog.update.callback(cog, second)
        await finish(cog, guild)

        assert "already running" in second.response.messages[0]["content"]
        assert guild.role_names().count("Latvia") == 1

    async def test_expired_interaction_does_not_break_the_pass(self, cog, guild, interaction):
        interaction.followup = FakeFollowup(fail_with=forbidden("Unknown interaction"))

        await cog.setup.callback(cog, interaction)
        await finish(cog, guild)

        assert guild.channel("latvia-embassy") is not None

    async def test_failures_are_listed(self, cog, guild, interaction):
        guild.fail["create_role"] = {"Poland"}

        await cog.update.callback(cog, interaction)
        await finish(cog, guild)

        content = interaction.followup.messages[0]["content"]
        assert "Failed items" in content
        assert "role @Poland" in content


class TestCleanupCommand:

    async def test_without_confirm_nothing_is_deleted(self, cog, guild, interaction):
        await cog.setup.callback(cog, interaction)
        await finish(cog, guild)
        second = FakeInteraction(guild, interaction.user)

        await cog.cleanup.callback(cog, second, False)

        assert "cancelled" in second.response.messages[0]["content"]
        assert guild.count("delete_role") == 0

    async def test_confirmed_cleanup(self, cog, guild, interaction):
        await cog.setup.callback(cog, interaction)
        await finish(cog, guild)
        second = FakeInteraction(guild, interaction.user)

        await cog.cleanup.callback(cog, second, True)

        assert second.response.deferred
        assert "Cleanup Complete" in second.followup.messages[0]["content"]
        assert guild.categories == []

    async def test_refused_while_setup_runs(self, cog, guild, interaction):
        second = FakeInteraction(guild, interaction.user)

        await cog.setup.callback(cog, interaction)
        await cog.cleanup.callback(cog, second, True)
        await finish(cog, guild)

        assert "still running" in second.response.messages[0]["content"]
        assert guild.count("delete_role") == 0

    async def test_setup_refused_while_cleanup_runs(self, cog, guild, interaction, monkeypatch):
        gate = asyncio.Event()

        class GatedPacer(Pacer):
            async def pace(self) -> None:
                await gate.wait()

        monkeypatch.setattr(provisioning_cog, "Pacer", GatedPacer)
        guild.add_role("Latvia")
        guild.add_role("Poland")
        setup_interaction = FakeInteraction(guild, interaction.user)

        cleanup = asyncio.create_task(cog.cleanup.callback(cog, interaction, True))
        for _ in range(5):
            await asyncio.sleep(0)
        await cog.setup.callback(cog, setup_interaction)
        gate.set()
        await cleanup

        assert "already running" in setup_interaction.response.messages[0]["content"]
        assert guild.count("create_role") == 0
        assert guild.id not in cog._jobs
        assert "Cleanup Complete" in interaction.followup.messages[0]["content"]

    async def test_cleanup_releases_guild_on_failure(self, cog, guild, interaction, monkeypatch):
        async def explode(self, *, confirm=False):
            raise RuntimeError("boom")

        monkeypatch.setattr(provisioning_cog.CleanupEngine, "run", explode)

        with pytest.raises(RuntimeError):
            await cog.cleanup.callback(cog, interaction, True)

        assert guild.id not in cog._jobs


class TestIdentifyCommand:

    @pytest.fixture
    def client(self):
        return FakeWarEraClient(
            search={"anna": ["u-1"], "ann": ["u-1", "u-2"]},
            users=[WarEraUser(id="u-1", username="anna", country_id="c-lv")],
            countries=[WarEraCountry(id="c-lv", name="Latvia")],
        )

    @pytest.fixture
    def identify(self, client):
        return IdentifyCog(SimpleNamespace(), VerificationService(client))

    async def test_dm_is_denied_without_lookup(self, identify, client):
        interaction = FakeInteraction(None)

        await identify.identify_username.callback(identify, interaction, "anna")

        message = interaction.response.messages[0]
        assert message["ephemeral"] is True
        assert message["embed"].title == "Error"
        assert client.calls == []

    async def test_ambiguous_username_is_refused_privately(self, identify, guild):
        interaction = FakeInteraction(guild, guild.add_member())

        await identify.identify_username.callback(identify, interaction, "ann")

        assert interaction.response.deferred
        message = interaction.followup.messages[0]
        assert message["ephemeral"] is True
        assert message["content"].startswith("❌ ")
        assert "/identify id" in message["content"]

    async def test_success_reports_missing_country_role(self, identify, guild):
        verified = guild.add_role("Verified")
        member = guild.add_member()
        interaction = FakeInteraction(guild, member)

        await identify.identify_id.callback(identify, interaction, "u-1")

        message = interaction.followup.messages[0]
        assert message["ephemeral"] is True
        assert "Successfully verified" in message["content"]
        assert "**Country:** Latvia" in message["content"]
        assert "Could not assign: Latvia" in message["content"]
        assert verified in member.roles

    async def test_already_verified_member(self, identify, guild, client):
        member = guild.add_member(roles=[guild.add_role("Verified")])
        interaction = FakeInteraction(guild, member)

        await identify.identify_username.callback(identify, interaction, "anna")

        assert interaction.followup.messages[0]["content"] == "❌ You are already verified."
        assert client.calls == []


class TestErrorHandler:

    @pytest.fixture
    def handler(self):
        return ErrorHandler(SimpleNamespace())

    async def test_guild_only_message(self, handler, guild):
        interaction = FakeInteraction(guild)

        await handler.on_app_command_error(interaction, app_commands.NoPrivateMessage())

        assert "server" in interaction.response.messages[0]["embed"].description.lower()

    async def test_check_failure_is_silent(self, handler, guild):
        interaction = FakeInteraction(guild)

        await handler.on_app_command_error(interaction, app_commands.CheckFailure())

        assert interaction.response.messages == []

    async def test_unexpected_error_gets_generic_message(self, handler, guild):
        interaction = FakeInteraction(guild)
        interaction.response._responded = True

        await handler.on_app_command_error(interaction, app_commands.AppCommandError("boom"))

        assert len(interaction.followup.messages) == 1
