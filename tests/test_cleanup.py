"""
Tests for the cleanup engine.

Validates:
- Nothing is deleted without explicit confirmation
- Cleanup removes everything setup creates
- Children are deleted before their category
- Unmanaged roles survive and failures are contained
"""

from __future__ import annotations

from embassy.provisioning import CleanupEngine, TopologyBuilder
from embassy.provisioning.spec import VOTING_CATEGORY


class TestConfirmation:

    async def test_unconfirmed_cleanup_deletes_nothing(self, guild, pacer, small_profile):
        await TopologyBuilder(guild, profile=small_profile, pacer=pacer).run()
        mutations = len(guild.mutations)

        result = await CleanupEngine(guild, profile=small_profile, pacer=pacer).run()

        assert result.cancelled
        assert guild.mutations[mutations:] == []
        assert "confirm" in result.message()

    async def test_truthy_non_bool_is_not_confirmation(self, guild, pacer, small_profile):
        await TopologyBuilder(guild, profile=small_profile, pacer=pacer).run()

        result = await CleanupEngine(guild, profile=small_profile, pacer=pacer).run(confirm="yes")

        assert result.cancelled
        assert guild.count("delete_role") == 0


class TestSymmetry:

    async def test_cleanup_removes_everything_setup_created(self, guild, pacer, small_profile):
        await TopologyBuilder(guild, profile=small_profile, pacer=pacer).run()

        result = await CleanupEngine(guild, profile=small_profile, pacer=pacer).run(confirm=True)

        assert guild.role_names() == ["@everyone", "Embassy Bot"]
        assert guild.categories == []
        assert guild.text_channels == []
        assert result.failures == []
        assert result.roles_deleted == guild.count("create_role")
        assert result.categories_deleted == guild.count("create_category")
        assert result.channels_deleted == guild.count("create_channel")

    async def test_voting_category_is_cleaned_up(self, guild, pacer, small_profile):
        await TopologyBuilder(guild, profile=small_profile, pacer=pacer).run()
        assert guild.category(VOTING_CATEGORY) is not None

        await CleanupEngine(guild, profile=small_profile, pacer=pacer).run(confirm=True)

        assert guild.category(VOTING_CATEGORY) is None

    async def test_setup_after_cleanup_recreates(self, guild, pacer, small_profile):
        await TopologyBuilder(guild, profile=small_profile, pacer=pacer).run()
        await CleanupEngine(guild, profile=small_profile, pacer=pacer).run(confirm=True)

        result = await TopologyBuilder(guild, profile=small_profile, pacer=pacer).run()

        assert result.ok
        assert guild.channel("latvia-embassy") is not None


class TestOrdering:

    async def test_children_deleted_before_category(self, guild, pacer, small_profile):
        await TopologyBuilder(guild, profile=small_profile, pacer=pacer).run()
        start = len(guild.mutations)

        await CleanupEngine(guild, profile=small_profile, pacer=pacer).run(confirm=True)

        ops = guild.mutations[start:]
        category_at = ops.index(("delete_category", "🇪🇺 EUROPE"))
        embassy_at = ops.index(("delete_channel", "latvia-embassy"))
        assert embassy_at < category_at

    async def test_unmanaged_channel_in_managed_category_is_removed(self, guild, pacer, small_profile):
        await TopologyBuilder(guild, profile=small_profile, pacer=pacer).run()
        await guild.create_text_channel("off-topic", category=guild.category("🌎 AMERICAS"))

        await CleanupEngine(guild, profile=small_profile, pacer=pacer).run(confirm=True)

        assert guild.channel("off-topic") is None


class TestContainment:

    async def test_unmanaged_roles_survive(self, guild, pacer, small_profile):
        guild.add_role("Members")
        await TopologyBuilder(guild, profile=small_profile, pacer=pacer).run()

        await CleanupEngine(guild, profile=small_profile, pacer=pacer).run(confirm=True)

        assert "Members" in guild.role_names()

    async def test_failed_delete_does_not_stop_cleanup(self, guild, pacer, small_profile):
        await TopologyBuilder(guild, profile=small_profile, pacer=pacer).run()
        guild.fail["delete_role"] = {"Poland"}

        result = await CleanupEngine(guild, profile=small_profile, pacer=pacer).run(confirm=True)

        assert result.failures == ["role @Poland"]
        assert "Poland" in guild.role_names()
        assert "Brazil" not in guild.role_names()
        assert "Failed: 1" in result.message()

    async def test_empty_guild_is_a_no_op(self, guild, pacer, small_profile):
        result = await CleanupEngine(guild, profile=small_profile, pacer=pacer).run(confirm=True)

        assert (result.roles_deleted, result.categories_deleted, result.channels_deleted) == (0, 0, 0)
        assert not result.cancelled
