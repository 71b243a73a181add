"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest

from embassy.config import DEFAULT_WARERA_API_BASE, load_settings

ENV_VARS = (
    "DISCORD_TOKEN",
    "DISCORD_APPLICATION_ID",
    "VERIFIED_ROLE_ID",
    "SYNC_GUILD_ID",
    "LOG_LEVEL",
    "IDENTIFY_ACCEPT_ID",
    "IDENTIFY_PRECHECK",
    "TOPOLOGY_PROFILE",
    "PACING_MS",
    "WARERA_API_BASE",
    "WARERA_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DISCORD_TOKEN", "token")


class TestLoadSettings:

    def test_token_is_required(self, monkeypatch):
        monkeypatch.delenv("DISCORD_TOKEN")

        with pytest.raises(RuntimeError):
            load_settings()

    def test_defaults(self):
        settings = load_settings()

        assert settings.token == "token"
        assert settings.verified_role_id == 0
        assert settings.identify_accept_id is True
        assert settings.identify_precheck is True
        assert settings.topology_profile == "ally"
        assert settings.pacing_ms == 300
        assert settings.warera_api_base == DEFAULT_WARERA_API_BASE

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("VERIFIED_ROLE_ID", "1234")
        monkeypatch.setenv("IDENTIFY_ACCEPT_ID", "false")
        monkeypatch.setenv("IDENTIFY_PRECHECK", "no")
        monkeypatch.setenv("TOPOLOGY_PROFILE", "Moderation")
        monkeypatch.setenv("WARERA_API_BASE", "https://example.test/trpc/")

        settings = load_settings()

        assert settings.verified_role_id == 1234
        assert settings.identify_accept_id is False
        assert settings.identify_precheck is False
        assert settings.topology_profile == "moderation"
        assert settings.warera_api_base == "https://example.test/trpc"

    def test_bad_numbers_fall_back(self, monkeypatch):
        monkeypatch.setenv("PACING_MS", "fast")
        monkeypatch.setenv("WARERA_TIMEOUT_SECONDS", "0")

        settings = load_settings()

        assert settings.pacing_ms == 300
        assert settings.warera_timeout_seconds == 1
