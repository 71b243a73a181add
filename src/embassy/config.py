from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_WARERA_API_BASE = "https://api2.warera.io/trpc"


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "y", "on"}


def _get_str(name: str, default: str) -> str:
    return os.getenv(name, default).strip() or default


@dataclass(frozen=True)
class Settings:
    token: str
    application_id: int = 0
    # Snowflake of the "Verified" role used for the fast already-verified check.
    # 0 means resolve the role by name in each guild.
    verified_role_id: int = 0
    sync_guild_id: int = 0
    log_level: str = "INFO"

    # Identify flow variants
    identify_accept_id: bool = True
    identify_precheck: bool = True

    # "ally" or "moderation"
    topology_profile: str = "ally"
    pacing_ms: int = 300

    warera_api_base: str = DEFAULT_WARERA_API_BASE
    warera_timeout_seconds: int = 15


def load_settings() -> Settings:
    token = os.getenv("DISCORD_TOKEN", "").strip()
    if not token:
        raise RuntimeError("DISCORD_TOKEN is required")
    return Settings(
        token=token,
        application_id=_get_int("DISCORD_APPLICATION_ID", 0),
        verified_role_id=_get_int("VERIFIED_ROLE_ID", 0),
        sync_guild_id=_get_int("SYNC_GUILD_ID", 0),
        log_level=_get_str("LOG_LEVEL", "INFO"),
        identify_accept_id=_get_bool("IDENTIFY_ACCEPT_ID", True),
        identify_precheck=_get_bool("IDENTIFY_PRECHECK", True),
        topology_profile=_get_str("TOPOLOGY_PROFILE", "ally").lower(),
        pacing_ms=max(0, _get_int("PACING_MS", 300)),
        warera_api_base=_get_str("WARERA_API_BASE", DEFAULT_WARERA_API_BASE).rstrip("/"),
        warera_timeout_seconds=max(1, _get_int("WARERA_TIMEOUT_SECONDS", 15)),
    )
