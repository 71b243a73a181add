from __future__ import annotations

from typing import Final

# Discord limits
SAFE_MESSAGE_LENGTH: Final[int] = 1900
MAX_EMBED_DESCRIPTION: Final[int] = 4096
MAX_EMBED_TITLE: Final[int] = 256

# Colors (hex values)
COLORS = {
    "default": 0x5865F2,
    "error": 0xED4245,
}

# Error messages
ERROR_MESSAGES = {
    "missing_permissions": "You need Administrator permission to use this command.",
    "guild_only": "This command can only be used in a server.",
    "generic": "An error occurred while executing this command.",
    "bot_missing_permissions": "The bot lacks required permissions to run this command.",
}
