"""
Safe Message Reporting for Provisioning Passes

Ensures follow-ups never exceed Discord's 2000 character limit and never
raise: the interaction token may have expired by the time a pass finishes.
"""

from __future__ import annotations

import io
import logging
from typing import Optional

import discord

from ..constants import SAFE_MESSAGE_LENGTH

log = logging.getLogger("embassy.provisioning.reporting")


async def send_safe_followup(
    interaction: discord.Interaction,
    content: str,
    *,
    filename: str = "embassy_report.txt",
) -> Optional[discord.Message]:
    """Best-effort ephemeral follow-up.

    Long content is sent as a summary with the full text attached as a file.
    Returns ``None`` when the message could not be delivered.
    """
    try:
        if len(content) <= SAFE_MESSAGE_LENGTH:
            return await interaction.followup.send(content, ephemeral=True)

        summary = content[:SAFE_MESSAGE_LENGTH] + "\n\n... (full report attached)"
        report = discord.File(io.BytesIO(content.encode("utf-8")), filename=filename)
        return await interaction.followup.send(summary, file=report, ephemeral=True)
    except discord.NotFound:
        log.info("Could not send follow-up (interaction expired)")
    except discord.HTTPException as e:
        log.warning("Failed to send follow-up: %s", e)
    return None
