"""
Best-effort delivery of moderation notices.

Every function here attempts one send and reports the result as a
``NotificationOutcome``. Failures are logged, never raised, so a blocked DM
or a missing log channel cannot abort the action it accompanies.
"""

from __future__ import annotations

import asyncio
from typing import Any

import discord

from modwatch.datatypes.outcome_datatypes import NotificationOutcome
from modwatch.util.discord_utils import find_text_channel_by_name
from modwatch.util.logger import get_logger

logger = get_logger("notifications")


async def attempt_direct_message(user: Any, embed: discord.Embed) -> NotificationOutcome:
    """Send ``embed`` to ``user`` by direct message."""
    destination = f"DM to {getattr(user, 'id', '?')}"
    try:
        await user.send(embed=embed)
    except asyncio.CancelledError:
        raise
    except discord.Forbidden:
        logger.warning("[NOTIFY] Could not DM user %s: DMs are closed", getattr(user, "id", "?"))
        return NotificationOutcome.failed(destination, "forbidden")
    except Exception as exc:
        logger.warning("[NOTIFY] Failed to DM user %s: %s", getattr(user, "id", "?"), exc)
        return NotificationOutcome.failed(destination, str(exc) or type(exc).__name__)
    return NotificationOutcome.ok(destination)


async def attempt_channel_post(guild: Any, channel_name: str, embed: discord.Embed) -> NotificationOutcome:
    """Post ``embed`` to the text channel of ``guild`` named exactly ``channel_name``."""
    destination = f"#{channel_name}"
    channel = find_text_channel_by_name(guild, channel_name)
    if channel is None:
        logger.debug("[NOTIFY] No #%s channel in guild %s", channel_name, getattr(guild, "id", "?"))
        return NotificationOutcome.failed(destination, "channel not found")
    try:
        await channel.send(embed=embed)
    except asyncio.CancelledError:
        raise
    except discord.Forbidden:
        logger.warning("[NOTIFY] Missing permission to post in #%s", channel_name)
        return NotificationOutcome.failed(destination, "forbidden")
    except Exception as exc:
        logger.warning("[NOTIFY] Failed to post in #%s: %s", channel_name, exc)
        return NotificationOutcome.failed(destination, str(exc) or type(exc).__name__)
    return NotificationOutcome.ok(destination)
