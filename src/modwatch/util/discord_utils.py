"""
discord_utils.py
================

Low-level Discord helpers for modwatch: permission checks on live guild
objects, role-hierarchy checks, message deletion and text truncation. Nothing
here keeps state.
"""

from __future__ import annotations

from typing import Any

import discord

from modwatch.datatypes.outcome_datatypes import NotificationOutcome
from modwatch.util.logger import get_logger

logger = get_logger("discord_utils")

# Discord rejects embed field values longer than this
EMBED_FIELD_LIMIT = 1024
_ELLIPSIS = "..."


def truncate_field(text: str, limit: int = EMBED_FIELD_LIMIT) -> str:
    """Shorten ``text`` to fit an embed field, marking the cut with ``...``."""
    if len(text) <= limit:
        return text
    return text[: limit - len(_ELLIPSIS)] + _ELLIPSIS


def is_ignored_author(author: Any) -> bool:
    """True for automated accounts, which moderation never acts on."""
    return bool(getattr(author, "bot", False))


def member_has_permission(member: Any, permission_name: str) -> bool:
    """Check a live guild permission (e.g. ``manage_messages``) on a member.

    Users that are not guild members have no guild permissions.
    """
    permissions = getattr(member, "guild_permissions", None)
    if permissions is None:
        return False
    return bool(getattr(permissions, permission_name, False))


def has_permissions(application_context: discord.ApplicationContext, **required_permissions) -> bool:
    """
    Check if the command issuer has all specified permissions in the guild.

    Args:
        application_context: The command context.
        **required_permissions: Permission flags to check.

    Returns:
        bool: True if all permissions are present, False otherwise.
    """
    author = application_context.author
    return all(member_has_permission(author, name) for name in required_permissions)


def bot_can_act_on(guild: Any, member: Any, permission_name: str) -> bool:
    """
    Decide whether the bot may apply an enforcement action to ``member``.

    Mirrors Discord's own rules: the guild owner is untouchable, the bot
    needs the matching permission, and its highest role must sit strictly
    above the member's highest role.

    Args:
        guild: Guild the action happens in.
        member: Target guild member.
        permission_name: Bot permission the action needs (``kick_members``,
            ``ban_members`` or ``moderate_members``).
    """
    me = getattr(guild, "me", None)
    if me is None:
        return False
    if member.id == getattr(guild, "owner_id", None):
        return False
    if member.id == me.id:
        return False
    if not member_has_permission(me, permission_name):
        return False
    if member_has_permission(member, "administrator") and permission_name == "moderate_members":
        # Discord refuses to time out administrators regardless of hierarchy
        return False
    try:
        return me.top_role > member.top_role
    except (AttributeError, TypeError):
        logger.debug("Could not compare roles for member %s", getattr(member, "id", "?"))
        return False


async def safe_delete_message(message: Any) -> NotificationOutcome:
    """
    Attempt to delete a message, reporting rather than raising failures.

    Args:
        message: The message to delete.

    Returns:
        NotificationOutcome describing whether the deletion went through.
    """
    destination = f"message {getattr(message, 'id', '?')}"
    try:
        await message.delete()
        return NotificationOutcome.ok(destination)
    except discord.NotFound:
        logger.debug("Message %s was already deleted", getattr(message, "id", "?"))
        return NotificationOutcome.failed(destination, "not found")
    except discord.Forbidden:
        logger.warning("No permission to delete message %s", getattr(message, "id", "?"))
        return NotificationOutcome.failed(destination, "forbidden")
    except Exception as exc:
        logger.warning("Error deleting message %s: %s", getattr(message, "id", "?"), exc)
        return NotificationOutcome.failed(destination, str(exc) or type(exc).__name__)


def find_text_channel_by_name(guild: Any, name: str) -> Any | None:
    """Return the first text channel of ``guild`` whose name is exactly ``name``."""
    for channel in getattr(guild, "text_channels", []) or []:
        if getattr(channel, "name", None) == name:
            return channel
    return None
