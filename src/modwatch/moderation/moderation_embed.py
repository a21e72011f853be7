"""
Embed builders for moderation notifications and confirmations.
"""

from __future__ import annotations

import datetime
from typing import Any

import discord

from modwatch.datatypes.action_datatypes import ActionType
from modwatch.datatypes.discord_datatypes import display_tag
from modwatch.datatypes.flag_datatypes import FlagType
from modwatch.util.discord_utils import truncate_field

SUCCESS_COLOR = 0x00FF00
REMOVAL_COLOR = 0xFF0000

_DM_STYLES = {
    ActionType.BAN: (0x8B0000, "You have been banned", "You have been banned from **{guild}**"),
    ActionType.KICK: (0xFF0000, "You have been kicked", "You have been kicked from **{guild}**"),
    ActionType.MUTE: (0xFF6B6B, "You have been muted", "You have been muted in **{guild}**"),
    ActionType.WARN: (0xFFFF00, "Warning", "You have been warned in **{guild}**"),
}

_PAST_TENSE = {
    ActionType.BAN: "banned",
    ActionType.KICK: "kicked",
    ActionType.MUTE: "muted",
    ActionType.WARN: "warned",
    ActionType.UNBAN: "unbanned",
    ActionType.UNMUTE: "unmuted",
}

APPEAL_TEXT = "If you believe this ban was made in error, you can appeal through our website."
REMOVAL_NOTE = "If you believe this was a mistake, please contact a moderator."


def past_tense(action: ActionType) -> str:
    return _PAST_TENSE[action]


def relative_timestamp(moment: datetime.datetime) -> str:
    """Discord's ``<t:…:R>`` markup, rendered client-side as "in 5 minutes"."""
    return f"<t:{int(moment.timestamp())}:R>"


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def build_action_dm_embed(
    action: ActionType,
    guild_name: str,
    reason: str,
    moderator_tag: str,
    duration_minutes: int | None = None,
    expires_at: datetime.datetime | None = None,
) -> discord.Embed:
    """Direct message sent to the member an action was taken against."""
    color, title, description = _DM_STYLES[action]
    embed = discord.Embed(
        title=title,
        description=description.format(guild=guild_name),
        color=color,
        timestamp=_now(),
    )
    if action is ActionType.MUTE and duration_minutes is not None:
        embed.add_field(name="Duration", value=f"{duration_minutes} minutes", inline=True)
        if expires_at is not None:
            embed.add_field(name="Expires", value=relative_timestamp(expires_at), inline=True)
    embed.add_field(name="Reason", value=truncate_field(reason), inline=False)
    embed.add_field(name="Moderator", value=moderator_tag, inline=False)
    if action is ActionType.BAN:
        embed.add_field(name="Appeal", value=APPEAL_TEXT, inline=False)
    return embed


def build_action_confirmation_embed(
    action: ActionType,
    target: Any,
    moderator_tag: str,
    reason: str,
    duration_minutes: int | None = None,
    expires_at: datetime.datetime | None = None,
    delete_message_days: int | None = None,
) -> discord.Embed:
    """Summary shown to the moderator once an action went through."""
    target_tag = display_tag(target)
    embed = discord.Embed(
        title=f"User {past_tense(action).capitalize()}",
        description=f"Successfully {past_tense(action)} {target_tag}",
        color=SUCCESS_COLOR,
        timestamp=_now(),
    )
    embed.add_field(name="User", value=f"{target_tag} ({target.id})", inline=True)
    if action is ActionType.MUTE and duration_minutes is not None:
        embed.add_field(name="Duration", value=f"{duration_minutes} minutes", inline=True)
        if expires_at is not None:
            embed.add_field(name="Expires", value=relative_timestamp(expires_at), inline=True)
    embed.add_field(name="Moderator", value=moderator_tag, inline=True)
    if action is ActionType.BAN:
        deleted = f"{delete_message_days} days" if delete_message_days else "None"
        embed.add_field(name="Messages Deleted", value=deleted, inline=True)
    embed.add_field(name="Reason", value=truncate_field(reason), inline=False)
    return embed


def build_removal_dm_embed(guild_name: str, category: FlagType, content: str) -> discord.Embed:
    """Direct message telling an author their message was removed."""
    embed = discord.Embed(
        title="Message Removed",
        description=(
            f"Your message in **{guild_name}** was automatically removed "
            "for violating community guidelines."
        ),
        color=REMOVAL_COLOR,
        timestamp=_now(),
    )
    embed.add_field(name="Reason", value=f"{category.value} content detected", inline=False)
    embed.add_field(name="Message", value=truncate_field(content) or "(empty)", inline=False)
    embed.add_field(name="Note", value=REMOVAL_NOTE, inline=False)
    return embed


def build_auto_moderation_log_embed(
    author: Any,
    channel_id: int,
    category: FlagType,
    severity: float,
    content: str,
) -> discord.Embed:
    """Post for the moderation log channel describing an automatic removal."""
    embed = discord.Embed(
        title="Auto-Moderation: Message Removed",
        color=REMOVAL_COLOR,
        timestamp=_now(),
    )
    embed.add_field(name="User", value=f"{display_tag(author)} ({author.id})", inline=True)
    embed.add_field(name="Channel", value=f"<#{channel_id}>", inline=True)
    embed.add_field(name="Reason", value=category.value, inline=True)
    embed.add_field(name="Severity", value=f"{severity * 100:.0f}%", inline=True)
    embed.add_field(name="Content", value=truncate_field(content) or "(empty)", inline=False)
    return embed
