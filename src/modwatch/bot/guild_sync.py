"""Copy guild, role and member-role data from Discord into the audit store.

The review queue has no Discord connection of its own; it decides who may
moderate from the rows written here.
"""

from __future__ import annotations

from typing import Any

from modwatch.database.database import Database
from modwatch.database.roles import RoleRecord
from modwatch.datatypes.discord_datatypes import GuildID, RoleID, UserID
from modwatch.util.logger import get_logger

logger = get_logger("guild_sync")


def role_to_record(role: Any) -> RoleRecord:
    return RoleRecord(
        id=RoleID.from_role(role),
        guild_id=GuildID.from_guild(role.guild),
        name=role.name,
        permissions=str(role.permissions.value),
    )


def member_role_ids(member: Any) -> list[RoleID]:
    return [RoleID.from_role(role) for role in getattr(member, "roles", [])]


async def register_guild(database: Database, guild: Any) -> None:
    icon = getattr(guild, "icon", None)
    await database.guilds.upsert_guild(
        GuildID.from_guild(guild),
        guild.name,
        str(icon.url) if icon is not None else None,
        guild.member_count or 0,
    )


async def sync_member_roles(database: Database, member: Any) -> None:
    await database.roles.set_member_roles(
        GuildID.from_guild(member.guild),
        UserID.from_user(member),
        member_role_ids(member),
    )


async def sync_guild(database: Database, guild: Any) -> int:
    """Register ``guild`` and replace its stored roles and assignments.

    Returns:
        Number of members whose roles were written.
    """
    guild_id = GuildID.from_guild(guild)
    await register_guild(database, guild)
    role_count = await database.roles.replace_guild_roles(guild_id, [role_to_record(r) for r in guild.roles])

    synced = 0
    for member in guild.members:
        if getattr(member, "bot", False):
            continue
        await sync_member_roles(database, member)
        synced += 1

    logger.info("[GUILD SYNC] Synced guild %s: %d roles, %d members", guild.name, role_count, synced)
    return synced
