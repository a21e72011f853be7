"""
Guild roles and member role assignments.

Mirrors just enough of Discord's role model for the permission lookup used by
the review queue: each role's permission bitmask (as a decimal string) and
which members hold it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from modwatch.datatypes.discord_datatypes import GuildID, RoleID, UserID
from modwatch.database.db_connection import ConnectionManager
from modwatch.util.logger import get_logger

logger = get_logger("database_roles")


@dataclass(slots=True, frozen=True)
class RoleRecord:
    id: RoleID
    guild_id: GuildID
    name: str
    permissions: str


class RoleRepository:
    """Read and synchronise ``discord_roles`` and ``user_discord_roles``."""

    def __init__(self, connection: ConnectionManager):
        self._connection = connection

    async def upsert_role(self, role: RoleRecord) -> None:
        async with self._connection.transaction() as db:
            await db.execute(
                """
                INSERT INTO discord_roles (id, guild_id, name, permissions) VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET name = excluded.name, permissions = excluded.permissions
                """,
                (str(role.id), str(role.guild_id), role.name, role.permissions),
            )

    async def delete_role(self, role_id: RoleID) -> None:
        async with self._connection.transaction() as db:
            await db.execute("DELETE FROM user_discord_roles WHERE role_id = ?", (str(role_id),))
            await db.execute("DELETE FROM discord_roles WHERE id = ?", (str(role_id),))

    async def replace_guild_roles(self, guild_id: GuildID, roles: Iterable[RoleRecord]) -> int:
        """Make the stored roles of a guild match ``roles`` exactly."""
        records = list(roles)
        async with self._connection.transaction() as db:
            await db.execute("DELETE FROM user_discord_roles WHERE guild_id = ?", (str(guild_id),))
            await db.execute("DELETE FROM discord_roles WHERE guild_id = ?", (str(guild_id),))
            await db.executemany(
                "INSERT INTO discord_roles (id, guild_id, name, permissions) VALUES (?, ?, ?, ?)",
                [(str(r.id), str(guild_id), r.name, r.permissions) for r in records],
            )
        return len(records)

    async def set_member_roles(self, guild_id: GuildID, user_id: UserID, role_ids: Iterable[RoleID]) -> None:
        """Replace a member's role assignments in a guild.

        Role ids unknown to ``discord_roles`` are skipped.
        """
        async with self._connection.transaction() as db:
            await db.execute(
                "DELETE FROM user_discord_roles WHERE guild_id = ? AND user_id = ?",
                (str(guild_id), str(user_id)),
            )
            await db.executemany(
                """
                INSERT OR IGNORE INTO user_discord_roles (user_id, role_id, guild_id)
                SELECT ?, id, ? FROM discord_roles WHERE id = ? AND guild_id = ?
                """,
                [(str(user_id), str(guild_id), str(role_id), str(guild_id)) for role_id in role_ids],
            )

    async def get_member_permission_strings(self, user_id: UserID, guild_id: GuildID | None) -> List[str]:
        """Return the permission bitmask of every role the member holds.

        With ``guild_id`` None, roles from every synchronised guild count.
        """
        query = """
            SELECT r.permissions
            FROM user_discord_roles ur
            JOIN discord_roles r ON r.id = ur.role_id
            WHERE ur.user_id = ?
        """
        params = [str(user_id)]
        if guild_id is not None:
            query += " AND ur.guild_id = ?"
            params.append(str(guild_id))
        async with self._connection.read() as db:
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()
        return [row["permissions"] for row in rows]
