"""Guild registration and periodic statistics snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List

from modwatch.datatypes.action_datatypes import utcnow
from modwatch.datatypes.discord_datatypes import GuildID
from modwatch.database.db_codec import from_db_timestamp, to_db_timestamp
from modwatch.database.db_connection import ConnectionManager
from modwatch.util.logger import get_logger

logger = get_logger("database_guilds")

# 24 hours of five-minute snapshots
DEFAULT_STATS_HISTORY = 288


@dataclass(slots=True, frozen=True)
class GuildSnapshot:
    guild_id: GuildID
    member_count: int
    online_count: int
    message_count: int
    timestamp: datetime


class GuildRepository:
    """Read/write ``discord_guilds`` and ``guild_stats``."""

    def __init__(self, connection: ConnectionManager):
        self._connection = connection

    async def upsert_guild(self, guild_id: GuildID, name: str, icon: str | None, member_count: int) -> None:
        async with self._connection.transaction() as db:
            await db.execute(
                """
                INSERT INTO discord_guilds (id, name, icon, member_count, updated_at) VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    icon = excluded.icon,
                    member_count = excluded.member_count,
                    updated_at = excluded.updated_at
                """,
                (str(guild_id), name, icon, member_count, to_db_timestamp(utcnow())),
            )
        logger.debug("[GUILDS] Registered guild %s (%s, %d members)", guild_id, name, member_count)

    async def record_stats(self, snapshot: GuildSnapshot, messages_per_min: float) -> None:
        """Update the guild's live counters and append a history row."""
        async with self._connection.transaction() as db:
            await db.execute(
                """
                UPDATE discord_guilds
                SET member_count = ?, online_count = ?, messages_per_min = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    snapshot.member_count,
                    snapshot.online_count,
                    messages_per_min,
                    to_db_timestamp(snapshot.timestamp),
                    str(snapshot.guild_id),
                ),
            )
            await db.execute(
                """
                INSERT INTO guild_stats (guild_id, member_count, online_count, message_count, timestamp)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    str(snapshot.guild_id),
                    snapshot.member_count,
                    snapshot.online_count,
                    snapshot.message_count,
                    to_db_timestamp(snapshot.timestamp),
                ),
            )

    async def get_guild_stats(
        self,
        guild_id: GuildID,
        limit: int = DEFAULT_STATS_HISTORY,
        since: datetime | None = None,
    ) -> Dict[str, Any] | None:
        """Return the guild row with its most recent snapshots, newest first.

        Args:
            guild_id: Guild to read.
            limit: Maximum number of snapshots.
            since: When set, only snapshots taken at or after this instant.
        """
        async with self._connection.read() as db:
            cursor = await db.execute("SELECT * FROM discord_guilds WHERE id = ?", (str(guild_id),))
            guild_row = await cursor.fetchone()
            if guild_row is None:
                return None
            cursor = await db.execute(
                """
                SELECT * FROM guild_stats
                WHERE guild_id = ? AND (? IS NULL OR timestamp >= ?)
                ORDER BY timestamp DESC, id DESC
                LIMIT ?
                """,
                (str(guild_id), to_db_timestamp(since), to_db_timestamp(since), limit),
            )
            stat_rows = await cursor.fetchall()

        stats: List[GuildSnapshot] = [
            GuildSnapshot(
                guild_id=GuildID(row["guild_id"]),
                member_count=row["member_count"],
                online_count=row["online_count"],
                message_count=row["message_count"],
                timestamp=from_db_timestamp(row["timestamp"]),
            )
            for row in stat_rows
        ]
        return {
            "id": guild_row["id"],
            "name": guild_row["name"],
            "icon": guild_row["icon"],
            "member_count": guild_row["member_count"],
            "online_count": guild_row["online_count"],
            "messages_per_min": guild_row["messages_per_min"],
            "updated_at": from_db_timestamp(guild_row["updated_at"]),
            "stats": stats,
        }
