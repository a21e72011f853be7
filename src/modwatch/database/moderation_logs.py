"""
Moderation action log storage.

The table is an append-only audit trail: this repository only inserts and
reads. There is no update or delete operation.
"""

import time
from datetime import datetime
from typing import Dict, List

import aiosqlite

from modwatch.datatypes.action_datatypes import ActionType, ModerationLog
from modwatch.datatypes.discord_datatypes import GuildID, UserID
from modwatch.database.db_codec import from_db_timestamp, to_db_timestamp
from modwatch.database.db_connection import ConnectionManager
from modwatch.util.logger import get_logger

logger = get_logger("database_moderation_logs")


def _row_to_log(row: aiosqlite.Row) -> ModerationLog:
    return ModerationLog(
        id=row["id"],
        guild_id=GuildID(row["guild_id"]),
        user_id=UserID(row["user_id"]),
        moderator_id=UserID(row["moderator_id"]),
        action=ActionType(row["action"]),
        reason=row["reason"],
        duration=row["duration"],
        expires_at=from_db_timestamp(row["expires_at"]),
        created_at=from_db_timestamp(row["created_at"]),
    )


class ModerationLogRepository:
    """Insert and query ``moderation_logs`` rows."""

    def __init__(self, connection: ConnectionManager):
        self._connection = connection

    async def create(self, entry: ModerationLog) -> ModerationLog:
        """
        Persist one audit record.

        Args:
            entry: The record to store; its id must be new.

        Returns:
            The stored record.
        """
        start_time = time.perf_counter()
        async with self._connection.transaction() as db:
            await db.execute(
                """
                INSERT INTO moderation_logs
                    (id, guild_id, user_id, moderator_id, action, reason, duration, expires_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    str(entry.guild_id),
                    str(entry.user_id),
                    str(entry.moderator_id),
                    entry.action.value,
                    entry.reason,
                    entry.duration,
                    to_db_timestamp(entry.expires_at),
                    to_db_timestamp(entry.created_at),
                ),
            )

        logger.debug(
            "[MODERATION LOG] Logged %s on user %s in guild %s by %s (%.2fms)",
            entry.action.value,
            entry.user_id,
            entry.guild_id,
            entry.moderator_id,
            (time.perf_counter() - start_time) * 1000,
        )
        return entry

    async def get(self, log_id: str) -> ModerationLog | None:
        async with self._connection.read() as db:
            cursor = await db.execute("SELECT * FROM moderation_logs WHERE id = ?", (log_id,))
            row = await cursor.fetchone()
        return _row_to_log(row) if row else None

    async def list_for_user(self, guild_id: GuildID, user_id: UserID, limit: int = 50) -> List[ModerationLog]:
        """Return a member's history in a guild, newest first."""
        async with self._connection.read() as db:
            cursor = await db.execute(
                """
                SELECT * FROM moderation_logs
                WHERE guild_id = ? AND user_id = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
                """,
                (str(guild_id), str(user_id), limit),
            )
            rows = await cursor.fetchall()
        return [_row_to_log(row) for row in rows]

    async def count(self, guild_id: GuildID | None = None) -> int:
        async with self._connection.read() as db:
            if guild_id is None:
                cursor = await db.execute("SELECT COUNT(*) FROM moderation_logs")
            else:
                cursor = await db.execute("SELECT COUNT(*) FROM moderation_logs WHERE guild_id = ?", (str(guild_id),))
            row = await cursor.fetchone()
        return row[0] if row else 0

    async def count_by_action(self, guild_id: GuildID, since: datetime | None = None) -> Dict[ActionType, int]:
        """Number of records per action in a guild, optionally from ``since`` on."""
        async with self._connection.read() as db:
            cursor = await db.execute(
                """
                SELECT action, COUNT(*) AS total FROM moderation_logs
                WHERE guild_id = ? AND (? IS NULL OR created_at >= ?)
                GROUP BY action
                """,
                (str(guild_id), to_db_timestamp(since), to_db_timestamp(since)),
            )
            rows = await cursor.fetchall()
        return {ActionType(row["action"]): row["total"] for row in rows}
