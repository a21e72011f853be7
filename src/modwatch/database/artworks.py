"""
Gallery artwork and uploader rows referenced by content flags.

The gallery web application owns these rows. modwatch reads them through the
flag queue joins and changes only the publish state, when a flag is resolved
inside ``ModerationFlagRepository.mark_resolved``. The write helpers here are
used to seed a store, which the test suite does; nothing in the bot or the API
calls them.
"""

from __future__ import annotations

from datetime import datetime

from modwatch.datatypes.flag_datatypes import ArtworkSummary, UploaderSummary
from modwatch.database.db_codec import to_db_timestamp
from modwatch.database.db_connection import ConnectionManager
from modwatch.util.logger import get_logger

logger = get_logger("database_artworks")


class ArtworkRepository:
    """Minimal access to ``artworks``/``users``: registration and publish state."""

    def __init__(self, connection: ConnectionManager):
        self._connection = connection

    async def upsert_user(self, user_id: str, username: str | None = None, avatar: str | None = None) -> None:
        async with self._connection.transaction() as db:
            await db.execute(
                """
                INSERT INTO users (id, username, avatar) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET username = excluded.username, avatar = excluded.avatar
                """,
                (user_id, username, avatar),
            )

    async def create(
        self,
        artwork_id: str,
        *,
        user_id: str | None,
        title: str | None,
        created_at: datetime,
        published: bool = True,
    ) -> None:
        async with self._connection.transaction() as db:
            await db.execute(
                "INSERT INTO artworks (id, user_id, title, published, created_at) VALUES (?, ?, ?, ?, ?)",
                (artwork_id, user_id, title, 1 if published else 0, to_db_timestamp(created_at)),
            )

    async def get(self, artwork_id: str) -> ArtworkSummary | None:
        async with self._connection.read() as db:
            cursor = await db.execute(
                """
                SELECT a.id, a.title, a.published, u.id AS uploader_id, u.username, u.avatar
                FROM artworks a LEFT JOIN users u ON u.id = a.user_id
                WHERE a.id = ?
                """,
                (artwork_id,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        uploader = UploaderSummary(row["uploader_id"], row["username"], row["avatar"]) if row["uploader_id"] else None
        return ArtworkSummary(id=row["id"], title=row["title"], published=bool(row["published"]), user=uploader)
