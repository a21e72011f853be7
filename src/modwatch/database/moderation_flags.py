"""
Content flag storage and the review-queue queries.

Flags are inserted by automatic moderation and changed exactly once by a
human decision: resolved, dismissed, or annotated as escalated.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Dict, List, Tuple

import aiosqlite

from modwatch.datatypes.discord_datatypes import MessageID
from modwatch.datatypes.flag_datatypes import (
    ArtworkSummary,
    FlagType,
    ModerationFlag,
    UploaderSummary,
)
from modwatch.database.db_codec import (
    from_db_json,
    from_db_timestamp,
    to_db_json,
    to_db_timestamp,
)
from modwatch.database.db_connection import ConnectionManager
from modwatch.util.logger import get_logger

logger = get_logger("database_moderation_flags")

_FLAG_WITH_ARTWORK = """
    SELECT f.*,
           a.title AS artwork_title,
           a.published AS artwork_published,
           u.id AS uploader_id,
           u.username AS uploader_username,
           u.avatar AS uploader_avatar
    FROM moderation_flags f
    LEFT JOIN artworks a ON a.id = f.artwork_id
    LEFT JOIN users u ON u.id = a.user_id
"""


def _row_to_flag(row: aiosqlite.Row) -> ModerationFlag:
    return ModerationFlag(
        id=row["id"],
        artwork_id=row["artwork_id"],
        message_id=MessageID(row["message_id"]) if row["message_id"] else None,
        content=row["content"],
        flag_type=FlagType(row["flag_type"]),
        severity=row["severity"],
        api_response=from_db_json(row["api_response"]),
        resolved=bool(row["resolved"]),
        resolved_by=row["resolved_by"],
        resolved_at=from_db_timestamp(row["resolved_at"]),
        created_at=from_db_timestamp(row["created_at"]),
    )


def _row_to_artwork(row: aiosqlite.Row) -> ArtworkSummary | None:
    if not row["artwork_id"] or row["artwork_published"] is None:
        return None
    uploader = None
    if row["uploader_id"]:
        uploader = UploaderSummary(
            id=row["uploader_id"],
            username=row["uploader_username"],
            avatar=row["uploader_avatar"],
        )
    return ArtworkSummary(
        id=row["artwork_id"],
        title=row["artwork_title"],
        published=bool(row["artwork_published"]),
        user=uploader,
    )


def _build_filter(resolved: bool, flag_type: FlagType | None) -> Tuple[str, List[Any]]:
    clauses = ["f.resolved = ?"]
    params: List[Any] = [1 if resolved else 0]
    if flag_type is not None:
        clauses.append("f.flag_type = ?")
        params.append(flag_type.value)
    return " WHERE " + " AND ".join(clauses), params


class ModerationFlagRepository:
    """Insert, page through and decide ``moderation_flags`` rows."""

    def __init__(self, connection: ConnectionManager):
        self._connection = connection

    async def create(self, flag: ModerationFlag) -> ModerationFlag:
        async with self._connection.transaction() as db:
            await db.execute(
                """
                INSERT INTO moderation_flags
                    (id, artwork_id, message_id, content, flag_type, severity, api_response,
                     resolved, resolved_by, resolved_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    flag.id,
                    flag.artwork_id,
                    str(flag.message_id) if flag.message_id is not None else None,
                    flag.content,
                    flag.flag_type.value,
                    flag.severity,
                    to_db_json(flag.api_response),
                    1 if flag.resolved else 0,
                    flag.resolved_by,
                    to_db_timestamp(flag.resolved_at),
                    to_db_timestamp(flag.created_at),
                ),
            )
        logger.debug("[MODERATION FLAG] Stored %s flag %s (severity %.2f)", flag.flag_type.value, flag.id, flag.severity)
        return flag

    async def get(self, flag_id: str) -> ModerationFlag | None:
        async with self._connection.read() as db:
            cursor = await db.execute("SELECT * FROM moderation_flags WHERE id = ?", (flag_id,))
            row = await cursor.fetchone()
        return _row_to_flag(row) if row else None

    async def list_page(
        self,
        *,
        resolved: bool,
        flag_type: FlagType | None,
        offset: int,
        limit: int,
    ) -> List[Tuple[ModerationFlag, ArtworkSummary | None]]:
        """Return one page of flags, newest first, each with its artwork summary."""
        start_time = time.perf_counter()
        where, params = _build_filter(resolved, flag_type)
        async with self._connection.read() as db:
            cursor = await db.execute(
                _FLAG_WITH_ARTWORK + where + " ORDER BY f.created_at DESC, f.rowid DESC LIMIT ? OFFSET ?",
                [*params, limit, offset],
            )
            rows = await cursor.fetchall()
        logger.debug("[MODERATION FLAG] Listed %d flags in %.2fms", len(rows), (time.perf_counter() - start_time) * 1000)
        return [(_row_to_flag(row), _row_to_artwork(row)) for row in rows]

    async def count(self, *, resolved: bool, flag_type: FlagType | None) -> int:
        where, params = _build_filter(resolved, flag_type)
        async with self._connection.read() as db:
            cursor = await db.execute("SELECT COUNT(*) FROM moderation_flags f" + where, params)
            row = await cursor.fetchone()
        return row[0] if row else 0

    async def mark_resolved(
        self,
        flag_id: str,
        resolver_id: str,
        resolved_at: datetime,
        *,
        unpublish_artwork: bool = False,
    ) -> bool:
        """
        Set the resolution triple in one statement, optionally unpublishing
        the referenced artwork in the same transaction.

        Returns:
            False if the flag does not exist or was already resolved.
        """
        async with self._connection.transaction() as db:
            cursor = await db.execute(
                """
                UPDATE moderation_flags
                SET resolved = 1, resolved_by = ?, resolved_at = ?
                WHERE id = ? AND resolved = 0
                """,
                (resolver_id, to_db_timestamp(resolved_at), flag_id),
            )
            if cursor.rowcount == 0:
                return False

            if unpublish_artwork:
                await db.execute(
                    """
                    UPDATE artworks SET published = 0
                    WHERE id = (SELECT artwork_id FROM moderation_flags WHERE id = ?)
                    """,
                    (flag_id,),
                )
        return True

    async def merge_api_response(self, flag_id: str, annotation: Dict[str, Any]) -> Dict[str, Any] | None:
        """
        Merge ``annotation`` into the stored classifier payload, keeping
        existing keys unless the annotation overrides them.

        Returns:
            The merged payload, or None if the flag does not exist.
        """
        async with self._connection.transaction() as db:
            cursor = await db.execute("SELECT api_response FROM moderation_flags WHERE id = ?", (flag_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            merged = {**from_db_json(row["api_response"]), **annotation}
            await db.execute(
                "UPDATE moderation_flags SET api_response = ? WHERE id = ?",
                (to_db_json(merged), flag_id),
            )
        return merged
