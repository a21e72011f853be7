"""
Audit store coordinator.

The Database class owns the SQLite connection and exposes one repository per
concern:

- logs: append-only moderation action records
- flags: content flags and the review-queue queries
- artworks: gallery artworks referenced by flags
- roles: guild roles and member assignments for permission lookups
- guilds: guild registration and statistics snapshots

Only these repositories write the audit tables.
"""

from __future__ import annotations

from pathlib import Path

from modwatch.database.artworks import ArtworkRepository
from modwatch.database.db_connection import ConnectionManager
from modwatch.database.db_schema import SchemaManager
from modwatch.database.guilds import GuildRepository
from modwatch.database.moderation_flags import ModerationFlagRepository
from modwatch.database.moderation_logs import ModerationLogRepository
from modwatch.database.roles import RoleRepository
from modwatch.util.logger import get_logger

logger = get_logger("database")


class Database:
    """
    Central coordinator for audit store access.

    Lifecycle:
        1. ``await initialize()`` at program startup
        2. use the repository attributes
        3. ``await shutdown()`` at program end
    """

    def __init__(self, db_path: Path):
        """
        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        self._initialized = False

        self.connection = ConnectionManager()
        self.logs = ModerationLogRepository(self.connection)
        self.flags = ModerationFlagRepository(self.connection)
        self.artworks = ArtworkRepository(self.connection)
        self.roles = RoleRepository(self.connection)
        self.guilds = GuildRepository(self.connection)

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> bool:
        """
        Open the connection and create the schema.

        Returns:
            True if initialization succeeded, False otherwise
        """
        if self._initialized:
            logger.debug("[DATABASE] Already initialized, skipping")
            return True

        try:
            await self.connection.open(self.db_path)
            await SchemaManager.initialize_schema(self.connection.connection)
        except Exception as e:
            logger.error("[DATABASE] Database initialization failed: %s", e, exc_info=True)
            await self.connection.close()
            return False

        self._initialized = True
        logger.info("[DATABASE] Database initialized at %s", self.db_path)
        return True

    async def shutdown(self) -> None:
        """Close the connection. Safe to call more than once."""
        if not self._initialized:
            return

        await self.connection.close()
        self._initialized = False
        logger.info("[DATABASE] Database shutdown complete")
