"""
Database schema initialization.

Creates the audit tables (moderation logs and content flags) plus the small
set of supporting tables the moderation pipeline reads: users, gallery
artworks, guilds, roles and role assignments, and guild statistics.
"""

import aiosqlite
from modwatch.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates tables, indexes and the schema version marker."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create all tables and indexes if they do not exist yet.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized (version %d)", SCHEMA_VERSION)

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        """Create all required database tables."""
        await db.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                username TEXT,
                avatar TEXT
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS artworks (
                id TEXT PRIMARY KEY,
                user_id TEXT REFERENCES users(id) ON DELETE SET NULL,
                title TEXT,
                published INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS discord_guilds (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                icon TEXT,
                member_count INTEGER NOT NULL DEFAULT 0,
                online_count INTEGER NOT NULL DEFAULT 0,
                messages_per_min REAL NOT NULL DEFAULT 0,
                updated_at TEXT NOT NULL
            )
        """)

        # Permissions are decimal strings: the bitmask does not fit in 53 bits
        await db.execute("""
            CREATE TABLE IF NOT EXISTS discord_roles (
                id TEXT PRIMARY KEY,
                guild_id TEXT NOT NULL,
                name TEXT NOT NULL,
                permissions TEXT NOT NULL DEFAULT '0'
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS user_discord_roles (
                user_id TEXT NOT NULL,
                role_id TEXT NOT NULL REFERENCES discord_roles(id) ON DELETE CASCADE,
                guild_id TEXT NOT NULL,
                PRIMARY KEY (user_id, role_id)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS guild_stats (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id TEXT NOT NULL,
                member_count INTEGER NOT NULL,
                online_count INTEGER NOT NULL,
                message_count INTEGER NOT NULL,
                timestamp TEXT NOT NULL
            )
        """)

        # Append-only: no code path updates or deletes these rows
        await db.execute("""
            CREATE TABLE IF NOT EXISTS moderation_logs (
                id TEXT PRIMARY KEY,
                guild_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                moderator_id TEXT NOT NULL,
                action TEXT NOT NULL CHECK (action IN ('WARN', 'MUTE', 'KICK', 'BAN', 'UNBAN', 'UNMUTE')),
                reason TEXT,
                duration INTEGER,
                expires_at TEXT,
                created_at TEXT NOT NULL,
                CHECK ((duration IS NULL) = (expires_at IS NULL))
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS moderation_flags (
                id TEXT PRIMARY KEY,
                artwork_id TEXT REFERENCES artworks(id) ON DELETE SET NULL,
                message_id TEXT,
                content TEXT NOT NULL,
                flag_type TEXT NOT NULL CHECK (flag_type IN (
                    'HATE_SPEECH', 'HARASSMENT', 'SPAM', 'NSFW', 'VIOLENCE', 'SELF_HARM', 'OTHER'
                )),
                severity REAL NOT NULL CHECK (severity >= 0.0 AND severity <= 1.0),
                api_response TEXT NOT NULL DEFAULT '{}',
                resolved INTEGER NOT NULL DEFAULT 0,
                resolved_by TEXT,
                resolved_at TEXT,
                created_at TEXT NOT NULL,
                CHECK (resolved = 1 OR (resolved_by IS NULL AND resolved_at IS NULL))
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        """Create indexes for the queue, audit and permission lookups."""
        await db.execute("CREATE INDEX IF NOT EXISTS idx_moderation_logs_user ON moderation_logs(guild_id, user_id, created_at DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_moderation_flags_queue ON moderation_flags(resolved, flag_type, created_at DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_moderation_flags_artwork ON moderation_flags(artwork_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_user_discord_roles_lookup ON user_discord_roles(user_id, guild_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_discord_roles_guild ON discord_roles(guild_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_guild_stats_guild ON guild_stats(guild_id, timestamp DESC)")

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
