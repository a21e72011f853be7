"""
Audit store for modwatch.

SQLite (via aiosqlite) holding the moderation action log, content flags and
the supporting guild/role/artwork tables.

Public API:
    - Database: coordinator owning the connection and the repositories
"""

from modwatch.database.database import Database

__all__ = ["Database"]
