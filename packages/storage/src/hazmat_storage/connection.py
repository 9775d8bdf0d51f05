"""Database connection management with aiosqlite.

Provides:
- Connection configuration
- Connection lifecycle management
- Schema creation
- Health checks
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import aiosqlite
from hazmat_common import StorageError, get_logger
from hazmat_common.config import get_settings

logger = get_logger(__name__)

MEMORY_DATABASE = ":memory:"

SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    content TEXT NOT NULL,
    weight INTEGER NOT NULL CHECK (weight BETWEEN 0 AND 100),
    type TEXT NOT NULL,
    timestamp TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_documents_timestamp ON documents(timestamp DESC);

CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


@dataclass
class DatabaseConfig:
    """SQLite connection configuration.

    Attributes:
        path: Database file path, or ":memory:" (default: from Settings)
    """

    path: str = field(default_factory=lambda: get_settings().database_path)

    @property
    def is_memory(self) -> bool:
        return self.path == MEMORY_DATABASE


# Global connection (initialized once)
_connection: Optional[aiosqlite.Connection] = None


async def get_connection(config: Optional[DatabaseConfig] = None) -> aiosqlite.Connection:
    """Get or create the global connection.

    The schema is created on first connect.

    Args:
        config: Database configuration (default: DatabaseConfig())

    Returns:
        aiosqlite connection

    Raises:
        StorageError: If the database cannot be opened

    Example:
        >>> conn = await get_connection(DatabaseConfig(path="data/hazmat_kb.db"))
        >>> async with conn.execute("SELECT 1") as cursor:
        ...     row = await cursor.fetchone()
    """
    global _connection

    if _connection is not None:
        return _connection

    if config is None:
        config = DatabaseConfig()

    try:
        logger.info("opening_database", path=config.path)

        if not config.is_memory:
            Path(config.path).parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(config.path)
        conn.row_factory = aiosqlite.Row
        await conn.executescript(SCHEMA)
        await conn.commit()

        _connection = conn
        logger.info("database_opened", path=config.path)
        return _connection

    except Exception as e:
        logger.error("database_open_failed", path=config.path, error=str(e))
        raise StorageError(f"Failed to open database: {e}") from e


async def close_connection() -> None:
    """Close the global connection.

    Should be called during application shutdown.
    """
    global _connection

    if _connection is not None:
        logger.info("closing_database")
        try:
            await _connection.close()
        except Exception as e:
            logger.warning("database_close_warning", error=str(e))
        finally:
            _connection = None
            logger.info("database_closed")


async def check_connection_health() -> bool:
    """Check database connection health.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        conn = await get_connection()
        async with conn.execute("SELECT 1") as cursor:
            row = await cursor.fetchone()
        return row is not None and row[0] == 1
    except Exception as e:
        logger.error("health_check_failed", error=str(e))
        return False
