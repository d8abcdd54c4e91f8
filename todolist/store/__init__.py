"""Store module - SQLite database management"""

import logging
import sqlite3
from pathlib import Path
from typing import Union

from .constants import BUSY_TIMEOUT_SECONDS, SCHEMA_VERSION_TABLE
from .migrations import MigrationError, MigrationResult, migrate

logger = logging.getLogger(__name__)

__all__ = [
    "connect",
    "init_db",
    "ensure_migrations",
    "MigrationError",
    "MigrationResult",
]


def connect(db_path: Union[str, Path], *, create: bool = False) -> sqlite3.Connection:
    """
    Open a connection to the database file

    The file is opened read-write only: a missing or unreadable database is an
    error instead of being silently recreated empty. Pass ``create=True`` to
    allow creating it (used by ``init_db``).

    Args:
        db_path: Path to the SQLite file
        create: Create the file if it does not exist

    Returns:
        Connection with ``sqlite3.Row`` row factory
    """
    mode = "rwc" if create else "rw"
    uri = f"{Path(db_path).resolve().as_uri()}?mode={mode}"
    conn = sqlite3.connect(uri, uri=True, timeout=BUSY_TIMEOUT_SECONDS, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Union[str, Path]) -> Path:
    """
    Create the database file with the schema_version table

    Tables themselves are created by migrations. Safe to call on an existing
    database.

    Returns:
        Path to the database file
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    if not db_path.exists():
        logger.info(f"Creating new database: {db_path}")

    conn = connect(db_path, create=True)
    try:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {SCHEMA_VERSION_TABLE} (
                version TEXT PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                description TEXT
            )
        """)
        conn.commit()
    finally:
        conn.close()

    return db_path


def ensure_migrations(db_path: Union[str, Path]) -> MigrationResult:
    """
    Apply every pending migration

    Called at startup so the schema is always current before traffic is served.

    Raises:
        MigrationError: migration failed
    """
    db_path = Path(db_path)
    try:
        result = migrate(db_path)
    except Exception as e:
        logger.error(f"Migration failed: {e}", exc_info=True)
        raise
    if result.applied > 0:
        logger.info(f"Applied {result.applied} database migrations")
    return result
