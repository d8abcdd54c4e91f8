"""Database migration utilities for the task store

- Versions are never hardcoded: they are scanned from migrations/vNN_*.sql
- Each migration file records its own row in schema_version
- The chain from the current to the latest version is built automatically
"""

import logging
import re
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .constants import BUSY_TIMEOUT_SECONDS, SCHEMA_VERSION_TABLE

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

# Version of a database that has schema_version but no migration applied yet
BASE_VERSION = "0.0.0"

OUTCOME_APPLIED = "applied"
OUTCOME_ALREADY_CURRENT = "already_current"


class MigrationError(Exception):
    """Migration failure with the version step it happened on"""

    def __init__(self, version_from: str, version_to: str, error: str, hint: str = ""):
        self.version_from = version_from
        self.version_to = version_to
        self.error = error
        self.hint = hint

        message = f"Migration v{version_from} -> v{version_to} failed: {error}"
        if hint:
            message += f" (hint: {hint})"
        super().__init__(message)


@dataclass(frozen=True)
class MigrationResult:
    outcome: str
    from_version: str
    to_version: str
    applied: int = 0


def _version_key(version: str) -> Tuple[int, ...]:
    return tuple(map(int, version.split(".")))


def get_current_version(conn: sqlite3.Connection) -> Optional[str]:
    """
    Get current schema version from database

    Uses semantic version sorting because several versions can share the same
    applied_at timestamp.

    Returns:
        Latest applied version, BASE_VERSION when none is applied yet, or None
        when the schema_version table does not exist
    """
    exists = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
        (SCHEMA_VERSION_TABLE,),
    ).fetchone()
    if exists is None:
        return None

    results = conn.execute(f"SELECT version FROM {SCHEMA_VERSION_TABLE}").fetchall()

    if not results:
        return BASE_VERSION

    versions = [row[0] for row in results]
    versions.sort(key=_version_key)
    return versions[-1]


def parse_migration_version(filename: str) -> Optional[Tuple[str, str]]:
    """
    Parse migration filename to extract version number

    Examples:
        v01_create_tasks.sql -> ("0.1.0", "Create Tasks")
        v02_tasks_done_index.sql -> ("0.2.0", "Tasks Done Index")

    Returns:
        (version, description) or None if not a migration file
    """
    match = re.match(r"^v(\d+)_(.+)\.sql$", filename)
    if match:
        minor = int(match.group(1))
        description = match.group(2).replace("_", " ").title()
        return (f"0.{minor}.0", description)
    return None


def scan_available_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> List[Tuple[str, str, Path]]:
    """
    Scan migrations directory to discover available migrations

    Returns:
        List of (version, description, filepath) sorted by version
    """
    migrations = []

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return []

    for file in migrations_dir.iterdir():
        if file.suffix == ".sql" and file.name.startswith("v"):
            parsed = parse_migration_version(file.name)
            if parsed:
                version, description = parsed
                migrations.append((version, description, file))

    migrations.sort(key=lambda m: _version_key(m[0]))
    return migrations


def get_latest_version(migrations_dir: Path = MIGRATIONS_DIR) -> Optional[str]:
    migrations = scan_available_migrations(migrations_dir)
    return migrations[-1][0] if migrations else None


def build_migration_chain(
    migrations_dir: Path,
    from_version: str,
    to_version: str,
) -> List[Tuple[str, str, Path, str]]:
    """
    Build migration chain from current version to target version

    Returns:
        List of (from_ver, to_ver, filepath, description)

    Raises:
        MigrationError: If no valid migration path exists
    """
    all_migrations = scan_available_migrations(migrations_dir)
    versions = [m[0] for m in all_migrations]

    if from_version not in versions and from_version != BASE_VERSION:
        raise MigrationError(
            version_from=from_version,
            version_to=to_version,
            error=f"Starting version v{from_version} not found in migration chain",
            hint=f"Available versions: {', '.join(versions)}",
        )

    if to_version not in versions:
        raise MigrationError(
            version_from=from_version,
            version_to=to_version,
            error=f"Target version v{to_version} not found in migration chain",
            hint=f"Available versions: {', '.join(versions)}",
        )

    chain = []
    prev_version = from_version
    from_parts = _version_key(from_version)
    to_parts = _version_key(to_version)

    for version, description, filepath in all_migrations:
        if from_parts < _version_key(version) <= to_parts:
            chain.append((prev_version, version, filepath, description))
            prev_version = version

    if not chain:
        raise MigrationError(
            version_from=from_version,
            version_to=to_version,
            error="No migration path found",
        )

    return chain


def execute_migration_file(
    conn: sqlite3.Connection,
    filepath: Path,
    from_version: str,
    to_version: str,
    description: str,
) -> None:
    """
    Execute a single migration SQL file

    Raises:
        MigrationError: If migration fails
    """
    logger.info(f"Executing migration: {filepath.name} ({description})")

    try:
        migration_sql = filepath.read_text(encoding="utf-8")
        conn.executescript(migration_sql)
        conn.commit()
        logger.info(f"Migration v{from_version} -> v{to_version} completed")

    except sqlite3.IntegrityError as e:
        conn.rollback()
        if f"UNIQUE constraint failed: {SCHEMA_VERSION_TABLE}.version" in str(e):
            logger.warning(f"Version {to_version} already exists - skipping")
        else:
            raise MigrationError(
                version_from=from_version,
                version_to=to_version,
                error=str(e),
                hint="Constraint violation; the migration may have been partially applied",
            ) from e
    except sqlite3.Error as e:
        conn.rollback()
        logger.error(f"Migration failed: {e}")
        raise MigrationError(
            version_from=from_version,
            version_to=to_version,
            error=str(e),
            hint=f"Check the SQL in {filepath.name} and the database state",
        ) from e


def migrate(
    db_path: Path,
    target_version: Optional[str] = None,
    migrations_dir: Path = MIGRATIONS_DIR,
) -> MigrationResult:
    """
    Run database migrations from current version to target version

    Args:
        db_path: Path to database file (must already contain schema_version)
        target_version: Target schema version (None = latest available)
        migrations_dir: Directory holding vNN_*.sql files

    Returns:
        MigrationResult with outcome "applied" or "already_current"

    Raises:
        MigrationError: If migration fails or path not found
    """
    if target_version is None:
        target_version = get_latest_version(migrations_dir)
        if target_version is None:
            raise MigrationError(
                version_from="?",
                version_to="?",
                error="No migration files found",
                hint=str(migrations_dir),
            )

    try:
        conn = sqlite3.connect(str(db_path), timeout=BUSY_TIMEOUT_SECONDS)
    except sqlite3.Error as e:
        raise MigrationError("?", target_version, f"Cannot open database: {e}") from e

    try:
        try:
            current_version = get_current_version(conn)
        except sqlite3.Error as e:
            raise MigrationError("?", target_version, f"Cannot read schema version: {e}") from e
        if current_version is None:
            raise MigrationError(
                version_from="?",
                version_to=target_version,
                error=f"{SCHEMA_VERSION_TABLE} table missing",
                hint="Initialise the database first (todolist.store.init_db)",
            )

        if current_version == target_version:
            logger.info(f"Schema already at v{target_version}, nothing to migrate")
            return MigrationResult(OUTCOME_ALREADY_CURRENT, current_version, target_version)

        if _version_key(current_version) > _version_key(target_version):
            raise MigrationError(
                version_from=current_version,
                version_to=target_version,
                error="Downgrade not supported",
            )

        chain = build_migration_chain(migrations_dir, current_version, target_version)

        logger.info(
            f"Migration plan for {db_path.name}: v{current_version} -> v{target_version} "
            f"({len(chain)} steps)"
        )
        for i, (from_v, to_v, _, desc) in enumerate(chain, 1):
            logger.info(f"  {i}. v{from_v} -> v{to_v}: {desc}")

        for from_v, to_v, filepath, desc in chain:
            execute_migration_file(conn, filepath, from_v, to_v, desc)

        final_version = get_current_version(conn)
        if final_version != target_version:
            raise MigrationError(
                version_from=current_version,
                version_to=target_version,
                error=f"Migration stopped at v{final_version}",
                hint="A migration script did not record its version in schema_version",
            )

        logger.info(f"Migration complete: v{final_version} ({len(chain)} applied)")
        return MigrationResult(OUTCOME_APPLIED, current_version, final_version, len(chain))

    finally:
        conn.close()


def list_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> Dict[str, Any]:
    """
    List all available migrations

    Returns:
        {'latest': '0.2.0', 'count': 2, 'migrations': [(version, description, filepath), ...]}
    """
    migrations = scan_available_migrations(migrations_dir)
    return {
        "latest": migrations[-1][0] if migrations else None,
        "count": len(migrations),
        "migrations": migrations,
    }
