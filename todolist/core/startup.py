"""Startup gate.

Runs once before any listener opens:

1. create the database file and the schema_version table if missing
2. ping the store
3. apply pending migrations
4. initial resync of the task gauges

Any failure in steps 1-3 raises StartupFatal; the process must not serve.
"""

import logging
import sqlite3

from todolist.config import Settings
from todolist.core.errors import PersistenceError, StartupFatal
from todolist.metrics.registry import MetricsRegistry
from todolist.store import MigrationError, MigrationResult, ensure_migrations, init_db
from todolist.store.migrations import OUTCOME_ALREADY_CURRENT
from todolist.store.task_store import TaskStore

logger = logging.getLogger(__name__)


def run_startup_gate(settings: Settings, metrics: MetricsRegistry) -> TaskStore:
    """
    Prepare the store for traffic

    Returns:
        TaskStore wired to the metrics registry

    Raises:
        StartupFatal: store unreachable or migration failed
    """
    try:
        db_path = init_db(settings.db_path)
    except (OSError, sqlite3.Error) as e:
        raise StartupFatal(f"Cannot open database {settings.db_path}: {e}") from e

    store = TaskStore(db_path, metrics)
    try:
        store.ping()
    except PersistenceError as e:
        raise StartupFatal(f"Database unreachable: {e.message}") from e
    logger.info(f"Successfully connected to database: {db_path}")

    try:
        result: MigrationResult = ensure_migrations(db_path)
    except MigrationError as e:
        raise StartupFatal(f"Migration error: {e}") from e

    if result.outcome == OUTCOME_ALREADY_CURRENT:
        logger.info(f"Schema already current (v{result.to_version})")
    else:
        logger.info(f"Migration applied successfully: v{result.from_version} -> v{result.to_version}")

    try:
        metrics.resync(store)
    except PersistenceError as e:
        logger.error(f"Initial task metrics resync failed: {e}")

    return store
