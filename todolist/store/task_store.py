"""SQLite-backed task store.

Sole owner of task identity and of the ``tasks`` relation. Every successful
mutation bumps its lifetime counter and resyncs the task gauges before
returning; a resync failure is logged and never fails the mutation.

Thread-safety:
- each method opens its own SQLite connection; isolation is SQLite's
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, List, Optional, Union

from todolist.core.errors import PersistenceError
from todolist.core.models import Task, TaskCounts

from . import connect
from .constants import TASKS_TABLE

if TYPE_CHECKING:
    from todolist.metrics.registry import MetricsRegistry

logger = logging.getLogger(__name__)

_TASK_COLUMNS = "id, title, done, created_at"


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    # CURRENT_TIMESTAMP is stored as "YYYY-MM-DD HH:MM:SS" in UTC
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class TaskStore:
    """CRUD operations against the persistent tasks relation"""

    def __init__(self, db_path: Union[str, Path], metrics: Optional[MetricsRegistry] = None) -> None:
        self._db_path = Path(db_path)
        self._metrics = metrics

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ---- low-level helpers ----

    @contextmanager
    def _get_conn(self) -> Iterator[sqlite3.Connection]:
        """Connection scoped to one logical operation; commits on success."""
        try:
            conn = connect(self._db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"database unavailable: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(str(e)) from e
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            title=row["title"],
            done=bool(row["done"]),
            created_at=_parse_ts(row["created_at"]),
        )

    def _resync_metrics(self) -> None:
        if self._metrics is None:
            return
        try:
            self._metrics.resync(self)
        except PersistenceError as e:
            logger.error(f"Task metrics resync failed: {e}")

    # ---- operations ----

    def ping(self) -> None:
        """Check the store is reachable.

        Raises:
            PersistenceError: database file missing or not queryable
        """
        with self._get_conn() as conn:
            conn.execute("SELECT 1").fetchone()

    def add(self, title: str) -> Task:
        """Insert a task and return it with its assigned id and timestamp.

        The caller guarantees ``title`` is non-empty.
        """
        with self._get_conn() as conn:
            cursor = conn.execute(f"INSERT INTO {TASKS_TABLE} (title) VALUES (?)", (title,))
            row = conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM {TASKS_TABLE} WHERE id = ?",
                (cursor.lastrowid,),
            ).fetchone()
        task = self._row_to_task(row)

        if self._metrics is not None:
            self._metrics.record_created()
        self._resync_metrics()
        return task

    def list_all(self) -> List[Task]:
        """All tasks ordered by id ascending (empty list when there are none)."""
        with self._get_conn() as conn:
            rows = conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM {TASKS_TABLE} ORDER BY id"
            ).fetchall()
        return [self._row_to_task(row) for row in rows]

    def complete(self, task_id: int) -> None:
        """Mark a task done.

        Completing an already-done or unknown id is a zero-row update and
        succeeds; callers must not assume the id existed.
        """
        with self._get_conn() as conn:
            conn.execute(f"UPDATE {TASKS_TABLE} SET done = TRUE WHERE id = ?", (task_id,))

        if self._metrics is not None:
            self._metrics.record_completed()
        self._resync_metrics()

    def delete(self, task_id: int) -> None:
        """Hard-delete a task; unknown ids are a successful no-op."""
        with self._get_conn() as conn:
            conn.execute(f"DELETE FROM {TASKS_TABLE} WHERE id = ?", (task_id,))

        if self._metrics is not None:
            self._metrics.record_deleted()
        self._resync_metrics()

    def task_counts(self) -> TaskCounts:
        """Three aggregate queries used by the gauge resync."""
        with self._get_conn() as conn:
            # one read snapshot so total == active + completed
            conn.execute("BEGIN")
            total = conn.execute(f"SELECT COUNT(*) FROM {TASKS_TABLE}").fetchone()[0]
            active = conn.execute(
                f"SELECT COUNT(*) FROM {TASKS_TABLE} WHERE done = FALSE"
            ).fetchone()[0]
            completed = conn.execute(
                f"SELECT COUNT(*) FROM {TASKS_TABLE} WHERE done = TRUE"
            ).fetchone()[0]
        return TaskCounts(total=total, active=active, completed=completed)
