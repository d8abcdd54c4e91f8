from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from todolist.config import Settings
from todolist.metrics.registry import MetricsRegistry
from todolist.store import ensure_migrations, init_db
from todolist.store.task_store import TaskStore
from todolist.webui.app import create_app


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    """Migrated database in a per-test temp dir."""
    path = init_db(tmp_path / "todolist.db")
    ensure_migrations(path)
    return path


@pytest.fixture()
def settings(db_path: Path) -> Settings:
    return Settings(db_path=db_path, metrics_public_url="http://metrics.test:9090/metrics")


@pytest.fixture()
def metrics() -> MetricsRegistry:
    return MetricsRegistry()


@pytest.fixture()
def store(db_path: Path, metrics: MetricsRegistry) -> TaskStore:
    return TaskStore(db_path, metrics)


@pytest.fixture()
def client(settings: Settings, store: TaskStore, metrics: MetricsRegistry) -> TestClient:
    return TestClient(create_app(settings, store, metrics))
