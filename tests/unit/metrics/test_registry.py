import threading

import pytest

from todolist.core.errors import PersistenceError
from todolist.core.models import TaskCounts
from todolist.metrics.registry import MetricsRegistry


class _Counts:
    def __init__(self, total, active, completed):
        self.counts = TaskCounts(total=total, active=active, completed=completed)

    def task_counts(self) -> TaskCounts:
        return self.counts


class _BrokenCounts:
    def task_counts(self) -> TaskCounts:
        raise PersistenceError("database is locked")


def test_counters_start_at_zero() -> None:
    registry = MetricsRegistry()

    assert registry.snapshot() == {
        "todolist_tasks_created_total": 0,
        "todolist_tasks_completed_total": 0,
        "todolist_tasks_deleted_total": 0,
        "todolist_tasks_total": 0,
        "todolist_tasks_active": 0,
        "todolist_tasks_completed": 0,
    }


def test_record_increments_one_counter_each() -> None:
    registry = MetricsRegistry()

    registry.record_created()
    registry.record_created()
    registry.record_completed()
    registry.record_deleted()

    snap = registry.snapshot()
    assert snap["todolist_tasks_created_total"] == 2
    assert snap["todolist_tasks_completed_total"] == 1
    assert snap["todolist_tasks_deleted_total"] == 1


def test_resync_overwrites_gauges() -> None:
    registry = MetricsRegistry()

    registry.resync(_Counts(5, 3, 2))
    registry.resync(_Counts(1, 1, 0))

    assert registry.gauges == TaskCounts(total=1, active=1, completed=0)


def test_failed_resync_keeps_previous_gauges() -> None:
    registry = MetricsRegistry()
    registry.resync(_Counts(4, 2, 2))

    with pytest.raises(PersistenceError):
        registry.resync(_BrokenCounts())

    assert registry.gauges.total == 4


def test_concurrent_increments_are_not_lost() -> None:
    registry = MetricsRegistry()

    def worker():
        for _ in range(1000):
            registry.record_created()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert registry.tasks_created == 8000


def test_prometheus_format_task_series() -> None:
    registry = MetricsRegistry()
    registry.record_created()
    registry.resync(_Counts(1, 1, 0))

    text = registry.to_prometheus_format()

    assert "# TYPE todolist_tasks_created_total counter" in text
    assert "todolist_tasks_created_total 1\n" in text
    assert "# TYPE todolist_tasks_active gauge" in text
    assert "todolist_tasks_total 1\n" in text
    assert "todolist_tasks_completed 0\n" in text
    assert text.endswith("\n")


def test_prometheus_format_http_series() -> None:
    registry = MetricsRegistry()
    registry.record_request("GET", "/api/tasks", 200, 0.05)
    registry.record_request("GET", "/api/tasks", 200, 0.4)
    registry.record_request("POST", "/api/add", 400, 7.0)

    text = registry.to_prometheus_format()

    assert 'todolist_http_requests_total{method="GET",endpoint="/api/tasks",status="200"} 2' in text
    assert 'todolist_http_requests_total{method="POST",endpoint="/api/add",status="400"} 1' in text
    assert 'todolist_http_request_duration_seconds_bucket{method="GET",endpoint="/api/tasks",le="0.1"} 1' in text
    assert 'todolist_http_request_duration_seconds_bucket{method="GET",endpoint="/api/tasks",le="0.5"} 2' in text
    assert 'todolist_http_request_duration_seconds_bucket{method="POST",endpoint="/api/add",le="5"} 0' in text
    assert 'todolist_http_request_duration_seconds_bucket{method="POST",endpoint="/api/add",le="+Inf"} 1' in text
    assert 'todolist_http_request_duration_seconds_count{method="GET",endpoint="/api/tasks"} 2' in text


def test_label_values_are_escaped() -> None:
    registry = MetricsRegistry()
    registry.record_request("GET", '/odd"path', 404, 0.01)

    assert 'endpoint="/odd\\"path"' in registry.to_prometheus_format()
