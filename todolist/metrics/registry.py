"""
Metrics registry - task counters/gauges and HTTP request metrics

One registry instance is created per process and handed to the task store,
the HTTP metrics middleware and the metrics listener. Counters are lifetime
totals (reset only on restart); gauges are recomputed from the tasks relation
by ``resync``.
"""

import threading
from dataclasses import dataclass
from typing import Dict, List, Protocol, Tuple

from todolist.core.models import TaskCounts

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

HTTP_DURATION_BUCKETS: Tuple[float, ...] = (0.1, 0.3, 0.5, 1, 2, 5)


class CountsSource(Protocol):
    def task_counts(self) -> TaskCounts: ...


@dataclass
class _Histogram:
    buckets: List[int]
    total: float = 0.0
    count: int = 0


class MetricsRegistry:
    """Thread-safe in-memory metrics registry"""

    def __init__(self, duration_buckets: Tuple[float, ...] = HTTP_DURATION_BUCKETS):
        self._lock = threading.Lock()
        self._duration_buckets = tuple(sorted(duration_buckets))

        self.tasks_created = 0
        self.tasks_completed = 0
        self.tasks_deleted = 0
        # total, active, completed - swapped as one tuple so readers never see a mix
        self._gauges = TaskCounts(total=0, active=0, completed=0)

        self._http_requests: Dict[Tuple[str, str, str], int] = {}
        self._http_durations: Dict[Tuple[str, str], _Histogram] = {}

    # ---- task counters ----

    def record_created(self) -> None:
        with self._lock:
            self.tasks_created += 1

    def record_completed(self) -> None:
        with self._lock:
            self.tasks_completed += 1

    def record_deleted(self) -> None:
        with self._lock:
            self.tasks_deleted += 1

    # ---- task gauges ----

    def resync(self, source: CountsSource) -> TaskCounts:
        """
        Recompute the task gauges from the store

        Errors from the count queries propagate and leave the gauges untouched.
        Concurrent resyncs are last-write-wins.
        """
        counts = source.task_counts()
        with self._lock:
            self._gauges = counts
        return counts

    @property
    def gauges(self) -> TaskCounts:
        with self._lock:
            return self._gauges

    # ---- HTTP metrics ----

    def record_request(self, method: str, endpoint: str, status: int, duration_seconds: float) -> None:
        """Record an HTTP request"""
        with self._lock:
            key = (method, endpoint, str(status))
            self._http_requests[key] = self._http_requests.get(key, 0) + 1

            hist = self._http_durations.get((method, endpoint))
            if hist is None:
                hist = _Histogram(buckets=[0] * len(self._duration_buckets))
                self._http_durations[(method, endpoint)] = hist
            for i, bound in enumerate(self._duration_buckets):
                if duration_seconds <= bound:
                    hist.buckets[i] += 1
            hist.total += duration_seconds
            hist.count += 1

    def snapshot(self) -> Dict[str, int]:
        """Task counters and gauges as a flat dict"""
        with self._lock:
            gauges = self._gauges
            return {
                "todolist_tasks_created_total": self.tasks_created,
                "todolist_tasks_completed_total": self.tasks_completed,
                "todolist_tasks_deleted_total": self.tasks_deleted,
                "todolist_tasks_total": gauges.total,
                "todolist_tasks_active": gauges.active,
                "todolist_tasks_completed": gauges.completed,
            }

    # ---- exposition ----

    def to_prometheus_format(self) -> str:
        """Render all series in Prometheus text format"""
        with self._lock:
            gauges = self._gauges
            requests = dict(self._http_requests)
            durations = {
                k: _Histogram(list(h.buckets), h.total, h.count)
                for k, h in self._http_durations.items()
            }
            created, completed, deleted = self.tasks_created, self.tasks_completed, self.tasks_deleted

        lines: List[str] = []

        def simple(name: str, kind: str, help_text: str, value: float) -> None:
            lines.append(f"# HELP {name} {help_text}")
            lines.append(f"# TYPE {name} {kind}")
            lines.append(f"{name} {_fmt(value)}")

        simple("todolist_tasks_created_total", "counter", "Total number of tasks created", created)
        simple("todolist_tasks_completed_total", "counter", "Total number of tasks completed", completed)
        simple("todolist_tasks_deleted_total", "counter", "Total number of tasks deleted", deleted)
        simple("todolist_tasks_total", "gauge", "Current total number of tasks", gauges.total)
        simple("todolist_tasks_active", "gauge", "Current number of active (not completed) tasks", gauges.active)
        simple("todolist_tasks_completed", "gauge", "Current number of completed tasks", gauges.completed)

        lines.append("# HELP todolist_http_requests_total Total number of HTTP requests")
        lines.append("# TYPE todolist_http_requests_total counter")
        for (method, endpoint, status), count in sorted(requests.items()):
            labels = _labels(method=method, endpoint=endpoint, status=status)
            lines.append(f"todolist_http_requests_total{{{labels}}} {count}")

        lines.append("# HELP todolist_http_request_duration_seconds HTTP request duration in seconds")
        lines.append("# TYPE todolist_http_request_duration_seconds histogram")
        for (method, endpoint), hist in sorted(durations.items()):
            base = _labels(method=method, endpoint=endpoint)
            for bound, count in zip(self._duration_buckets, hist.buckets):
                lines.append(
                    f'todolist_http_request_duration_seconds_bucket{{{base},le="{_fmt(bound)}"}} {count}'
                )
            lines.append(f'todolist_http_request_duration_seconds_bucket{{{base},le="+Inf"}} {hist.count}')
            lines.append(f"todolist_http_request_duration_seconds_sum{{{base}}} {_fmt(hist.total)}")
            lines.append(f"todolist_http_request_duration_seconds_count{{{base}}} {hist.count}")

        return "\n".join(lines) + "\n"


def _fmt(value: float) -> str:
    if isinstance(value, int):
        return str(value)
    return repr(float(value))


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _labels(**labels: str) -> str:
    return ",".join(f'{k}="{_escape(v)}"' for k, v in labels.items())
