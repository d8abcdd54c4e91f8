"""Process-wide task and HTTP metrics"""

from todolist.metrics.registry import MetricsRegistry

__all__ = ["MetricsRegistry"]
