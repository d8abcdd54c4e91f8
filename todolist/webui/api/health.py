"""
Health API - liveness and metrics location

GET /health              - store reachability (always HTTP 200)
GET /api/metrics/health  - where the Prometheus endpoint lives
"""

import logging

from fastapi import APIRouter, Request

from todolist import SERVICE_NAME, __version__
from todolist.core.errors import PersistenceError
from todolist.core.models import HealthComponents, HealthStatus, MetricsEndpoints, MetricsHealth
from todolist.store.task_store import TaskStore
from todolist.webui.api.time_format import iso_z

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def check_db_health(store: TaskStore) -> str:
    """Ping the store: "ok" or "error" """
    try:
        store.ping()
    except PersistenceError as e:
        logger.warning(f"Database health check failed: {e}")
        return "error"
    return "ok"


def build_health_status(store: TaskStore) -> HealthStatus:
    """
    Compose component checks into the overall status

    ok       - store reachable
    degraded - store unreachable; the service itself still answers
    """
    components = HealthComponents(database=check_db_health(store))
    overall = "ok" if components.database == "ok" else "degraded"
    return HealthStatus(
        status=overall,
        version=__version__,
        service=SERVICE_NAME,
        timestamp=iso_z(),
        components=components,
    )


@router.get("/health", response_model=HealthStatus)
def get_health(request: Request) -> HealthStatus:
    # Degradation is reported in the body; the status code stays 200
    return build_health_status(request.app.state.store)


@router.get("/api/metrics/health", response_model=MetricsHealth)
def get_metrics_health(request: Request) -> MetricsHealth:
    settings = request.app.state.settings
    return MetricsHealth(
        timestamp=iso_z(),
        endpoints=MetricsEndpoints(prometheus=settings.metrics_public_url),
    )
