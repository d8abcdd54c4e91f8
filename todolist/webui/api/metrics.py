"""
Metrics API - Prometheus-compatible metrics endpoint

GET /metrics - task counters/gauges and HTTP request metrics, text format

Mounted only on the observability listener, never on the task API.
"""

from fastapi import APIRouter, Request, Response

from todolist.metrics.registry import CONTENT_TYPE, MetricsRegistry

router = APIRouter(tags=["metrics"])


def get_metrics_registry(request: Request) -> MetricsRegistry:
    return request.app.state.metrics


@router.get("/metrics")
async def get_metrics(request: Request) -> Response:
    """
    This endpoint is compatible with Prometheus scrapers.

    Returns:
        Metrics in Prometheus exposition format
    """
    registry = get_metrics_registry(request)
    return Response(content=registry.to_prometheus_format(), media_type=CONTENT_TYPE)
