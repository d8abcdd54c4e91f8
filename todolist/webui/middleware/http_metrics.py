"""Request counter and latency histogram for the task API."""

import time

from fastapi import FastAPI, Request

from todolist.metrics.registry import MetricsRegistry

# Label for requests no route matched (404s), so unknown paths share one series
UNMATCHED_ENDPOINT = "unmatched"


def endpoint_label(request: Request) -> str:
    """Path template of the matched route, or UNMATCHED_ENDPOINT."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path if path else UNMATCHED_ENDPOINT


def add_http_metrics_middleware(app: FastAPI, metrics: MetricsRegistry) -> None:
    """Record method, route, status and duration of every request."""

    @app.middleware("http")
    async def http_metrics_middleware(request: Request, call_next):
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            metrics.record_request(
                request.method,
                endpoint_label(request),
                status_code,
                time.perf_counter() - start,
            )
