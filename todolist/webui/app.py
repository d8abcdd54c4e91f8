"""
FastAPI applications

- create_app():          task API + health, behind the CORS boundary filter
- create_metrics_app():  observability listener, only GET /metrics

Both apps share one MetricsRegistry; they are served by separate uvicorn
servers so a stall in one does not block the other.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from todolist import SERVICE_NAME, __version__
from todolist.config import Settings
from todolist.metrics.registry import MetricsRegistry
from todolist.store.task_store import TaskStore
from todolist.webui.api import health, metrics, tasks
from todolist.webui.api.error_envelope import register_error_handlers
from todolist.webui.middleware.http_metrics import add_http_metrics_middleware

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization"]


def create_app(settings: Settings, store: TaskStore, metrics_registry: MetricsRegistry) -> FastAPI:
    """
    Build the task API application

    The store must already be migrated (see todolist.core.startup).
    """
    app = FastAPI(title=SERVICE_NAME, version=__version__)
    app.state.settings = settings
    app.state.store = store
    app.state.metrics = metrics_registry

    register_error_handlers(app)

    app.include_router(tasks.router)
    app.include_router(health.router)

    add_http_metrics_middleware(app, metrics_registry)

    # Added last so it is the outermost layer: preflight never reaches the router
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )
    logger.debug(f"CORS allowed origins: {settings.allowed_origins}")

    return app


def create_metrics_app(metrics_registry: MetricsRegistry) -> FastAPI:
    app = FastAPI(title=f"{SERVICE_NAME} metrics", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.metrics = metrics_registry
    app.include_router(metrics.router)
    return app
