"""Run the task API and the metrics listener."""

import asyncio
import logging
from typing import List

import uvicorn

from todolist.config import Settings
from todolist.metrics.registry import MetricsRegistry
from todolist.store.task_store import TaskStore
from todolist.webui.app import create_app, create_metrics_app

logger = logging.getLogger(__name__)


def build_servers(settings: Settings, store: TaskStore, metrics: MetricsRegistry) -> List[uvicorn.Server]:
    api_config = uvicorn.Config(
        create_app(settings, store, metrics),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
    metrics_config = uvicorn.Config(
        create_metrics_app(metrics),
        host=settings.metrics_host,
        port=settings.metrics_port,
        log_config=None,
        access_log=False,
    )
    return [uvicorn.Server(api_config), uvicorn.Server(metrics_config)]


async def _serve_all(servers: List[uvicorn.Server]) -> None:
    await asyncio.gather(*(server.serve() for server in servers))


def run_servers(settings: Settings, store: TaskStore, metrics: MetricsRegistry) -> None:
    """Block until both listeners stop (Ctrl+C stops both)."""
    servers = build_servers(settings, store, metrics)
    logger.info(f"Metrics server running on http://{settings.metrics_host}:{settings.metrics_port}/metrics")
    logger.info(f"Server running on http://{settings.host}:{settings.port}")
    asyncio.run(_serve_all(servers))
