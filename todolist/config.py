"""
Settings loader

Priority (high to low):
1. Environment variables (TODOLIST_*), after loading a local .env file
2. YAML file pointed to by TODOLIST_CONFIG
3. Hardcoded defaults
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "TODOLIST"

DEFAULT_ALLOWED_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


@dataclass(frozen=True)
class Settings:
    db_path: Path = Path("data/todolist.db")
    host: str = "0.0.0.0"
    port: int = 8080
    metrics_host: str = "0.0.0.0"
    metrics_port: int = 9090
    metrics_public_url: str = "http://localhost:9090/metrics"
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    log_level: str = "INFO"


def load_dotenv_file() -> bool:
    """Load .env from the working directory without overriding the real environment."""
    path = find_dotenv(usecwd=True)
    if not path:
        logger.warning("No .env file found")
        return False
    return load_dotenv(path, override=False)


def _load_yaml(config_path: Optional[Path]) -> Dict[str, Any]:
    if config_path is None:
        return {}
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    # empty file
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")
    return data


def _split_origins(raw: Any) -> List[str]:
    if isinstance(raw, (list, tuple)):
        return [str(o).strip() for o in raw if str(o).strip()]
    return [o.strip() for o in str(raw).split(",") if o.strip()]


def load_settings(config_path: Optional[Path] = None, *, use_dotenv: bool = True) -> Settings:
    """
    Build Settings from defaults, an optional YAML file and the environment.

    Args:
        config_path: YAML file (overridden by TODOLIST_CONFIG when set)
        use_dotenv: Load ./.env before reading the environment

    Returns:
        Settings: frozen settings object
    """
    if use_dotenv:
        load_dotenv_file()

    env_config = os.getenv(_k("CONFIG"), "").strip()
    if env_config:
        config_path = Path(env_config)

    raw = _load_yaml(config_path)
    server = raw.get("server", {}) or {}
    metrics = raw.get("metrics", {}) or {}
    cors = raw.get("cors", {}) or {}

    defaults = Settings()

    db_path = os.getenv(_k("DB_PATH")) or raw.get("db_path") or defaults.db_path
    host = os.getenv(_k("HOST")) or server.get("host") or defaults.host
    port = os.getenv(_k("PORT")) or server.get("port") or defaults.port
    metrics_host = os.getenv(_k("METRICS_HOST")) or metrics.get("host") or defaults.metrics_host
    metrics_port = os.getenv(_k("METRICS_PORT")) or metrics.get("port") or defaults.metrics_port
    metrics_public_url = (
        os.getenv(_k("METRICS_PUBLIC_URL"))
        or metrics.get("public_url")
        or defaults.metrics_public_url
    )
    origins_raw = os.getenv(_k("ALLOWED_ORIGINS")) or cors.get("allowed_origins")
    allowed_origins = _split_origins(origins_raw) if origins_raw else list(defaults.allowed_origins)
    log_level = os.getenv(_k("LOG_LEVEL")) or raw.get("log_level") or defaults.log_level

    try:
        port = int(port)
        metrics_port = int(metrics_port)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid port setting: {e}") from e

    return Settings(
        db_path=Path(db_path),
        host=str(host),
        port=port,
        metrics_host=str(metrics_host),
        metrics_port=metrics_port,
        metrics_public_url=str(metrics_public_url),
        allowed_origins=allowed_origins,
        log_level=str(log_level).upper(),
    )
