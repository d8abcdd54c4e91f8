"""Pydantic models shared by the store and the API layer"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class Task(BaseModel):
    """A persisted unit of work"""

    id: int = Field(description="Store-assigned identifier, strictly increasing")
    title: str = Field(description="Task title")
    done: bool = Field(default=False, description="Completion flag")
    created_at: Optional[datetime] = Field(
        default=None, description="Insertion timestamp (UTC)"
    )

    def to_wire(self) -> Dict[str, Any]:
        # created_at is omitted rather than sent as null when the store did not populate it
        return self.model_dump(mode="json", exclude_none=True)


class TaskCounts(BaseModel):
    """Aggregate counts used to resync the task gauges"""

    total: int
    active: int
    completed: int


ComponentState = Literal["ok", "error"]


class HealthComponents(BaseModel):
    database: ComponentState = "ok"


class HealthStatus(BaseModel):
    """Health status response"""

    status: Literal["ok", "degraded"]
    version: str
    service: str
    timestamp: str
    components: HealthComponents


class MetricsEndpoints(BaseModel):
    prometheus: str
    health: str = "/health"


class MetricsHealth(BaseModel):
    """Static descriptor of where metrics are exposed"""

    status: Literal["ok"] = "ok"
    metrics: Literal["enabled"] = "enabled"
    timestamp: str
    endpoints: MetricsEndpoints
