"""Common Pydantic v2 data models."""
from __future__ import annotations

from pydantic import BaseModel, Field


class UpstreamEnv(BaseModel):
    """Upstream text-generation settings visible to clients."""
    has_key: bool
    model: str

    model_config = {"from_attributes": True}


class HealthStatus(BaseModel):
    """Liveness report returned by the ping endpoint."""
    ok: bool = True
    message: str = "pong"
    service_name: str
    version: str
    env: UpstreamEnv
    database: str = Field(
        default="connected",
        pattern=r"^(connected|disconnected)$"
    )
    uptime_seconds: float

    model_config = {"from_attributes": True}
