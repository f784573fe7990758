"""Ping router for the analyzer service."""
from __future__ import annotations

import asyncio
import sqlite3
import time

from fastapi import APIRouter, Request

from src.shared.constants import ANALYZER_SERVICE_NAME, VERSION
from src.shared.models.common import HealthStatus, UpstreamEnv

router = APIRouter(tags=["health"])


@router.get("/api/ping")
async def ping(request: Request) -> HealthStatus:
    """Liveness check reporting database reachability and upstream settings."""

    def _check() -> HealthStatus:
        pool = request.app.state.pool
        config = request.app.state.config

        db_status = "connected"
        try:
            pool.get().execute("SELECT 1")
        except (sqlite3.Error, OSError):
            db_status = "disconnected"

        return HealthStatus(
            ok=db_status == "connected",
            service_name=ANALYZER_SERVICE_NAME,
            version=VERSION,
            env=UpstreamEnv(has_key=config.has_api_key, model=config.model_id),
            database=db_status,
            uptime_seconds=time.time() - request.app.state.start_time,
        )

    return await asyncio.to_thread(_check)
