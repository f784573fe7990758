"""Requirements analyzer FastAPI application."""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.shared.config import AnalyzerConfig
from src.shared.constants import ANALYZER_SERVICE_NAME, VERSION
from src.shared.db.connection import ConnectionPool
from src.shared.db.schema import init_analyzer_db
from src.shared.errors import register_exception_handlers
from src.shared.logging import TraceIDMiddleware, setup_logging

config = AnalyzerConfig()
logger = setup_logging(ANALYZER_SERVICE_NAME, config.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - open the store once, close it at shutdown."""
    app.state.start_time = time.time()
    app.state.config = config

    app.state.pool = ConnectionPool(config.database_path)
    init_analyzer_db(app.state.pool)

    if not config.has_api_key:
        logger.warning(
            "OPENROUTER_API_KEY is not set; upstream analysis is disabled"
        )
    logger.info(
        "Service started: name=%s version=%s port=%d db=%s model=%s",
        ANALYZER_SERVICE_NAME, VERSION, config.port, config.database_path,
        config.model_id,
    )
    yield

    if app.state.pool:
        app.state.pool.close()
    logger.info("Service stopped: name=%s", ANALYZER_SERVICE_NAME)


app = FastAPI(
    title="Requirements Analyzer",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(TraceIDMiddleware)
register_exception_handlers(app)

# Register all routers
from src.analyzer.routers.health import router as health_router
from src.analyzer.routers.analysis import router as analysis_router

app.include_router(health_router)
app.include_router(analysis_router)
