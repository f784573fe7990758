"""Shared test fixtures for the analyzer test suite."""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.analyzer.storage.hierarchy_store import HierarchyStore
from src.shared.config import AnalyzerConfig
from src.shared.constants import VERSION
from src.shared.db.connection import ConnectionPool
from src.shared.db.schema import init_analyzer_db
from src.shared.errors import register_exception_handlers
from src.shared.logging import TraceIDMiddleware
from src.shared.models.hierarchy import (
    Hierarchy,
    Process,
    Subprocess,
    UseCase,
    UseCaseKind,
)


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def connection_pool(tmp_db_path: Path) -> Generator[ConnectionPool, None, None]:
    """Provide a ConnectionPool with the analyzer schema applied."""
    pool = ConnectionPool(tmp_db_path)
    init_analyzer_db(pool)
    yield pool
    pool.close()


@pytest.fixture
def store(connection_pool: ConnectionPool) -> HierarchyStore:
    return HierarchyStore(connection_pool)


@pytest.fixture
def sample_hierarchy() -> Hierarchy:
    """Two processes; the second has two subprocesses with three use cases each."""
    return Hierarchy(processes=[
        Process(
            name="Order management",
            description="Everything about orders",
            subprocesses=[
                Subprocess(
                    name="Checkout",
                    use_cases=[
                        UseCase(
                            name="Pay by card",
                            description="Customer pays with a card",
                            primary_actor="Customer",
                            kind=UseCaseKind.FUNCTIONAL,
                            preconditions="Cart is not empty",
                            postconditions="Order is paid",
                            acceptance_criteria="Receipt is emailed",
                        ),
                    ],
                ),
            ],
        ),
        Process(
            name="Operations",
            subprocesses=[
                Subprocess(
                    name="Monitoring",
                    description="Runtime health",
                    use_cases=[
                        UseCase(name="Alert on errors", kind=UseCaseKind.SYSTEM),
                        UseCase(name="Dashboard latency", kind=UseCaseKind.NON_FUNCTIONAL),
                        UseCase(name="Rotate logs", kind=UseCaseKind.SYSTEM),
                    ],
                ),
                Subprocess(
                    name="Backups",
                    use_cases=[
                        UseCase(name="Nightly snapshot"),
                        UseCase(name="Restore drill", primary_actor="Operator"),
                        UseCase(name="Verify checksums"),
                    ],
                ),
            ],
        ),
    ])


@pytest.fixture
def analyzer_config(tmp_db_path: Path) -> AnalyzerConfig:
    """Configuration with an API key so the upstream path is reachable."""
    return AnalyzerConfig(
        openrouter_api_key="test-key",
        model_id="test/model",
        database_path=str(tmp_db_path),
    )


def build_test_app(pool: ConnectionPool, config: AnalyzerConfig) -> FastAPI:
    """Standalone app wired to *pool* and *config* with all routers."""

    @asynccontextmanager
    async def lifespan(app):
        app.state.pool = pool
        app.state.config = config
        app.state.start_time = time.time()
        yield

    test_app = FastAPI(title="Requirements Analyzer", version=VERSION, lifespan=lifespan)
    test_app.add_middleware(TraceIDMiddleware)
    register_exception_handlers(test_app)

    from src.analyzer.routers.health import router as health_router
    from src.analyzer.routers.analysis import router as analysis_router

    test_app.include_router(health_router)
    test_app.include_router(analysis_router)
    return test_app


@pytest.fixture
def client(
    connection_pool: ConnectionPool, analyzer_config: AnalyzerConfig
) -> Generator[TestClient, None, None]:
    """TestClient over a fresh database, started through the lifespan."""
    with TestClient(build_test_app(connection_pool, analyzer_config)) as c:
        yield c
