"""Analysis router: ingest specifications, read the tree, reset the store."""
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Query, Request

from src.analyzer.services.pipeline import AnalysisPipeline, AnalysisResult
from src.analyzer.services.text_generator import MockGenerator, build_generator
from src.analyzer.storage.hierarchy_store import HierarchyStore
from src.shared.models.hierarchy import (
    AnalyzeRequest,
    AnalyzeResponse,
    MockAnalyzeRequest,
    ProcessNode,
    ResetResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])


def _response(result: AnalysisResult) -> AnalyzeResponse:
    return AnalyzeResponse(hierarchy=result.hierarchy, inserted=result.inserted)


@router.post("/api/analyze", status_code=201)
async def analyze(
    request: Request,
    body: AnalyzeRequest,
    mock: str | None = Query(default=None, description="Set to 1 to skip the model"),
) -> AnalyzeResponse:
    """Decompose a specification and persist the hierarchy.

    A caller-supplied ``parsed`` document is normalized and stored directly.
    ``?mock=1`` uses the fixed mock answer. Otherwise the configured model
    is called; without an API key this fails with a configuration error.
    """
    pipeline = AnalysisPipeline(HierarchyStore(request.app.state.pool))

    if body.parsed is not None:
        result = await pipeline.run(body.spec_text, document=body.parsed)
    elif mock == "1":
        result = await pipeline.run(body.spec_text, generator=MockGenerator())
    else:
        generator = build_generator(request.app.state.config, body.model)
        result = await pipeline.run(body.spec_text, generator=generator)

    return _response(result)


@router.post("/api/analyze/mock", status_code=201)
async def analyze_mock(request: Request, body: MockAnalyzeRequest) -> AnalyzeResponse:
    """Run the pipeline against the fixed mock decomposition."""
    pipeline = AnalysisPipeline(HierarchyStore(request.app.state.pool))
    result = await pipeline.run(body.spec_text, generator=MockGenerator())
    return _response(result)


@router.get("/api/tree")
async def get_tree(request: Request) -> list[ProcessNode]:
    """Return every stored process with its subprocesses and use cases."""
    store = HierarchyStore(request.app.state.pool)
    return await asyncio.to_thread(store.read_all)


@router.delete("/api/reset")
async def reset(request: Request) -> ResetResponse:
    """Delete the whole hierarchy."""
    store = HierarchyStore(request.app.state.pool)
    await asyncio.to_thread(store.reset_all)
    logger.info("Reset requested through the API")
    return ResetResponse()
