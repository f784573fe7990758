"""Ingestion pipeline: generate, extract, normalize, persist."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from src.analyzer.services.normalizer import normalize_hierarchy
from src.analyzer.services.payload_extractor import extract_payload
from src.analyzer.services.text_generator import TextGenerator
from src.analyzer.storage.hierarchy_store import HierarchyStore
from src.shared.models.hierarchy import Hierarchy, PersistedHierarchy

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Normalized hierarchy and its persisted copy."""
    hierarchy: Hierarchy
    inserted: PersistedHierarchy


class AnalysisPipeline:
    """Runs one specification through the ingestion flow.

    The upstream call completes before the store is touched, so a slow or
    failing model never holds the write lock and never leaves partial rows.
    """

    def __init__(self, store: HierarchyStore) -> None:
        self._store = store

    async def run(
        self,
        spec_text: str,
        generator: TextGenerator | None = None,
        document: dict[str, Any] | None = None,
    ) -> AnalysisResult:
        """Analyze *spec_text* and persist the resulting hierarchy.

        Args:
            spec_text: Free-form specification text.
            generator: Produces raw model output. Ignored when *document*
                is given.
            document: An already-parsed decomposition supplied by the caller.

        Raises:
            UpstreamServiceError: The generator failed.
            ExtractionError: The generator output holds no JSON object.
            PersistenceError: The atomic insert failed.
        """
        if document is None:
            if generator is None:
                raise ValueError("Either a generator or a document is required")
            raw_text = await generator.generate(spec_text)
            logger.debug("Received %d characters of model output", len(raw_text))
            document = extract_payload(raw_text)

        hierarchy = normalize_hierarchy(document)
        inserted = await asyncio.to_thread(self._store.persist, hierarchy)
        return AnalysisResult(hierarchy=hierarchy, inserted=inserted)
