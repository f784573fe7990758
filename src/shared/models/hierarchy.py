"""Process / subprocess / use case Pydantic v2 data models."""
from __future__ import annotations

from enum import IntEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from src.shared.constants import SAMPLE_SPEC_TEXT


class UseCaseKind(IntEnum):
    """Use case classification."""
    FUNCTIONAL = 1
    NON_FUNCTIONAL = 2
    SYSTEM = 3


# ---------------------------------------------------------------------------
# Normalized hierarchy (output of the normalizer, input of the persister)
# ---------------------------------------------------------------------------


class UseCase(BaseModel):
    """Use case owned by a subprocess."""
    name: str
    description: str | None = None
    primary_actor: str | None = None
    kind: UseCaseKind = UseCaseKind.FUNCTIONAL
    preconditions: str | None = None
    postconditions: str | None = None
    acceptance_criteria: str | None = None

    model_config = {"from_attributes": True}


class Subprocess(BaseModel):
    """Subprocess owned by a process."""
    name: str
    description: str | None = None
    use_cases: list[UseCase] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class Process(BaseModel):
    """Root of the hierarchy."""
    name: str
    description: str | None = None
    subprocesses: list[Subprocess] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class Hierarchy(BaseModel):
    """Complete normalized decomposition of one specification."""
    processes: list[Process] = Field(default_factory=list)

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Persisted nodes (store-assigned identifiers and foreign keys)
# ---------------------------------------------------------------------------


class UseCaseNode(UseCase):
    """Persisted use case row."""
    id: int
    subprocess_id: int


class SubprocessNode(BaseModel):
    """Persisted subprocess row with its use cases."""
    id: int
    process_id: int
    name: str
    description: str | None = None
    use_cases: list[UseCaseNode] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class ProcessNode(BaseModel):
    """Persisted process row with its subprocesses."""
    id: int
    name: str
    description: str | None = None
    subprocesses: list[SubprocessNode] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class PersistedHierarchy(BaseModel):
    """Hierarchy as written by one atomic insert."""
    processes: list[ProcessNode] = Field(default_factory=list)

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# API bodies
# ---------------------------------------------------------------------------


class AnalyzeRequest(BaseModel):
    """Request to analyze a specification document."""
    spec_text: str = Field(
        ...,
        min_length=1,
        max_length=1_048_576,
        validation_alias=AliasChoices("specText", "spec_text"),
    )
    model: str | None = None
    parsed: dict[str, Any] | None = None

    model_config = {"populate_by_name": True}


class MockAnalyzeRequest(BaseModel):
    """Request to run the pipeline against the fixed mock decomposition."""
    spec_text: str = Field(
        default=SAMPLE_SPEC_TEXT,
        max_length=1_048_576,
        validation_alias=AliasChoices("specText", "spec_text"),
    )

    model_config = {"populate_by_name": True}


class AnalyzeResponse(BaseModel):
    """Normalized hierarchy plus the persisted, identifier-annotated copy."""
    ok: bool = True
    hierarchy: Hierarchy
    inserted: PersistedHierarchy


class ResetResponse(BaseModel):
    """Acknowledgement of a full reset."""
    ok: bool = True
