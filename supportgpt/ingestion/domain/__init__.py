"""
Ingestion Domain Layer
======================

Domain layer for the case ingestion module.

Contains:
- Entities: Case, Communication, CaseRecord, Batch, IngestionRun, RunResult
- Value Objects: CaseIdParser, ArtifactFormatter

This layer is framework-agnostic and contains pure business logic.
"""

from supportgpt.ingestion.domain.entities import (
    Case,
    Communication,
    CaseRecord,
    Batch,
    IngestionState,
    IngestionRun,
    RunResult,
)
from supportgpt.ingestion.domain.value_objects import CaseIdParser, ArtifactFormatter

__all__ = [
    "Case",
    "Communication",
    "CaseRecord",
    "Batch",
    "IngestionState",
    "IngestionRun",
    "RunResult",
    "CaseIdParser",
    "ArtifactFormatter",
]
