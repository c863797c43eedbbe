"""
Ingestion Application DTOs
===========================

Pydantic models for the ingestion API layer.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from supportgpt.ingestion.domain import RunResult


# ========== Response DTOs ==========

class IngestionRunResponse(BaseModel):
    """
    Outcome of an ingestion run.

    Exactly one of ``artifacts``, ``message`` or ``error`` is set; unset
    fields are dropped from the response body.
    """
    artifacts: Optional[List[str]] = Field(None, description="Batch files written, in order")
    message: Optional[str] = Field(None, description="Set when the run found no new cases")
    error: Optional[str] = Field(None, description="source_error, storage_error or checkpoint_error")
    detail: Optional[str] = Field(None, description="Failure detail")

    @classmethod
    def from_result(cls, result: RunResult) -> "IngestionRunResponse":
        return cls(**result.to_dict())


class CheckpointResponse(BaseModel):
    """Current checkpoint."""
    checkpoint: Optional[str] = Field(None, description="Last committed case ID, null on first run")
