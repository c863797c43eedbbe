"""
Query Application DTOs
=======================

Pydantic models for the query API.
"""

from typing import List

from pydantic import BaseModel, Field, field_validator


class QueryRequest(BaseModel):
    """Request model for a case query."""
    query: str = Field(..., min_length=1, description="Free-text question")

    @field_validator("query")
    @classmethod
    def validate_query_length(cls, v: str) -> str:
        """Ensure query is not blank or too long."""
        if not v.strip():
            raise ValueError("Query must not be blank")
        if len(v) > 2000:
            raise ValueError("Query too long (max 2000 characters)")
        return v


class QueryResponse(BaseModel):
    """Response model for a case query."""
    summary: str
    case_ids: List[str]
    processing_time_ms: int
