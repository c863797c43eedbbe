"""
Query Controllers (API Routes)
===============================

FastAPI route answering free-text questions over ingested cases.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from supportgpt.config import settings
from supportgpt.core import KnowledgeBaseException
from supportgpt.query.application import CaseQueryService, QueryRequest, QueryResponse
from supportgpt.query.infrastructure import create_query_service
from supportgpt.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/query", tags=["Case Query"])


QUERY_REQUEST_EXAMPLE = {
    "query": "EC2 instance not reachable over SSH after reboot"
}


def get_query_service(request: Request) -> CaseQueryService:
    """Get the query service built at startup, or on first use without a lifespan."""
    state = request.app.state
    if not hasattr(state, "query_service"):
        state.query_service = create_query_service(settings)
    service = state.query_service
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Query service not available - knowledge base not configured"
        )
    return service


@router.post("", response_model=QueryResponse)
async def query_cases(
    body: QueryRequest,
    service: CaseQueryService = Depends(get_query_service)
) -> QueryResponse:
    """Summarize past cases relevant to the query and list the case IDs used."""
    try:
        result = await service.query(body.query)
    except KnowledgeBaseException as e:
        logger.error("Knowledge base query failed", extra={"error": e.message})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)

    return QueryResponse(
        summary=result.summary,
        case_ids=result.case_ids,
        processing_time_ms=result.latency_ms
    )


# Export router
query_router = router
