"""
Ingestion Controllers (API Routes)
===================================

FastAPI routes to trigger an ingestion run and inspect the checkpoint.

Controllers delegate to the application service held in app state.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from supportgpt.config import ErrorClassification, settings
from supportgpt.core import CheckpointException
from supportgpt.ingestion.application import (
    IngestionService, IngestionRunResponse, CheckpointResponse
)
from supportgpt.ingestion.infrastructure import create_ingestion_service
from supportgpt.shared.infrastructure.logging import get_context_logger

router = APIRouter(prefix="/ingestion", tags=["Case Ingestion"])

ERROR_STATUS_CODES = {
    ErrorClassification.SOURCE: status.HTTP_502_BAD_GATEWAY,
    ErrorClassification.STORAGE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorClassification.CHECKPOINT: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


# ========== Example payloads for Swagger ==========

RUN_RESPONSE_EXAMPLE = {
    "artifacts": [
        "cases_case-2024-03-01T10:15:00-case-2024-03-01T11:02:41.txt"
    ]
}


# ========== Dependencies ==========

async def get_ingestion_service(request: Request) -> IngestionService:
    """
    Get the ingestion service built at startup.

    Without a lifespan (the serverless HTTP handler) it is built on first
    use and kept on app state.
    """
    state = request.app.state
    if not hasattr(state, "ingestion_service"):
        state.ingestion_service = await create_ingestion_service(settings)
    service = state.ingestion_service
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Ingestion service not available - case or checkpoint store not configured"
        )
    return service


# ========== Routes ==========

@router.post(
    "/run",
    response_model=IngestionRunResponse,
    response_model_exclude_none=True,
    responses={
        200: {"content": {"application/json": {"example": RUN_RESPONSE_EXAMPLE}}},
        500: {"description": "Storage or checkpoint failure"},
        502: {"description": "Support API failure"},
    },
)
async def run_ingestion(
    request: Request,
    response: Response,
    service: IngestionService = Depends(get_ingestion_service)
) -> IngestionRunResponse:
    """
    Run one incremental ingestion.

    Returns the batch files written, the "no new cases" message, or an
    error classification with detail.
    """
    logger = get_context_logger(
        __name__, correlation_id=getattr(request.state, "correlation_id", None)
    )
    logger.info("Ingestion run requested over HTTP")

    result = await service.run()
    if result.is_error:
        response.status_code = ERROR_STATUS_CODES.get(
            result.error, status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    return IngestionRunResponse.from_result(result)


@router.get("/checkpoint", response_model=CheckpointResponse)
async def get_checkpoint(
    service: IngestionService = Depends(get_ingestion_service)
) -> CheckpointResponse:
    """Return the last committed case ID (null before the first run)."""
    try:
        checkpoint = await service.get_checkpoint()
    except CheckpointException as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)
    return CheckpointResponse(checkpoint=checkpoint)


# Export router
ingestion_router = router
