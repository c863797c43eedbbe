"""
Scheduled Ingestion Handler
============================

Entry point for a serverless function invoked by a periodic rule
(nominally weekly). Each invocation builds a fresh pipeline and runs it
once.
"""

import asyncio
import json
from typing import Any

from supportgpt.config import settings, ErrorClassification
from supportgpt.ingestion.domain import RunResult
from supportgpt.ingestion.infrastructure import build_ingestion_service
from supportgpt.shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)

STATUS_CODES = {
    ErrorClassification.SOURCE: 502,
    ErrorClassification.STORAGE: 500,
    ErrorClassification.CHECKPOINT: 500,
}


async def run_once() -> RunResult:
    """Build the pipeline from settings and run it."""
    service = build_ingestion_service(settings)
    try:
        if settings.checkpoint_backend == "database":
            from supportgpt.infrastructure.database import create_tables
            await create_tables()
        return await service.run()
    finally:
        if settings.checkpoint_backend == "database":
            from supportgpt.infrastructure.database import close_database
            await close_database()


def lambda_handler(event: dict, context: Any) -> dict:
    """
    Run one ingestion and report it in API Gateway proxy shape.

    Returns:
        ``{"statusCode": int, "body": json}`` where body is the run result
    """
    setup_logging(settings.log_level, settings.environment)
    logger.info(
        "Scheduled ingestion triggered",
        extra={"request_id": getattr(context, "aws_request_id", None)}
    )

    result = asyncio.run(run_once())
    status_code = STATUS_CODES.get(result.error, 500) if result.is_error else 200
    return {
        "statusCode": status_code,
        "body": json.dumps(result.to_dict())
    }
