"""
SupportGPT - Main Application
==============================

Support case ingestion and query service.

Modules:
- Ingestion: Incremental, checkpointed export of support cases to the case store
- Query: Summaries of past cases from the knowledge base over that store

Clean Architecture Layers:
- Interfaces: FastAPI controllers, scheduled handler
- Application: Services, ports and DTOs
- Domain: Entities and value objects
- Infrastructure: AWS adapters, database, scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request

from supportgpt.config import settings
from supportgpt.ingestion.infrastructure import IngestionScheduler, create_ingestion_service
from supportgpt.ingestion.interfaces import ingestion_router
from supportgpt.query.infrastructure import create_query_service
from supportgpt.query.interfaces import query_router

from supportgpt.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    global_exception_handler
)
from supportgpt.shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Build the ingestion pipeline (and checkpoint table when SQL-backed)
    3. Build the query service when a knowledge base is configured
    4. Start the periodic ingestion trigger when enabled

    SHUTDOWN:
    1. Stop the scheduler
    2. Close database connections
    """
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting SupportGPT", extra={
        "version": settings.app_version,
        "environment": settings.environment,
        "case_store_backend": settings.case_store_backend,
        "checkpoint_backend": settings.checkpoint_backend
    })

    app.state.scheduler = None

    app.state.ingestion_service = await create_ingestion_service(settings)
    app.state.query_service = create_query_service(settings)

    if settings.ingestion_schedule_enabled and app.state.ingestion_service:
        scheduler = IngestionScheduler(interval_days=settings.ingestion_interval_days)
        await scheduler.start(app.state.ingestion_service.run)
        app.state.scheduler = scheduler

    logger.info("SupportGPT started successfully")

    yield  # Application runs here

    logger.info("Shutting down SupportGPT")

    if app.state.scheduler:
        await app.state.scheduler.stop()

    if settings.checkpoint_backend == "database":
        from supportgpt.infrastructure.database import close_database
        await close_database()

    logger.info("SupportGPT shutdown complete")


app = FastAPI(
    title="SupportGPT API",
    description="""
    ## Support Case Ingestion and Query

    - `POST /ingestion/run` - Export cases newer than the checkpoint to the case store
    - `GET /ingestion/checkpoint` - Last committed case ID
    - `POST /query` - Summarize past cases relevant to a question
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(ingestion_router)
app.include_router(query_router)


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    Reports which services were built and the scheduler state.
    """
    scheduler = getattr(request.app.state, "scheduler", None)
    checks = {
        "ingestion": "available" if getattr(request.app.state, "ingestion_service", None) else "not_configured",
        "query": "available" if getattr(request.app.state, "query_service", None) else "not_configured",
        "scheduler": "running" if scheduler and scheduler.is_running else "stopped",
        "case_store": settings.case_store_backend,
        "checkpoint_store": settings.checkpoint_backend,
    }
    if scheduler and scheduler.next_run_time:
        checks["next_ingestion_run"] = scheduler.next_run_time.isoformat()

    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "supportgpt.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
