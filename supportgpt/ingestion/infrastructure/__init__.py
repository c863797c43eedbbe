"""
Ingestion Infrastructure Layer
===============================

Infrastructure implementations for the case ingestion module.

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Checkpoint stores (DynamoDB, SQLAlchemy)
- External: Support API adapters, batch writers, scheduler
- Factory: builds an IngestionService from settings
"""

from supportgpt.ingestion.infrastructure.models import CheckpointModel
from supportgpt.ingestion.infrastructure.repositories import (
    DynamoDBCheckpointStore,
    SQLAlchemyCheckpointStore,
)
from supportgpt.ingestion.infrastructure.external import (
    SupportCaseSource,
    SupportCommunicationFetcher,
    S3BatchWriter,
    LocalBatchWriter,
    IngestionScheduler,
)
from supportgpt.ingestion.infrastructure.factory import (
    build_case_source,
    build_communication_fetcher,
    build_batch_writer,
    build_checkpoint_store,
    build_ingestion_service,
    create_ingestion_service,
)

__all__ = [
    "CheckpointModel",
    "DynamoDBCheckpointStore",
    "SQLAlchemyCheckpointStore",
    "SupportCaseSource",
    "SupportCommunicationFetcher",
    "S3BatchWriter",
    "LocalBatchWriter",
    "IngestionScheduler",
    "build_case_source",
    "build_communication_fetcher",
    "build_batch_writer",
    "build_checkpoint_store",
    "build_ingestion_service",
    "create_ingestion_service",
]
