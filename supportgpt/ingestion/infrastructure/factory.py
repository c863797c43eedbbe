"""
Ingestion Wiring
================

Builds an IngestionService from settings. Used by the API lifespan and by
the scheduled serverless handler.
"""

from typing import Optional

from supportgpt.config import Settings, settings as default_settings
from supportgpt.core import ConfigurationException
from supportgpt.infrastructure.aws import create_client, create_resource
from supportgpt.ingestion.application import (
    IngestionService, ICaseSource, ICommunicationFetcher, IBatchWriter, ICheckpointStore
)
from supportgpt.ingestion.infrastructure.external import (
    SupportCaseSource, SupportCommunicationFetcher, S3BatchWriter, LocalBatchWriter
)
from supportgpt.ingestion.infrastructure.repositories import (
    DynamoDBCheckpointStore, SQLAlchemyCheckpointStore
)
from supportgpt.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def build_case_source(config: Settings, support_client=None) -> ICaseSource:
    return SupportCaseSource(
        support_client or create_client("support"),
        include_resolved_cases=config.include_resolved_cases,
        page_size=config.case_page_size
    )


def build_communication_fetcher(config: Settings, support_client=None) -> ICommunicationFetcher:
    return SupportCommunicationFetcher(support_client or create_client("support"))


def build_batch_writer(config: Settings) -> IBatchWriter:
    """S3 or local directory writer, per ``case_store_backend``."""
    if config.case_store_backend == "local":
        return LocalBatchWriter(config.case_store_path)

    if not config.s3_bucket_name:
        raise ConfigurationException("S3_BUCKET_NAME must be set for the s3 case store")
    return S3BatchWriter(create_client("s3"), config.s3_bucket_name)


def build_checkpoint_store(config: Settings) -> ICheckpointStore:
    """DynamoDB or SQL checkpoint store, per ``checkpoint_backend``."""
    if config.checkpoint_backend == "database":
        from supportgpt.infrastructure.database import init_database, get_session_maker

        init_database(config.database_url)
        return SQLAlchemyCheckpointStore(get_session_maker())

    if not config.dynamodb_table_name:
        raise ConfigurationException("DYNAMODB_TABLE_NAME must be set for the dynamodb checkpoint store")
    table = create_resource("dynamodb").Table(config.dynamodb_table_name)
    return DynamoDBCheckpointStore(table)


def build_ingestion_service(config: Optional[Settings] = None) -> IngestionService:
    """
    Assemble the pipeline from configuration.

    Raises:
        ConfigurationException: If the selected backends lack a location
    """
    config = config or default_settings
    support_client = create_client("support")
    return IngestionService(
        case_source=build_case_source(config, support_client),
        fetcher=build_communication_fetcher(config, support_client),
        writer=build_batch_writer(config),
        checkpoints=build_checkpoint_store(config),
        batch_size=config.cases_per_file
    )


async def create_ingestion_service(config: Optional[Settings] = None) -> Optional[IngestionService]:
    """
    Build the pipeline for a long-lived app.

    Returns None, with a warning, when the selected backends are not
    configured. Creates the checkpoint table for the database backend.
    """
    config = config or default_settings
    try:
        service = build_ingestion_service(config)
    except ConfigurationException as e:
        logger.warning(f"Ingestion service not available: {e.message}")
        return None

    if config.checkpoint_backend == "database":
        from supportgpt.infrastructure.database import create_tables
        logger.info("Creating checkpoint table")
        await create_tables()
    return service
