"""
Settings validation and pipeline wiring from settings.
"""

import pytest
from pydantic import ValidationError

from supportgpt.config import Settings
from supportgpt.core import ConfigurationException
from supportgpt.infrastructure.database import close_database, get_engine, init_database
from supportgpt.ingestion.infrastructure import (
    LocalBatchWriter, build_batch_writer, build_checkpoint_store, create_ingestion_service
)


def test_backends_are_normalized():
    config = Settings(case_store_backend="LOCAL", checkpoint_backend="Database")
    assert config.case_store_backend == "local"
    assert config.checkpoint_backend == "database"


@pytest.mark.parametrize("field", ["case_store_backend", "checkpoint_backend"])
def test_unknown_backend_rejected(field):
    with pytest.raises(ValidationError):
        Settings(**{field: "ftp"})


def test_invalid_environment_rejected():
    with pytest.raises(ValidationError):
        Settings(environment="qa")


def test_batch_size_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(cases_per_file=0)


def test_local_writer_from_settings(tmp_path):
    writer = build_batch_writer(Settings(case_store_backend="local", case_store_path=tmp_path))
    assert isinstance(writer, LocalBatchWriter)


def test_s3_writer_requires_bucket():
    with pytest.raises(ConfigurationException):
        build_batch_writer(Settings(case_store_backend="s3", s3_bucket_name=""))


def test_dynamodb_checkpoint_requires_table():
    with pytest.raises(ConfigurationException):
        build_checkpoint_store(Settings(checkpoint_backend="dynamodb", dynamodb_table_name=""))


@pytest.mark.asyncio
async def test_create_ingestion_service_unconfigured_is_none():
    config = Settings(case_store_backend="s3", s3_bucket_name="")
    assert await create_ingestion_service(config) is None


@pytest.mark.asyncio
async def test_create_ingestion_service_prepares_fresh_database(tmp_path):
    config = Settings(
        checkpoint_backend="database",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'fresh.db'}",
        case_store_backend="local",
        case_store_path=tmp_path / "cases",
    )
    try:
        service = await create_ingestion_service(config)
        assert service is not None
        assert await service.get_checkpoint() is None
    finally:
        await close_database()


@pytest.mark.asyncio
async def test_database_engine_lifecycle(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'engine.db'}"
    engine = init_database(url)
    try:
        assert init_database(url) is engine
        assert get_engine() is engine
    finally:
        await close_database()

    with pytest.raises(RuntimeError):
        get_engine()
