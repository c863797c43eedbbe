"""
Ingestion Infrastructure Repositories
======================================

Checkpoint store implementations: DynamoDB (one item under a sentinel
key) and SQLAlchemy (one row in the ``checkpoints`` table).

A stored value that is not a non-blank string is treated as absent and
logged; store read and write failures raise CheckpointException.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from supportgpt.config import CHECKPOINT_KEY
from supportgpt.core import CheckpointException
from supportgpt.infrastructure.aws import AWS_ERRORS, describe_aws_error
from supportgpt.ingestion.application import ICheckpointStore
from supportgpt.ingestion.infrastructure.models import CheckpointModel
from supportgpt.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def _coerce_checkpoint(value: Any) -> Optional[str]:
    """Return a usable case ID, or None for a missing or malformed value."""
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        logger.warning(
            "Malformed checkpoint value, treating as absent",
            extra={"value": repr(value)}
        )
        return None
    return value


class DynamoDBCheckpointStore(ICheckpointStore):
    """
    Checkpoint stored in a DynamoDB table keyed on ``CaseId``.

    Item layout: ``{"CaseId": "LastProcessedCaseId", "LastProcessedCaseId": <case id>}``.
    """

    def __init__(self, table: Any, key: str = CHECKPOINT_KEY):
        self._table = table
        self._key = key

    async def get(self) -> Optional[str]:
        try:
            response = self._table.get_item(Key={"CaseId": self._key})
        except AWS_ERRORS as e:
            raise CheckpointException(
                f"Error retrieving last processed case ID from DynamoDB: {describe_aws_error(e)}"
            ) from e

        item = response.get("Item")
        if not item:
            logger.info("No last processed case ID found in DynamoDB")
            return None
        return _coerce_checkpoint(item.get(self._key))

    async def set(self, case_id: str) -> None:
        try:
            self._table.put_item(Item={"CaseId": self._key, self._key: case_id})
        except AWS_ERRORS as e:
            raise CheckpointException(
                f"Error storing last processed case ID: {describe_aws_error(e)}",
                {"case_id": case_id}
            ) from e
        logger.info("Stored last processed case ID", extra={"case_id": case_id})


class SQLAlchemyCheckpointStore(ICheckpointStore):
    """SQLAlchemy implementation of the checkpoint store."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        key: str = CHECKPOINT_KEY
    ):
        self._session_maker = session_maker
        self._key = key

    async def get(self) -> Optional[str]:
        try:
            async with self._session_maker() as session:
                model = await session.get(CheckpointModel, self._key)
                value = model.value if model is not None else None
        except SQLAlchemyError as e:
            raise CheckpointException(
                f"Error retrieving last processed case ID from database: {e}"
            ) from e

        if model is None:
            logger.info("No last processed case ID found in database")
            return None
        return _coerce_checkpoint(value)

    async def set(self, case_id: str) -> None:
        now = datetime.now(timezone.utc)
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    model = await session.get(CheckpointModel, self._key)
                    if model is None:
                        session.add(CheckpointModel(key=self._key, value=case_id, updated_at=now))
                    else:
                        model.value = case_id
                        model.updated_at = now
        except SQLAlchemyError as e:
            raise CheckpointException(
                f"Error storing last processed case ID: {e}",
                {"case_id": case_id}
            ) from e
        logger.info("Stored last processed case ID", extra={"case_id": case_id})
