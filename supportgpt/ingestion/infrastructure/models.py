"""
Ingestion Infrastructure Models
================================

SQLAlchemy ORM models for the ingestion module.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from supportgpt.infrastructure.database import Base


class CheckpointModel(Base):
    """
    Key-value checkpoint row.

    Maps to the 'checkpoints' table. The ingestion checkpoint lives under
    the ``LastProcessedCaseId`` key.
    """
    __tablename__ = "checkpoints"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )
