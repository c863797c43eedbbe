"""
Ingestion Application Layer
============================

Application layer for the case ingestion module.

Contains:
- Services: the ingestion orchestrator and the ports it drives
- DTOs: Data transfer objects for API serialization
"""

from supportgpt.ingestion.application.dto import (
    IngestionRunResponse,
    CheckpointResponse,
)
from supportgpt.ingestion.application.services import (
    IngestionService,
    ICaseSource,
    ICommunicationFetcher,
    IBatchWriter,
    ICheckpointStore,
)

__all__ = [
    # DTOs
    "IngestionRunResponse",
    "CheckpointResponse",
    # Services
    "IngestionService",
    # Ports
    "ICaseSource",
    "ICommunicationFetcher",
    "IBatchWriter",
    "ICheckpointStore",
]
