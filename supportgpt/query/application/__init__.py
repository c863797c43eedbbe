"""
Query Application Layer
========================

Contains:
- Services: CaseQueryService and the knowledge base port
- DTOs: request/response models
"""

from supportgpt.query.application.dto import QueryRequest, QueryResponse
from supportgpt.query.application.services import CaseQueryService, IKnowledgeBase

__all__ = [
    "QueryRequest",
    "QueryResponse",
    "CaseQueryService",
    "IKnowledgeBase",
]
