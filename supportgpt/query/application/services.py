"""
Query Application Services
===========================

Service answering free-text questions from the case knowledge base.
"""

import time
from abc import ABC, abstractmethod
from typing import List

from supportgpt.query.domain import CaseCitation, GeneratedAnswer, QueryResult
from supportgpt.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Ports ==========

class IKnowledgeBase(ABC):
    """Interface for retrieval plus generation over the case store."""

    @abstractmethod
    async def retrieve_and_generate(self, query: str) -> GeneratedAnswer:
        """Answer ``query`` from indexed cases. Raises KnowledgeBaseException."""


# ========== Application Services ==========

class CaseQueryService:
    """
    Summarizes past cases relevant to a query.

    The query is forwarded unchanged; the knowledge base owns retrieval
    and prompting.
    """

    def __init__(self, knowledge_base: IKnowledgeBase):
        self._knowledge_base = knowledge_base

    async def query(self, text: str) -> QueryResult:
        """
        Answer a query.

        Args:
            text: The user's question

        Returns:
            QueryResult with the summary and the case IDs used as evidence
        """
        start_time = time.perf_counter()

        answer = await self._knowledge_base.retrieve_and_generate(text)
        case_ids = self._collect_case_ids(answer.citations)
        latency_ms = int((time.perf_counter() - start_time) * 1000)

        logger.info(
            "Query answered",
            extra={"cases_cited": len(case_ids), "latency_ms": latency_ms}
        )
        return QueryResult(
            summary=answer.text,
            case_ids=case_ids,
            sources_used=len(answer.citations),
            latency_ms=latency_ms
        )

    @staticmethod
    def _collect_case_ids(citations: List[CaseCitation]) -> List[str]:
        ordered = {}
        for citation in citations:
            for case_id in citation.case_ids:
                ordered.setdefault(case_id, None)
        return list(ordered)
