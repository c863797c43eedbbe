"""
Query Domain Entities
=====================

Results of a retrieve-and-generate call over the case knowledge base.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List


@dataclass
class CaseCitation:
    """One retrieved passage and the cases it came from."""
    case_ids: List[str]
    snippet: str = ""
    source_uri: str = ""


@dataclass
class GeneratedAnswer:
    """Raw answer from the knowledge base."""
    text: str
    citations: List[CaseCitation] = field(default_factory=list)


@dataclass
class QueryResult:
    """
    Summary returned to the caller.

    ``case_ids`` lists every cited case once, in first-cited order.
    """
    summary: str
    case_ids: List[str]
    sources_used: int
    latency_ms: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_evidence(self) -> bool:
        return len(self.case_ids) > 0
