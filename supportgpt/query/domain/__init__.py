"""
Query Domain Layer
==================

Contains:
- Entities: CaseCitation, GeneratedAnswer, QueryResult
"""

from supportgpt.query.domain.entities import CaseCitation, GeneratedAnswer, QueryResult

__all__ = ["CaseCitation", "GeneratedAnswer", "QueryResult"]
