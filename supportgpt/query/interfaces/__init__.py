"""
Query Interfaces Layer
=======================

Contains:
- Controllers: FastAPI route handlers
"""

from supportgpt.query.interfaces.controllers import query_router

__all__ = ["query_router"]
