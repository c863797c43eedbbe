"""
Ingestion Interfaces Layer
===========================

Interface adapters for the case ingestion module.

Contains:
- Controllers: FastAPI route handlers
- Handler: scheduled serverless entry point
"""

from supportgpt.ingestion.interfaces.controllers import ingestion_router

__all__ = ["ingestion_router"]
