"""
Shared Kernel Module
====================

This module contains shared infrastructure used across all bounded
contexts (Case Ingestion and Case Query).

Architecture Pattern: Modular Monolith
- Each module (ingestion, query) is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add ingestion or query business logic to the shared kernel.
"""

__version__ = "1.0.0"
