"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from supportgpt.core.exceptions import (
    ApplicationException,
    RepositoryException,
    ValidationException,
    ConfigurationException,
    ExternalServiceException,
    CaseIdParseException,
    KnowledgeBaseException,
    IngestionException,
    SourceException,
    StorageException,
    CheckpointException,
)

__all__ = [
    "ApplicationException",
    "RepositoryException",
    "ValidationException",
    "ConfigurationException",
    "ExternalServiceException",
    "CaseIdParseException",
    "KnowledgeBaseException",
    "IngestionException",
    "SourceException",
    "StorageException",
    "CheckpointException",
]
