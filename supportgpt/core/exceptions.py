"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import Optional

from supportgpt.config import ErrorClassification


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class CaseIdParseException(ValidationException):
    """Raised when a case ID carries no parseable creation timestamp."""

    def __init__(self, case_id: str, details: Optional[dict] = None):
        self.case_id = case_id
        super().__init__(f"Invalid case ID format: {case_id}", details)


class KnowledgeBaseException(ExternalServiceException):
    """Exception for knowledge base retrieve-and-generate failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Knowledge Base", message, details)


# ========== Ingestion failures ==========

class IngestionException(ApplicationException):
    """
    Base exception for failures that abort an ingestion run.

    Each subclass maps to one error classification in the run result.
    """

    classification: str = ""


class SourceException(IngestionException):
    """Case listing API failure. The last good checkpoint is preserved."""

    classification = ErrorClassification.SOURCE


class StorageException(IngestionException):
    """Batch file write failure. The batch is discarded, checkpoint unchanged."""

    classification = ErrorClassification.STORAGE


class CheckpointException(IngestionException):
    """Checkpoint store unreachable or unwritable."""

    classification = ErrorClassification.CHECKPOINT
