"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="supportgpt", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== AWS ==========
    aws_region: str = Field(
        default="us-east-1",
        description="Region for AWS clients (the Support API is served from us-east-1)"
    )

    # ========== Case Store ==========
    case_store_backend: str = Field(
        default="s3",
        description="Where case batches are written: 's3' or 'local'"
    )
    s3_bucket_name: str = Field(
        default="",
        description="S3 bucket receiving case batch files"
    )
    case_store_path: Path = Field(
        default=Path("./data/cases"),
        description="Directory receiving case batch files for the local backend"
    )

    # ========== Checkpoint Store ==========
    checkpoint_backend: str = Field(
        default="dynamodb",
        description="Where the last processed case ID is kept: 'dynamodb' or 'database'"
    )
    dynamodb_table_name: str = Field(
        default="",
        description="DynamoDB table holding the checkpoint item"
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./supportgpt.db",
        description="SQLAlchemy async URL for the database checkpoint backend"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Ingestion ==========
    cases_per_file: int = Field(
        default=10,
        description="Number of cases written to each batch file",
        ge=1
    )
    include_resolved_cases: bool = Field(
        default=True,
        description="Ask the Support API for resolved cases as well as open ones"
    )
    case_page_size: int = Field(
        default=100,
        description="maxResults per describe_cases page",
        ge=10,
        le=100
    )
    ingestion_schedule_enabled: bool = Field(
        default=False,
        description="Run ingestion periodically inside the API process"
    )
    ingestion_interval_days: int = Field(
        default=7,
        description="Days between scheduled ingestion runs",
        ge=1
    )

    # ========== Bedrock Knowledge Base ==========
    knowledge_base_id: Optional[str] = Field(
        default=None,
        description="Bedrock knowledge base indexing the case bucket"
    )
    bedrock_model_id: Optional[str] = Field(
        default=None,
        description="Model ID or ARN used for retrieve-and-generate"
    )
    max_tokens: int = Field(
        default=2000,
        description="Max tokens for generated summaries",
        ge=1,
        le=8000
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("case_store_backend")
    @classmethod
    def validate_case_store_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in CASE_STORE_BACKENDS:
            raise ValueError(f"case_store_backend must be one of {CASE_STORE_BACKENDS}")
        return v

    @field_validator("checkpoint_backend")
    @classmethod
    def validate_checkpoint_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in CHECKPOINT_BACKENDS:
            raise ValueError(f"checkpoint_backend must be one of {CHECKPOINT_BACKENDS}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# ========== Constants ==========

CASE_STORE_BACKENDS = ("s3", "local")
CHECKPOINT_BACKENDS = ("dynamodb", "database")

# Checkpoint record: one item keyed by a fixed sentinel
CHECKPOINT_KEY = "LastProcessedCaseId"

# Batch file layout
ARTIFACT_PREFIX = "cases_"
ARTIFACT_SUFFIX = ".txt"
ARTIFACT_SEPARATOR = "=" * 50

CASE_ID_PREFIX = "case-"
NO_NEW_CASES_MESSAGE = "no new cases"


class CaseStatus(str):
    """Case statuses reported by the Support API."""
    OPENED = "opened"
    PENDING_CUSTOMER_ACTION = "pending-customer-action"
    REOPENED = "reopened"
    RESOLVED = "resolved"
    UNASSIGNED = "unassigned"
    WORK_IN_PROGRESS = "work-in-progress"


class ErrorClassification(str):
    """Failure classes reported in a run result."""
    SOURCE = "source_error"
    STORAGE = "storage_error"
    CHECKPOINT = "checkpoint_error"


# Global settings instance
settings = get_settings()
