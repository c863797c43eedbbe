"""
AWS Client Infrastructure
==========================

Factory for boto3 clients and resources used by the ingestion and query
modules, with bounded timeouts so no single upstream call hangs a run.
"""

from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from supportgpt.config import settings

# Each call is one bounded request; retries are the SDK's transport-level ones
_CLIENT_CONFIG = Config(
    connect_timeout=10,
    read_timeout=60,
    retries={"max_attempts": 3, "mode": "standard"},
)

AWS_ERRORS = (ClientError, BotoCoreError)


def create_client(service_name: str, region_name: Optional[str] = None) -> Any:
    """
    Create a boto3 client for ``service_name``.

    Args:
        service_name: e.g. "support", "s3", "bedrock-agent-runtime"
        region_name: Overrides settings.aws_region
    """
    return boto3.client(
        service_name,
        region_name=region_name or settings.aws_region,
        config=_CLIENT_CONFIG,
    )


def create_resource(service_name: str, region_name: Optional[str] = None) -> Any:
    """Create a boto3 resource for ``service_name``."""
    return boto3.resource(
        service_name,
        region_name=region_name or settings.aws_region,
        config=_CLIENT_CONFIG,
    )


def describe_aws_error(error: Exception) -> str:
    """``Code - Message`` for ClientError, str() for anything else."""
    if isinstance(error, ClientError):
        err = error.response.get("Error", {})
        return f"{err.get('Code', 'Unknown')} - {err.get('Message', str(error))}"
    return str(error)
