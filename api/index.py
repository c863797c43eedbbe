"""
Serverless entry points for SupportGPT

- ``handler``: the HTTP API behind an API gateway. The lifespan is off, so
  the ingestion and query services are built on their first request.
- ``ingest_handler``: the scheduled ingestion run
"""
import os

# Set environment variables for serverless
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("INGESTION_SCHEDULE_ENABLED", "false")  # the platform schedules runs

from mangum import Mangum

from supportgpt.main import app
from supportgpt.ingestion.interfaces.handler import lambda_handler as ingest_handler

# Lambda handler for ASGI app (disable lifespan for serverless)
handler = Mangum(app, lifespan="off")

__all__ = ["handler", "ingest_handler"]
