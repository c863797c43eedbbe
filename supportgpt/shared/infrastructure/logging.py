"""
Structured Logging
==================

JSON-structured logging with correlation and run ID tracking.

Provides:
- Structured JSON logs (CloudWatch and other aggregators parse them as-is)
- Correlation ID for HTTP request tracing
- Run ID for tracing one ingestion run across modules
- Latency timing for upstream calls

Usage:
    from supportgpt.shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Batch written", extra={"artifact": "cases_a-b.txt"})
"""

import logging
import sys
import time
from datetime import datetime, timezone
from typing import Any, Optional
from contextlib import contextmanager

from pythonjsonlogger import jsonlogger

SENSITIVE_KEYS = ("password", "secret", "api_key", "access_key", "session_token")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter adding timestamp, environment and trace IDs.

    Values under sensitive-looking keys are redacted.
    """

    def __init__(self, *args, environment: str = "unknown", **kwargs):
        super().__init__(*args, **kwargs)
        self._environment = environment

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        for trace_key in ("correlation_id", "run_id"):
            if hasattr(record, trace_key):
                log_record[trace_key] = getattr(record, trace_key)

        log_record["environment"] = self._environment

        for key, value in list(log_record.items()):
            if isinstance(value, str) and any(s in key.lower() for s in SENSITIVE_KEYS):
                log_record[key] = "***REDACTED***"


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
) -> None:
    """
    Configure structured JSON logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        environment: Environment name for log context
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))
    handler.setFormatter(CustomJsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        environment=environment,
    ))
    root_logger.addHandler(handler)

    # Silence noisy loggers
    for noisy in ("botocore", "boto3", "urllib3", "apscheduler.executors"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        logging.Logger: Configured logger instance
    """
    return logging.getLogger(name)


def get_context_logger(
    name: str,
    correlation_id: Optional[str] = None,
    run_id: Optional[str] = None,
) -> logging.Logger | logging.LoggerAdapter:
    """
    Get a logger that stamps every record with trace IDs.

    Args:
        name: Logger name
        correlation_id: HTTP request correlation ID
        run_id: Ingestion run ID

    Returns:
        The plain logger when no IDs are given, otherwise a LoggerAdapter
    """
    logger = get_logger(name)
    context = {}
    if correlation_id:
        context["correlation_id"] = correlation_id
    if run_id:
        context["run_id"] = run_id
    if not context:
        return logger
    return _MergingAdapter(logger, context)


class _MergingAdapter(logging.LoggerAdapter):
    """LoggerAdapter that keeps per-call ``extra`` alongside the bound context."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


@contextmanager
def log_latency(logger: logging.Logger | logging.LoggerAdapter, operation: str, **extra_context: Any):
    """
    Context manager for measuring and logging operation latency.

    Usage:
        with log_latency(logger, "describe_cases", page=3):
            response = client.describe_cases(**kwargs)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            f"{operation} completed",
            extra={
                "operation": operation,
                "latency_ms": round(latency_ms, 2),
                **extra_context,
            },
        )
