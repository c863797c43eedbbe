"""
Ingestion External Service Adapters
====================================

Adapters for the systems an ingestion run talks to:
- AWS Support API (case listing and communications)
- Case store (S3 bucket or local directory)
- APScheduler for the periodic in-process trigger
"""

import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from supportgpt.core import CaseIdParseException, SourceException, StorageException
from supportgpt.infrastructure.aws import AWS_ERRORS, describe_aws_error
from supportgpt.ingestion.application import (
    ICaseSource, ICommunicationFetcher, IBatchWriter
)
from supportgpt.ingestion.domain import (
    Batch, Case, CaseIdParser, CaseRecord, Communication
)
from supportgpt.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)


class SupportCaseSource(ICaseSource):
    """
    Case listing backed by ``support.describe_cases``.

    The API's ``afterTime`` bound is inclusive, so the checkpoint case
    itself and anything whose ID timestamp is earlier than the cursor are
    skipped client-side. Cases sharing the cursor's timestamp are kept.
    """

    def __init__(
        self,
        client: Any,
        include_resolved_cases: bool = True,
        page_size: int = 100
    ):
        self._client = client
        self._include_resolved = include_resolved_cases
        self._page_size = page_size

    async def list_cases(self, after_case_id: Optional[str] = None) -> AsyncIterator[Case]:
        kwargs = {
            "includeResolvedCases": self._include_resolved,
            "maxResults": self._page_size,
        }
        cursor = self._cursor_for(after_case_id)
        if cursor is not None:
            kwargs["afterTime"] = cursor.isoformat()

        page = 0
        while True:
            page += 1
            try:
                with log_latency(logger, "describe_cases", page=page):
                    response = self._client.describe_cases(**kwargs)
            except AWS_ERRORS as e:
                raise SourceException(
                    f"describe_cases failed: {describe_aws_error(e)}",
                    {"page": page}
                ) from e

            for item in response.get("cases", []):
                case = Case.from_api(item)
                if self._already_processed(case, after_case_id, cursor):
                    logger.debug("Skipping already processed case", extra={"case_id": case.case_id})
                    continue
                yield case

            next_token = response.get("nextToken")
            if not next_token:
                break
            kwargs["nextToken"] = next_token

    @staticmethod
    def _cursor_for(after_case_id: Optional[str]) -> Optional[datetime]:
        if not after_case_id:
            return None
        try:
            return CaseIdParser.parse_timestamp(after_case_id)
        except CaseIdParseException as e:
            logger.warning(
                "Unable to parse last processed case ID, listing without a time filter",
                extra={"case_id": after_case_id, "error": e.message}
            )
            return None

    @staticmethod
    def _already_processed(
        case: Case,
        after_case_id: Optional[str],
        cursor: Optional[datetime]
    ) -> bool:
        if after_case_id and case.case_id == after_case_id:
            return True
        if cursor is None:
            return False
        created_at = case.created_at
        return created_at is not None and created_at < cursor


class SupportCommunicationFetcher(ICommunicationFetcher):
    """
    Case text from ``support.describe_communications``.

    Follows ``nextToken`` so long cases are read in full. Any upstream
    error yields '' for that case only.
    """

    def __init__(self, client: Any):
        self._client = client

    async def fetch_text(self, case_id: str) -> str:
        logger.info("Retrieving communications", extra={"case_id": case_id})

        communications = []
        kwargs = {"caseId": case_id}
        try:
            while True:
                with log_latency(logger, "describe_communications", case_id=case_id):
                    response = self._client.describe_communications(**kwargs)
                communications.extend(
                    Communication.from_api(c) for c in response.get("communications", [])
                )
                next_token = response.get("nextToken")
                if not next_token:
                    break
                kwargs["nextToken"] = next_token
        except AWS_ERRORS as e:
            logger.error(
                "Error retrieving communications",
                extra={"case_id": case_id, "error": describe_aws_error(e)}
            )
            return ""

        if not communications:
            logger.info("No communications found", extra={"case_id": case_id})
            return ""

        record = CaseRecord.from_communications(case_id, communications)
        logger.info(
            "Retrieved communications",
            extra={
                "case_id": case_id,
                "communications": len(communications),
                "text_length": len(record.text)
            }
        )
        return record.text


class S3BatchWriter(IBatchWriter):
    """Writes each batch as a single S3 object, which S3 makes visible atomically."""

    def __init__(self, client: Any, bucket: str):
        self._client = client
        self._bucket = bucket

    async def write(self, batch: Batch) -> str:
        name = batch.artifact_name
        try:
            with log_latency(logger, "put_object", artifact=name):
                self._client.put_object(
                    Bucket=self._bucket,
                    Key=name,
                    Body=batch.render().encode("utf-8"),
                    ContentType="text/plain; charset=utf-8",
                )
        except AWS_ERRORS as e:
            raise StorageException(
                f"Error uploading {name} to S3 bucket {self._bucket}: {describe_aws_error(e)}",
                {"artifact": name, "bucket": self._bucket}
            ) from e

        logger.info("Uploaded batch file", extra={"artifact": name, "bucket": self._bucket})
        return name


class LocalBatchWriter(IBatchWriter):
    """
    Writes batch files into a local directory.

    The body goes to a hidden temp file first and is renamed into place,
    so readers never see a partial file. Batch names longer than the
    filesystem's name limit are split into nested directories; joining
    the path components below ``directory`` gives back the batch name.
    """

    MAX_NAME_BYTES = 255

    def __init__(self, directory: Path):
        self._directory = Path(directory)

    def path_for(self, name: str) -> Path:
        """Location of the batch file called ``name``."""
        segments = []
        current = ""
        for char in name:
            if len((current + char).encode("utf-8")) > self.MAX_NAME_BYTES:
                segments.append(current)
                current = ""
            current += char
        segments.append(current)
        return self._directory.joinpath(*segments)

    async def write(self, batch: Batch) -> str:
        name = batch.artifact_name
        target = self.path_for(name)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=".", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(batch.render())
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, target)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageException(
                f"Error writing {name} to {self._directory}: {e}",
                {"artifact": name, "directory": str(self._directory)}
            ) from e

        logger.info("Wrote batch file", extra={"artifact": name, "path": str(target)})
        return name


class IngestionScheduler:
    """
    Wrapper for APScheduler running ingestion on a fixed interval.

    The job allows a single instance and coalesces missed runs, so the
    in-process trigger never starts a run while another is in flight.
    """

    JOB_ID = "case_ingestion"

    def __init__(self, interval_days: int = 7):
        self.interval_days = interval_days
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    async def start(self, job_func: Callable[[], Awaitable[Any]]) -> None:
        """Start the scheduler with the given job function."""
        if self._running:
            logger.warning("Ingestion scheduler already running")
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            job_func,
            "interval",
            days=self.interval_days,
            id=self.JOB_ID,
            name="Support Case Ingestion",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
            replace_existing=True
        )
        self._scheduler.start()
        self._running = True

        logger.info("Ingestion scheduler started", extra={"interval_days": self.interval_days})

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=True)

        self._running = False
        logger.info("Ingestion scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def next_run_time(self) -> Optional[datetime]:
        if not self._scheduler:
            return None
        job = self._scheduler.get_job(self.JOB_ID)
        return job.next_run_time if job else None
