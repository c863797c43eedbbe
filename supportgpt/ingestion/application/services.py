"""
Ingestion Application Services
===============================

Ports for the four collaborators of an ingestion run and the service
that orchestrates them.

Ordering contract: a batch is written before the checkpoint is advanced
past it, never the reverse. A run that dies between the two leaves the
checkpoint behind already-written data, so the next run re-delivers
those cases (at-least-once) rather than skipping them.
"""

import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

from supportgpt.core import IngestionException, CheckpointException
from supportgpt.ingestion.domain import (
    Batch, Case, IngestionRun, IngestionState, RunResult
)
from supportgpt.shared.infrastructure.logging import get_context_logger


# ========== Ports ==========

class ICaseSource(ABC):
    """Lazy listing of support cases newer than a checkpoint."""

    @abstractmethod
    def list_cases(self, after_case_id: Optional[str] = None) -> AsyncIterator[Case]:
        """
        Yield cases created after ``after_case_id``.

        Finite per call and forward-only; a new call starts over from
        the given case ID. Raises SourceException if a page fetch fails.
        """


class ICommunicationFetcher(ABC):
    """Case text retrieval."""

    @abstractmethod
    async def fetch_text(self, case_id: str) -> str:
        """Return the case's communications joined into one block, or ''."""


class IBatchWriter(ABC):
    """Durable store for batch files."""

    @abstractmethod
    async def write(self, batch: Batch) -> str:
        """
        Persist the batch as one file and return its name.

        All-or-nothing. Raises StorageException on failure.
        """


class ICheckpointStore(ABC):
    """Single-value store for the last committed case ID."""

    @abstractmethod
    async def get(self) -> Optional[str]:
        """Return the last committed case ID, or None when absent."""

    @abstractmethod
    async def set(self, case_id: str) -> None:
        """Record ``case_id`` as committed. Raises CheckpointException on failure."""


# ========== Application Services ==========

class IngestionService:
    """
    Incremental case ingestion.

    Reads the checkpoint, streams newer cases, accumulates the non-empty
    ones into batches of ``batch_size``, writes each full batch and then
    advances the checkpoint to its last case. A trailing partial batch is
    written and checkpointed the same way once the stream ends.

    Runs are sequential and must not overlap against the same checkpoint;
    the caller's trigger is responsible for that.
    """

    def __init__(
        self,
        case_source: ICaseSource,
        fetcher: ICommunicationFetcher,
        writer: IBatchWriter,
        checkpoints: ICheckpointStore,
        batch_size: int = 10
    ):
        self._source = case_source
        self._fetcher = fetcher
        self._writer = writer
        self._checkpoints = checkpoints
        self._batch_size = batch_size

    async def run(self) -> RunResult:
        """
        Execute one ingestion run.

        Returns:
            RunResult with the written artifacts, the "no new cases"
            message, or an error classification. Exceptions other than
            IngestionException propagate.
        """
        run = IngestionRun(batch_size=self._batch_size)
        logger = get_context_logger(__name__, run_id=run.run_id)
        logger.info("Ingestion run started", extra={"batch_size": self._batch_size})

        try:
            await self._execute(run, logger)
        except IngestionException as e:
            failed_in = run.state.value
            run.transition(IngestionState.DONE)
            logger.error(
                "Ingestion run failed",
                extra={
                    "classification": e.classification,
                    "error": e.message,
                    "state": failed_in,
                    "artifacts_written": len(run.artifacts),
                    "checkpoint": run.checkpoint
                }
            )
            return RunResult.failure(run, e.classification, e.message)

        result = RunResult.from_run(run)
        if result.has_new_cases:
            logger.info(
                "Ingestion run completed",
                extra={
                    "artifacts_written": len(result.artifacts),
                    "cases_seen": run.cases_seen,
                    "cases_skipped_empty": run.cases_skipped_empty,
                    "checkpoint": run.checkpoint
                }
            )
        else:
            logger.info(
                "No new cases found after the last processed case ID",
                extra={"checkpoint": run.checkpoint, "cases_seen": run.cases_seen}
            )
        return result

    async def get_checkpoint(self) -> Optional[str]:
        """Current checkpoint, for status endpoints."""
        return await self._checkpoints.get()

    async def _execute(self, run: IngestionRun, logger: logging.LoggerAdapter) -> None:
        run.transition(IngestionState.READING_CHECKPOINT)
        run.starting_checkpoint = await self._checkpoints.get()
        run.checkpoint = run.starting_checkpoint

        run.transition(IngestionState.STREAMING)
        seen = set()

        async for case in self._source.list_cases(run.starting_checkpoint):
            if run.state == IngestionState.STREAMING:
                run.transition(IngestionState.ACCUMULATING)

            if case.case_id in seen:
                logger.warning("Duplicate case in stream skipped", extra={"case_id": case.case_id})
                continue
            seen.add(case.case_id)
            run.cases_seen += 1

            text = await self._fetcher.fetch_text(case.case_id)
            if not text:
                run.cases_skipped_empty += 1
                logger.info("Case has no communication text, skipping", extra={"case_id": case.case_id})
                continue

            run.batch.add(case.case_id, text)
            if run.batch.is_full:
                await self._flush(run, logger)
                run.transition(IngestionState.ACCUMULATING)

        if run.state == IngestionState.STREAMING:
            run.transition(IngestionState.DONE)
            return

        run.transition(IngestionState.DRAINING)
        if not run.batch.is_empty:
            await self._flush(run, logger)
        run.transition(IngestionState.DONE)

    async def _flush(self, run: IngestionRun, logger: logging.LoggerAdapter) -> None:
        batch = run.take_batch()

        run.transition(IngestionState.FLUSHING)
        artifact = await self._writer.write(batch)
        run.artifacts.append(artifact)
        logger.info("Batch written", extra={"artifact": artifact, "batch_size": len(batch)})

        run.transition(IngestionState.CHECKPOINTING)
        try:
            await self._checkpoints.set(batch.last_case_id)
        except CheckpointException as e:
            # The batch is stored but the checkpoint lags behind it
            raise CheckpointException(
                f"{e.message}; batch {artifact} was written but the checkpoint "
                f"was not advanced to {batch.last_case_id}",
                {**e.details, "artifact": artifact, "case_id": batch.last_case_id}
            ) from e
        run.checkpoint = batch.last_case_id
        logger.info("Checkpoint advanced", extra={"case_id": batch.last_case_id})
