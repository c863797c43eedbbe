"""
Ingestion Domain Entities
==========================

Domain entities for the case ingestion module.

Pure Python business objects: support cases and their communications,
the bounded batch accumulated by a run, the run's state machine and
its terminal result.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from supportgpt.config import CaseStatus, NO_NEW_CASES_MESSAGE
from supportgpt.core import CaseIdParseException, ValidationException
from supportgpt.ingestion.domain.value_objects import CaseIdParser, ArtifactFormatter


@dataclass(frozen=True)
class Case:
    """A support case as listed by the upstream API."""
    case_id: str
    status: str = CaseStatus.OPENED
    subject: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "Case":
        """Build from a describe_cases ``CaseDetails`` item."""
        return cls(
            case_id=data.get("caseId", "N/A"),
            status=data.get("status", CaseStatus.OPENED),
            subject=data.get("subject", ""),
        )

    @property
    def is_resolved(self) -> bool:
        return self.status == CaseStatus.RESOLVED

    @property
    def created_at(self) -> Optional[datetime]:
        """Creation time derived from the case ID, None if the ID carries none."""
        try:
            return CaseIdParser.parse_timestamp(self.case_id)
        except CaseIdParseException:
            return None


@dataclass(frozen=True)
class Communication:
    """One message on a case. Order is the order the API returned it in."""
    case_id: str
    body: str

    @classmethod
    def from_api(cls, data: dict) -> "Communication":
        return cls(
            case_id=data.get("caseId", ""),
            body=data.get("body", ""),
        )


@dataclass(frozen=True)
class CaseRecord:
    """A case materialized as one text block."""
    case_id: str
    text: str

    @classmethod
    def from_communications(cls, case_id: str, communications: List[Communication]) -> "CaseRecord":
        """Join bodies with blank lines, keeping API order."""
        return cls(case_id=case_id, text="\n\n".join(c.body for c in communications))

    @property
    def is_empty(self) -> bool:
        return not self.text


class Batch:
    """
    Ordered mapping of case ID to case text, bounded to ``capacity`` entries.

    A batch is frozen before it is handed to a writer; a frozen batch
    rejects further additions.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValidationException("Batch capacity must be at least 1")
        self.capacity = capacity
        self._records: Dict[str, str] = {}
        self._frozen = False

    def add(self, case_id: str, text: str) -> None:
        """Append a case. Duplicates, additions past capacity and additions after freeze are rejected."""
        if self._frozen:
            raise ValidationException("Batch is frozen", {"case_id": case_id})
        if self.is_full:
            raise ValidationException("Batch is full", {"capacity": self.capacity})
        if case_id in self._records:
            raise ValidationException("Case already in batch", {"case_id": case_id})
        self._records[case_id] = text

    def freeze(self) -> "Batch":
        self._frozen = True
        return self

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def is_full(self) -> bool:
        return len(self._records) >= self.capacity

    @property
    def is_empty(self) -> bool:
        return not self._records

    @property
    def case_ids(self) -> List[str]:
        return list(self._records)

    @property
    def last_case_id(self) -> Optional[str]:
        return next(reversed(self._records), None)

    @property
    def artifact_name(self) -> str:
        return ArtifactFormatter.name_for(self._records)

    def render(self) -> str:
        return ArtifactFormatter.render(self._records.items())

    def __len__(self) -> int:
        return len(self._records)


class IngestionState(str, Enum):
    """States of a single ingestion run."""
    IDLE = "idle"
    READING_CHECKPOINT = "reading_checkpoint"
    STREAMING = "streaming"
    ACCUMULATING = "accumulating"
    FLUSHING = "flushing"
    CHECKPOINTING = "checkpointing"
    DRAINING = "draining"
    DONE = "done"


# Any non-terminal state may also move straight to DONE when the run aborts.
_TRANSITIONS = {
    IngestionState.IDLE: {IngestionState.READING_CHECKPOINT},
    IngestionState.READING_CHECKPOINT: {IngestionState.STREAMING},
    IngestionState.STREAMING: {IngestionState.ACCUMULATING},
    IngestionState.ACCUMULATING: {IngestionState.FLUSHING, IngestionState.DRAINING},
    IngestionState.FLUSHING: {IngestionState.CHECKPOINTING},
    IngestionState.CHECKPOINTING: {IngestionState.ACCUMULATING},
    IngestionState.DRAINING: {IngestionState.FLUSHING},
    IngestionState.DONE: set(),
}


@dataclass
class IngestionRun:
    """
    One invocation of the ingestion pipeline.

    Owns the in-memory batch being accumulated and the bookkeeping
    reported in the result. A fresh run is created per invocation; a run
    in DONE accepts no further transitions.
    """
    batch_size: int
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    state: IngestionState = IngestionState.IDLE
    starting_checkpoint: Optional[str] = None
    checkpoint: Optional[str] = None
    artifacts: List[str] = field(default_factory=list)
    cases_seen: int = 0
    cases_skipped_empty: int = 0
    history: List[IngestionState] = field(default_factory=list)

    def __post_init__(self):
        self.batch = Batch(self.batch_size)
        self.history.append(self.state)

    def transition(self, target: IngestionState) -> None:
        """Move to ``target``, raising ValidationException on an illegal move."""
        allowed = _TRANSITIONS[self.state]
        if self.state != IngestionState.DONE:
            allowed = allowed | {IngestionState.DONE}
        if target not in allowed:
            raise ValidationException(
                f"Illegal ingestion state transition {self.state.value} -> {target.value}",
                {"run_id": self.run_id}
            )
        self.state = target
        self.history.append(target)

    def take_batch(self) -> Batch:
        """Freeze the current batch for writing and start a fresh one."""
        batch = self.batch.freeze()
        self.batch = Batch(self.batch_size)
        return batch

    @property
    def is_done(self) -> bool:
        return self.state == IngestionState.DONE


@dataclass
class RunResult:
    """
    Terminal outcome of an ingestion run.

    Exactly one of ``artifacts`` (non-empty), ``message`` or ``error`` describes it.
    """
    artifacts: List[str] = field(default_factory=list)
    message: Optional[str] = None
    error: Optional[str] = None
    detail: Optional[str] = None
    run_id: Optional[str] = None
    checkpoint: Optional[str] = None
    cases_seen: int = 0
    cases_skipped_empty: int = 0

    @classmethod
    def from_run(cls, run: IngestionRun) -> "RunResult":
        """Success result for a finished run: artifacts, or the idle message."""
        return cls(
            artifacts=list(run.artifacts),
            message=None if run.artifacts else NO_NEW_CASES_MESSAGE,
            run_id=run.run_id,
            checkpoint=run.checkpoint,
            cases_seen=run.cases_seen,
            cases_skipped_empty=run.cases_skipped_empty,
        )

    @classmethod
    def failure(cls, run: IngestionRun, classification: str, detail: str) -> "RunResult":
        return cls(
            artifacts=list(run.artifacts),
            error=classification,
            detail=detail,
            run_id=run.run_id,
            checkpoint=run.checkpoint,
            cases_seen=run.cases_seen,
            cases_skipped_empty=run.cases_skipped_empty,
        )

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def has_new_cases(self) -> bool:
        return not self.is_error and bool(self.artifacts)

    def to_dict(self) -> dict:
        """The caller-facing shape: artifacts, message, or error with detail."""
        if self.is_error:
            return {"error": self.error, "detail": self.detail}
        if self.artifacts:
            return {"artifacts": list(self.artifacts)}
        return {"message": self.message}
