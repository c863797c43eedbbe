"""
Shared fixtures: in-memory fakes of the four ingestion ports.
"""

from typing import Dict, Iterable, List, Optional

import pytest

from supportgpt.core import CheckpointException, SourceException, StorageException
from supportgpt.ingestion.application import (
    ICaseSource, ICommunicationFetcher, IBatchWriter, ICheckpointStore, IngestionService
)
from supportgpt.ingestion.domain import Batch, Case


def case_id(n: int) -> str:
    """Ordered case IDs: case-2024-03-01T10:00:01 ... (n < 3600)."""
    return f"case-2024-03-01T10:{n // 60:02d}:{n % 60:02d}"


class FakeCaseSource(ICaseSource):
    """Yields its cases with IDs strictly greater than the cursor."""

    def __init__(self, case_ids: Iterable[str], fail_after: Optional[int] = None):
        self.case_ids = list(case_ids)
        self.fail_after = fail_after
        self.calls: List[Optional[str]] = []

    async def list_cases(self, after_case_id=None):
        self.calls.append(after_case_id)
        yielded = 0
        for cid in self.case_ids:
            if after_case_id is not None and cid <= after_case_id:
                continue
            if self.fail_after is not None and yielded == self.fail_after:
                raise SourceException("describe_cases failed: ThrottlingException - Rate exceeded")
            yielded += 1
            yield Case(case_id=cid)


class FakeFetcher(ICommunicationFetcher):
    def __init__(self, empty: Iterable[str] = ()):
        self.empty = set(empty)
        self.fetched: List[str] = []

    async def fetch_text(self, case_id: str) -> str:
        self.fetched.append(case_id)
        if case_id in self.empty:
            return ""
        return f"Hello, my instance {case_id} is down.\n\nPlease reboot it."


class FakeWriter(IBatchWriter):
    def __init__(self, fail_on_call: Optional[int] = None):
        self.artifacts: Dict[str, List[str]] = {}
        self.bodies: Dict[str, str] = {}
        self.fail_on_call = fail_on_call
        self.calls = 0

    async def write(self, batch: Batch) -> str:
        self.calls += 1
        if self.fail_on_call == self.calls:
            raise StorageException("Error uploading to S3: AccessDenied - Access Denied")
        assert batch.is_frozen
        name = batch.artifact_name
        self.artifacts[name] = batch.case_ids
        self.bodies[name] = batch.render()
        return name


class FakeCheckpointStore(ICheckpointStore):
    def __init__(self, value: Optional[str] = None, fail_set: bool = False, fail_get: bool = False):
        self.value = value
        self.fail_set = fail_set
        self.fail_get = fail_get
        self.history: List[str] = []

    async def get(self) -> Optional[str]:
        if self.fail_get:
            raise CheckpointException("Error retrieving last processed case ID: unreachable")
        return self.value

    async def set(self, case_id: str) -> None:
        if self.fail_set:
            raise CheckpointException("Error storing last processed case ID: ProvisionedThroughputExceededException")
        self.history.append(case_id)
        self.value = case_id


class Pipeline:
    """Fakes plus the service wired over them."""

    def __init__(self, case_ids, batch_size=10, empty=(), checkpoint=None,
                 fail_after=None, fail_write_on=None, fail_set=False, fail_get=False):
        self.source = FakeCaseSource(case_ids, fail_after=fail_after)
        self.fetcher = FakeFetcher(empty)
        self.writer = FakeWriter(fail_on_call=fail_write_on)
        self.checkpoints = FakeCheckpointStore(checkpoint, fail_set=fail_set, fail_get=fail_get)
        self.service = IngestionService(
            self.source, self.fetcher, self.writer, self.checkpoints, batch_size=batch_size
        )

    @property
    def written_ids(self) -> List[str]:
        return [cid for ids in self.writer.artifacts.values() for cid in ids]


@pytest.fixture
def make_pipeline():
    return Pipeline
