"""
Ingestion adapter tests: Support API pagination, batch writers, scheduler.
"""

import os
from pathlib import Path

import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from supportgpt.core import SourceException, StorageException
from supportgpt.ingestion.domain import Batch
from supportgpt.ingestion.infrastructure import (
    IngestionScheduler, LocalBatchWriter, S3BatchWriter,
    SupportCaseSource, SupportCommunicationFetcher
)


@pytest.fixture
def support_client():
    return boto3.client(
        "support",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def _case(case_id, status="opened"):
    return {"caseId": case_id, "status": status, "subject": f"Subject {case_id}"}


async def _collect(source, after=None):
    return [case.case_id async for case in source.list_cases(after)]


def _batch(*pairs):
    batch = Batch(len(pairs))
    for case_id, text in pairs:
        batch.add(case_id, text)
    return batch.freeze()


# ========== SupportCaseSource ==========

@pytest.mark.asyncio
async def test_source_follows_pagination(support_client):
    source = SupportCaseSource(support_client, page_size=100)
    with Stubber(support_client) as stub:
        stub.add_response(
            "describe_cases",
            {"cases": [_case("case-2024-03-01T10:00:00"), _case("case-2024-03-01T11:00:00")], "nextToken": "page-2"},
            {"includeResolvedCases": True, "maxResults": 100},
        )
        stub.add_response(
            "describe_cases",
            {"cases": [_case("case-2024-03-01T12:00:00", status="resolved")]},
            {"includeResolvedCases": True, "maxResults": 100, "nextToken": "page-2"},
        )

        ids = await _collect(source)
        stub.assert_no_pending_responses()

    assert ids == [
        "case-2024-03-01T10:00:00",
        "case-2024-03-01T11:00:00",
        "case-2024-03-01T12:00:00",
    ]


@pytest.mark.asyncio
async def test_source_filters_after_checkpoint(support_client):
    checkpoint = "case-2024-03-01T11:00:00"
    source = SupportCaseSource(support_client, include_resolved_cases=False, page_size=50)
    with Stubber(support_client) as stub:
        stub.add_response(
            "describe_cases",
            {"cases": [
                _case("case-2024-03-01T10:59:00"),
                _case(checkpoint),
                _case("case-2024-03-01T11:00:00-b"),
                _case("case-2024-03-01T11:30:00"),
            ]},
            {"includeResolvedCases": False, "maxResults": 50, "afterTime": "2024-03-01T11:00:00+00:00"},
        )

        ids = await _collect(source, checkpoint)

    # Earlier and equal-to-checkpoint cases are dropped; unparseable IDs are kept
    assert ids == ["case-2024-03-01T11:00:00-b", "case-2024-03-01T11:30:00"]


@pytest.mark.asyncio
async def test_source_unparseable_checkpoint_lists_without_time_filter(support_client, caplog):
    source = SupportCaseSource(support_client)
    with Stubber(support_client) as stub:
        stub.add_response(
            "describe_cases",
            {"cases": [_case("legacy-1"), _case("case-2024-03-01T10:00:00")]},
            {"includeResolvedCases": True, "maxResults": 100},
        )

        with caplog.at_level("WARNING"):
            ids = await _collect(source, "legacy-1")

    assert ids == ["case-2024-03-01T10:00:00"]
    assert "Unable to parse last processed case ID" in caplog.text


@pytest.mark.asyncio
async def test_source_error_raises_source_exception(support_client):
    source = SupportCaseSource(support_client)
    with Stubber(support_client) as stub:
        stub.add_response(
            "describe_cases",
            {"cases": [_case("case-2024-03-01T10:00:00")], "nextToken": "t"},
        )
        stub.add_client_error(
            "describe_cases",
            service_error_code="ThrottlingException",
            service_message="Rate exceeded",
            http_status_code=400,
        )

        seen = []
        with pytest.raises(SourceException) as exc:
            async for case in source.list_cases():
                seen.append(case.case_id)

    assert seen == ["case-2024-03-01T10:00:00"]
    assert "ThrottlingException - Rate exceeded" in exc.value.message
    assert exc.value.classification == "source_error"


# ========== SupportCommunicationFetcher ==========

@pytest.mark.asyncio
async def test_fetcher_joins_all_pages(support_client):
    fetcher = SupportCommunicationFetcher(support_client)
    with Stubber(support_client) as stub:
        stub.add_response(
            "describe_communications",
            {"communications": [{"caseId": "case-a", "body": "Latest reply"}], "nextToken": "n"},
            {"caseId": "case-a"},
        )
        stub.add_response(
            "describe_communications",
            {"communications": [{"caseId": "case-a", "body": "Original report"}]},
            {"caseId": "case-a", "nextToken": "n"},
        )

        text = await fetcher.fetch_text("case-a")

    assert text == "Latest reply\n\nOriginal report"


@pytest.mark.asyncio
async def test_fetcher_returns_empty_for_no_communications(support_client):
    fetcher = SupportCommunicationFetcher(support_client)
    with Stubber(support_client) as stub:
        stub.add_response("describe_communications", {"communications": []}, {"caseId": "case-a"})
        assert await fetcher.fetch_text("case-a") == ""


@pytest.mark.asyncio
async def test_fetcher_absorbs_upstream_error(support_client):
    fetcher = SupportCommunicationFetcher(support_client)
    with Stubber(support_client) as stub:
        stub.add_client_error(
            "describe_communications",
            service_error_code="CaseIdNotFound",
            service_message="case not found",
        )
        assert await fetcher.fetch_text("case-missing") == ""


# ========== S3BatchWriter ==========

class FakeS3Client:
    def __init__(self, error=None):
        self.error = error
        self.objects = {}

    def put_object(self, **kwargs):
        if self.error:
            raise self.error
        self.objects[(kwargs["Bucket"], kwargs["Key"])] = kwargs


@pytest.mark.asyncio
async def test_s3_writer_puts_one_object():
    client = FakeS3Client()
    writer = S3BatchWriter(client, "case-bucket")
    batch = _batch(("case-a", "text a"), ("case-b", "text b"))

    name = await writer.write(batch)

    assert name == "cases_case-a-case-b.txt"
    stored = client.objects[("case-bucket", name)]
    assert stored["Body"] == batch.render().encode("utf-8")
    assert stored["ContentType"].startswith("text/plain")


@pytest.mark.asyncio
async def test_s3_writer_failure_raises_storage_exception():
    error = ClientError({"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject")
    client = FakeS3Client(error=error)
    writer = S3BatchWriter(client, "case-bucket")

    with pytest.raises(StorageException) as exc:
        await writer.write(_batch(("case-a", "text a")))

    assert "AccessDenied" in exc.value.message
    assert client.objects == {}


# ========== LocalBatchWriter ==========

@pytest.mark.asyncio
async def test_local_writer_writes_file(tmp_path):
    writer = LocalBatchWriter(tmp_path / "cases")
    batch = _batch(("case-a", "text a"))

    name = await writer.write(batch)

    path = tmp_path / "cases" / name
    assert path.read_text(encoding="utf-8") == batch.render()
    assert [p.name for p in (tmp_path / "cases").iterdir()] == [name]


@pytest.mark.asyncio
async def test_local_writer_full_batch_of_timestamp_ids(tmp_path):
    writer = LocalBatchWriter(tmp_path)
    batch = _batch(*[(f"case-2024-03-01T10:00:{n:02d}", f"text {n}") for n in range(10)])
    assert len(batch.artifact_name.encode("utf-8")) > LocalBatchWriter.MAX_NAME_BYTES

    name = await writer.write(batch)

    assert name == batch.artifact_name
    path = writer.path_for(name)
    assert path.read_text(encoding="utf-8") == batch.render()
    parts = path.relative_to(tmp_path).parts
    assert len(parts) == 2
    assert all(len(part.encode("utf-8")) <= LocalBatchWriter.MAX_NAME_BYTES for part in parts)
    assert "".join(parts) == name


@pytest.mark.asyncio
async def test_local_writer_rewrite_of_long_batch_is_stable(tmp_path):
    writer = LocalBatchWriter(tmp_path)
    batch = _batch(*[(f"case-2024-03-01T10:00:{n:02d}", f"text {n}") for n in range(10)])

    first = await writer.write(batch)
    second = await writer.write(batch)

    assert first == second
    files = [p for p in tmp_path.rglob("*") if p.is_file()]
    assert files == [writer.path_for(first)]


def test_local_writer_short_names_stay_flat(tmp_path):
    writer = LocalBatchWriter(tmp_path)
    assert writer.path_for("cases_case-a.txt") == tmp_path / "cases_case-a.txt"


@pytest.mark.asyncio
async def test_local_writer_failure_leaves_no_artifact(tmp_path, monkeypatch):
    writer = LocalBatchWriter(tmp_path)

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", broken_replace)

    with pytest.raises(StorageException):
        await writer.write(_batch(("case-a", "text a")))

    assert list(Path(tmp_path).iterdir()) == []


@pytest.mark.asyncio
async def test_local_writer_unusable_directory(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    writer = LocalBatchWriter(blocker)

    with pytest.raises(StorageException):
        await writer.write(_batch(("case-a", "text a")))


# ========== IngestionScheduler ==========

@pytest.mark.asyncio
async def test_scheduler_registers_single_instance_job():
    scheduler = IngestionScheduler(interval_days=7)

    async def job():
        return None

    await scheduler.start(job)
    try:
        assert scheduler.is_running
        assert scheduler.next_run_time is not None
        registered = scheduler._scheduler.get_job(IngestionScheduler.JOB_ID)
        assert registered.max_instances == 1
        assert registered.coalesce is True
    finally:
        await scheduler.stop()

    assert not scheduler.is_running
