"""
HTTP surface tests. The lifespan is not run; services are placed on
app state directly.
"""

import pytest
from fastapi.testclient import TestClient

import supportgpt.ingestion.interfaces.controllers as ingestion_controllers
import supportgpt.query.interfaces.controllers as query_controllers
from supportgpt.config import Settings
from supportgpt.main import app
from supportgpt.query.application import CaseQueryService, IKnowledgeBase
from supportgpt.query.domain import CaseCitation, GeneratedAnswer
from supportgpt.core import KnowledgeBaseException

from tests.conftest import case_id


class StaticKnowledgeBase(IKnowledgeBase):
    def __init__(self, fail=False):
        self.fail = fail

    async def retrieve_and_generate(self, query):
        if self.fail:
            raise KnowledgeBaseException("retrieve_and_generate failed: ThrottlingException - slow down")
        return GeneratedAnswer(text="Summary", citations=[CaseCitation(case_ids=["case-a"])])


@pytest.fixture
def client():
    app.state.ingestion_service = None
    app.state.query_service = None
    app.state.scheduler = None
    yield TestClient(app)
    app.state.ingestion_service = None
    app.state.query_service = None


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["checks"]["ingestion"] == "not_configured"
    assert body["checks"]["scheduler"] == "stopped"


def test_correlation_id_is_echoed(client):
    response = client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"


def test_run_without_service_is_unavailable(client):
    assert client.post("/ingestion/run").status_code == 503
    assert client.get("/ingestion/checkpoint").status_code == 503


def test_run_returns_artifacts(client, make_pipeline):
    pipeline = make_pipeline([case_id(n) for n in range(1, 4)], batch_size=2)
    app.state.ingestion_service = pipeline.service

    response = client.post("/ingestion/run")

    assert response.status_code == 200
    assert response.json() == {"artifacts": [
        f"cases_{case_id(1)}-{case_id(2)}.txt",
        f"cases_{case_id(3)}.txt",
    ]}

    checkpoint = client.get("/ingestion/checkpoint")
    assert checkpoint.json() == {"checkpoint": case_id(3)}


def test_run_with_nothing_new(client, make_pipeline):
    app.state.ingestion_service = make_pipeline([]).service

    response = client.post("/ingestion/run")

    assert response.status_code == 200
    assert response.json() == {"message": "no new cases"}


@pytest.mark.parametrize("kwargs, status_code, error", [
    ({"fail_after": 0}, 502, "source_error"),
    ({"fail_write_on": 1}, 500, "storage_error"),
    ({"fail_set": True}, 500, "checkpoint_error"),
])
def test_run_failures_map_to_status(client, make_pipeline, kwargs, status_code, error):
    app.state.ingestion_service = make_pipeline([case_id(1)], batch_size=1, **kwargs).service

    response = client.post("/ingestion/run")

    assert response.status_code == status_code
    body = response.json()
    assert set(body) == {"error", "detail"}
    assert body["error"] == error


def test_checkpoint_read_failure_is_unavailable(client, make_pipeline):
    app.state.ingestion_service = make_pipeline([], fail_get=True).service
    assert client.get("/ingestion/checkpoint").status_code == 503


def test_query(client):
    app.state.query_service = CaseQueryService(StaticKnowledgeBase())

    response = client.post("/query", json={"query": "instance down"})

    assert response.status_code == 200
    body = response.json()
    assert body["summary"] == "Summary"
    assert body["case_ids"] == ["case-a"]


def test_query_validation_and_failures(client):
    assert client.post("/query", json={"query": "x"}).status_code == 503

    app.state.query_service = CaseQueryService(StaticKnowledgeBase(fail=True))
    assert client.post("/query", json={"query": "  "}).status_code == 422
    assert client.post("/query", json={"query": "instance down"}).status_code == 502


def test_ingestion_service_built_on_first_use_without_lifespan(client, make_pipeline, monkeypatch):
    pipeline = make_pipeline([case_id(1)])
    builds = []

    async def create(config):
        builds.append(config)
        return pipeline.service

    monkeypatch.setattr(ingestion_controllers, "create_ingestion_service", create)
    del app.state.ingestion_service

    assert client.post("/ingestion/run").status_code == 200
    assert client.get("/ingestion/checkpoint").json() == {"checkpoint": case_id(1)}
    assert len(builds) == 1
    assert app.state.ingestion_service is pipeline.service


def test_unconfigured_services_without_lifespan_are_unavailable(client, monkeypatch):
    async def create(config):
        return None

    monkeypatch.setattr(ingestion_controllers, "create_ingestion_service", create)
    monkeypatch.setattr(query_controllers, "settings", Settings(knowledge_base_id=None, bedrock_model_id=None))
    del app.state.ingestion_service
    del app.state.query_service

    assert client.post("/ingestion/run").status_code == 503
    assert client.post("/query", json={"query": "instance down"}).status_code == 503
    assert app.state.query_service is None
