"""Integration-style tests for the /api endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.controllers.dependencies import get_entity_store, get_reasoning_backend
from app.main import app
from app.services.analysis_types import StageDefinition
from app.services.call_script_files import CallScriptFiles
from app.services.entity_store import InMemoryEntityStore
from app.services.errors import BackendUnavailable

from conftest import FakeBackend, backend_reply

STAGES = [
    {
        "stageName": "Introduction",
        "required": True,
        "description": "Greeting",
        "keyPoints": ["Greet the customer"],
    },
    {"stageName": "Pitch", "required": True, "description": "Value proposition", "keyPoints": []},
    {"stageName": "Closing", "required": True, "description": "Next steps", "keyPoints": []},
]

TRANSCRIPT = (
    "Agent: Good morning, this is Priya from Acme Payments.\n"
    "Agent: Our terminal settles payments the same day.\n"
    "Customer: I need to go."
)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend(
        backend_reply([("Introduction", True), ("Pitch", True), ("Closing", False)])
    )


@pytest.fixture
def client(backend: FakeBackend):
    """Bypass Bedrock and start every test with an empty store."""

    store = InMemoryEntityStore()
    app.dependency_overrides[get_entity_store] = lambda: store
    app.dependency_overrides[get_reasoning_backend] = lambda: backend

    yield TestClient(app)

    app.dependency_overrides.clear()


def test_analyze_with_raw_fields(client: TestClient):
    response = client.post(
        "/api/analyze",
        json={"transcript": TRANSCRIPT, "callScript": "Greet, pitch, close.", "stages": STAGES},
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["success"] is True
    assert payload["data"]["dropOff"] == "Closing"
    assert payload["data"]["callStageSequence"] == ["Introduction", "Pitch"]
    assert [stage["stageName"] for stage in payload["data"]["stages"]] == [
        "Introduction",
        "Pitch",
        "Closing",
    ]
    assert "analyzedAt" in payload["metadata"]

    analysis_id = payload["metadata"]["analysisId"]
    stored = client.get(f"/api/analysis/{analysis_id}")
    assert stored.status_code == 200
    assert stored.json()["data"]["result"]["dropOff"] == "Closing"


def test_analyze_with_entity_ids(client: TestClient):
    transcript_id = client.post(
        "/api/transcripts/", json={"content": TRANSCRIPT, "metadata": {"agent": "Priya"}}
    ).json()["data"]["id"]
    script_id = client.post(
        "/api/call-scripts/", json={"name": "Terminal pitch", "content": "Greet, pitch, close."}
    ).json()["data"]["id"]
    stage_set_id = client.post(
        "/api/call-stages/", json={"name": "Sales", "stages": STAGES}
    ).json()["data"]["id"]

    response = client.post(
        "/api/analyze",
        json={"transcriptId": transcript_id, "callScriptId": script_id, "stageSetId": stage_set_id},
    )

    assert response.status_code == 201
    assert response.json()["data"]["dropOff"] == "Closing"

    by_script = client.get(f"/api/analysis/script/{script_id}").json()["data"]
    assert len(by_script) == 1
    assert by_script[0]["metadata"]["callScriptName"] == "Terminal pitch"
    assert len(client.get(f"/api/analysis/transcript/{transcript_id}").json()["data"]) == 1

    stats = client.get(f"/api/analysis/stats/script/{script_id}").json()["data"]
    assert stats["totalAnalyses"] == 1
    assert stats["dropOffCounts"] == {"Closing": 1}
    assert stats["stageCoverage"] == {"Introduction": 100, "Pitch": 100, "Closing": 0}


def test_analyze_with_transcript_and_script_ids_uses_default_stages(backend: FakeBackend):
    store = InMemoryEntityStore(
        default_stages=tuple(StageDefinition.from_mapping(stage) for stage in STAGES)
    )
    app.dependency_overrides[get_entity_store] = lambda: store
    app.dependency_overrides[get_reasoning_backend] = lambda: backend
    try:
        client = TestClient(app)
        transcript_id = client.post("/api/transcripts/", json={"content": TRANSCRIPT}).json()[
            "data"
        ]["id"]
        script_id = client.post(
            "/api/call-scripts/", json={"name": "Terminal pitch", "content": "Greet, pitch, close."}
        ).json()["data"]["id"]

        response = client.post(
            "/api/analyze",
            json={"transcriptId": transcript_id, "callScriptId": script_id},
        )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 201
    payload = response.json()
    assert payload["data"]["dropOff"] == "Closing"
    assert [stage["stageName"] for stage in payload["data"]["stages"]] == [
        "Introduction",
        "Pitch",
        "Closing",
    ]
    assert '"stageName": "Closing"' in backend.calls[0][0]


def test_two_id_request_without_default_stages_is_client_error(client: TestClient):
    transcript_id = client.post("/api/transcripts/", json={"content": TRANSCRIPT}).json()[
        "data"
    ]["id"]
    script_id = client.post(
        "/api/call-scripts/", json={"name": "Terminal pitch", "content": "Greet, pitch, close."}
    ).json()["data"]["id"]

    response = client.post(
        "/api/analyze",
        json={"transcriptId": transcript_id, "callScriptId": script_id},
    )

    assert response.status_code == 400
    assert "stageSetId is required" in response.json()["error"]


def test_call_script_listing_includes_script_files(tmp_path):
    (tmp_path / "renewal.txt").write_text("Renewal script", encoding="utf-8")
    store = InMemoryEntityStore(script_files=CallScriptFiles(tmp_path))
    app.dependency_overrides[get_entity_store] = lambda: store
    try:
        response = TestClient(app).get("/api/call-scripts/")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json()["scriptFiles"] == ["renewal"]
    assert response.json()["data"] == []


def test_invalid_input_is_client_error(client: TestClient, backend: FakeBackend):
    response = client.post(
        "/api/analyze",
        json={"transcript": "short", "callScript": "Greet, pitch, close.", "stages": STAGES},
    )

    assert response.status_code == 400
    payload = response.json()
    assert payload["success"] is False
    assert payload["kind"] == "invalid_input"
    assert backend.calls == []


def test_partial_raw_fields_are_rejected(client: TestClient):
    response = client.post("/api/analyze", json={"transcript": TRANSCRIPT})

    assert response.status_code == 400


def test_body_type_errors_are_client_errors(client: TestClient):
    response = client.post(
        "/api/analyze",
        json={"transcript": TRANSCRIPT, "callScript": "script", "stages": [{"stageName": "A"}]},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Validation error"


def test_unknown_ids_are_client_errors(client: TestClient):
    response = client.post(
        "/api/analyze",
        json={"transcriptId": "nope", "callScriptId": "nope", "stageSetId": "nope"},
    )

    assert response.status_code == 400
    assert "not found" in response.json()["error"]


def test_backend_unavailable_is_server_error(client: TestClient, backend: FakeBackend):
    backend.error = BackendUnavailable("Bedrock invocation failed: timeout")

    response = client.post(
        "/api/analyze",
        json={"transcript": TRANSCRIPT, "callScript": "script", "stages": STAGES},
    )

    assert response.status_code == 500
    assert response.json()["kind"] == "backend_unavailable"
    assert client.get("/api/analysis").json()["data"] == []


def test_malformed_response_is_server_error(client: TestClient, backend: FakeBackend):
    backend.response = '{"summary": "no stages here"}'

    response = client.post(
        "/api/analyze",
        json={"transcript": TRANSCRIPT, "callScript": "script", "stages": STAGES},
    )

    assert response.status_code == 500
    payload = response.json()
    assert payload["kind"] == "malformed_response"
    assert payload["message"] == "Analysis failed"


def test_unknown_analysis_is_not_found(client: TestClient):
    response = client.get("/api/analysis/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Analysis not found"}


def test_empty_statistics(client: TestClient):
    stats = client.get("/api/analysis/stats/overview").json()["data"]

    assert stats == {
        "totalAnalyses": 0,
        "completedWithoutDropOff": 0,
        "dropOffCounts": {},
        "stageCoverage": {},
    }


def test_duplicate_stage_names_rejected(client: TestClient):
    response = client.post(
        "/api/call-stages/",
        json={"stages": [STAGES[0], STAGES[0]]},
    )

    assert response.status_code == 400


def test_health_and_metrics(client: TestClient):
    assert client.get("/health").json()["status"] == "healthy"
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "call_analyses_total" in metrics.text
