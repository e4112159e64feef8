"""HTTP tests for the generation service."""
import json
from collections.abc import AsyncIterator

import pytest
from fastapi.testclient import TestClient

from generation.engine import GenerationEngine, ScriptedGenerationEngine
from generation.main import create_app
from generation.quota import QuotaLedger
from generation.service import GenerationService
from shared.schemas import GenerationRequest, Plan

HEADERS = {"X-User-ID": "student-1", "X-User-Plan": "free"}


def _frames(body: str) -> list[tuple[str, dict]]:
    out = []
    for block in body.strip().split("\n\n"):
        lines = dict(line.split(": ", 1) for line in block.split("\n"))
        out.append((lines["event"], json.loads(lines["data"])))
    return out


@pytest.fixture
def client() -> TestClient:
    service = GenerationService(
        ScriptedGenerationEngine(["Hello", " world", " today"]),
        QuotaLedger({Plan.FREE: 2}),
    )
    with TestClient(create_app(generation_service=service)) as c:
        yield c


def test_healthz(client: TestClient) -> None:
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["service"] == "generation"
    assert "X-Request-ID" in resp.headers


def test_generate_returns_final_text(client: TestClient) -> None:
    resp = client.post("/generate", json={"prompt": "Write 3 words"}, headers=HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["text"] == "Hello world today"
    assert data["citations"] == []
    assert data["request_id"]


def test_generate_stream_emits_progress_then_complete(client: TestClient) -> None:
    resp = client.post(
        "/generate/stream",
        json={"prompt": "Write 3 words", "cite_sources": True},
        headers=HEADERS,
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    frames = _frames(resp.text)
    assert [name for name, _ in frames] == ["progress", "progress", "progress", "complete"]
    assert [data["text"] for _, data in frames] == [
        "Hello",
        "Hello world",
        "Hello world today",
        "Hello world today",
    ]
    assert frames[-1][1]["citations"]
    assert frames[-1][1]["request_id"] == resp.headers["X-Generation-ID"]


def test_empty_prompt_is_rejected_before_streaming(client: TestClient) -> None:
    resp = client.post("/generate/stream", json={"prompt": "  "}, headers=HEADERS)
    assert resp.status_code == 422
    assert resp.json()["code"] == "empty_input"


def test_quota_exceeded_maps_to_429(client: TestClient) -> None:
    for _ in range(2):
        assert client.post("/generate", json={"prompt": "go"}, headers=HEADERS).status_code == 200
    resp = client.post("/generate", json={"prompt": "go"}, headers=HEADERS)
    assert resp.status_code == 429
    assert resp.json()["code"] == "quota_exceeded"

    quota = client.get("/quota", headers=HEADERS).json()
    assert quota == {"user_id": "student-1", "plan": "FREE", "used": 2, "limit": 2, "remaining": 0}


def test_missing_session_header_is_401(client: TestClient) -> None:
    resp = client.post("/generate", json={"prompt": "go"})
    assert resp.status_code == 401


def test_invalid_config_is_422(client: TestClient) -> None:
    resp = client.post("/generate", json={"prompt": "go", "config": {"words": 0}}, headers=HEADERS)
    assert resp.status_code == 422


class MidStreamFailureEngine(GenerationEngine):
    async def stream(self, request: GenerationRequest) -> AsyncIterator[str]:
        yield "Part"
        raise RuntimeError("model backend dropped the connection")


def test_generate_stream_ends_with_single_error_after_progress() -> None:
    service = GenerationService(MidStreamFailureEngine(), QuotaLedger({Plan.FREE: 1}))
    with TestClient(create_app(generation_service=service)) as c:
        resp = c.post("/generate/stream", json={"prompt": "Write"}, headers=HEADERS)
        quota = c.get("/quota", headers=HEADERS).json()

    assert resp.status_code == 200
    frames = _frames(resp.text)
    assert [name for name, _ in frames] == ["progress", "error"]
    assert frames[0][1] == {"request_id": resp.headers["X-Generation-ID"], "text": "Part"}
    error = frames[1][1]
    assert error["code"] == "service_failure"
    assert error["request_id"] == resp.headers["X-Generation-ID"]
    assert quota["used"] == 0


def test_error_body_has_code_and_message_only(client: TestClient) -> None:
    resp = client.post("/generate", json={"prompt": ""}, headers=HEADERS)
    assert resp.status_code == 422
    assert resp.json() == {"code": "empty_input", "message": "Nothing to generate: prompt is empty"}
