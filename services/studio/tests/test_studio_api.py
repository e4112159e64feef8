"""HTTP tests for the studio service."""
import json
from collections.abc import AsyncIterator

import pytest
from fastapi.testclient import TestClient

from generation.engine import GenerationEngine
from generation.quota import QuotaLedger
from generation.service import GenerationService
from shared.schemas import GenerationRequest, Plan
from studio.clients import LocalGenerationBackend
from studio.main import create_app

HEADERS = {"X-User-ID": "student-1", "X-User-Plan": "starter"}


class KeywordEngine(GenerationEngine):
    """Answers "Hello world"; fails mid-stream when the prompt mentions FAIL."""

    async def stream(self, request: GenerationRequest) -> AsyncIterator[str]:
        yield "Hello"
        if "FAIL" in request.prompt:
            raise RuntimeError("engine crashed")
        yield " world"

    def citations(self, request: GenerationRequest) -> list[str]:
        return ["doi:10.1000/demo"]


def _frames(body: str) -> list[tuple[str, dict]]:
    out = []
    for block in body.strip().split("\n\n"):
        lines = dict(line.split(": ", 1) for line in block.split("\n"))
        out.append((lines["event"], json.loads(lines["data"])))
    return out


@pytest.fixture
def client() -> TestClient:
    service = GenerationService(KeywordEngine(), QuotaLedger({Plan.STARTER: 5, Plan.FREE: 0}))
    with TestClient(create_app(backend=LocalGenerationBackend(service))) as c:
        yield c


def test_healthz(client: TestClient) -> None:
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["service"] == "studio"


def test_session_header_required(client: TestClient) -> None:
    assert client.post("/api/v1/chat").status_code == 401


def test_chat_roundtrip(client: TestClient) -> None:
    conv = client.post("/api/v1/chat", headers=HEADERS).json()
    assert conv["kind"] == "SCHOLAR_CHAT"
    assert len(conv["entries"]) == 1

    resp = client.post(
        f"/api/v1/chat/{conv['id']}/messages", headers=HEADERS, json={"message": "What is APA?"}
    )
    assert resp.status_code == 200
    entry = resp.json()["entry"]
    assert entry["status"] == "complete"
    assert entry["content"] == "Hello world"
    assert entry["citations"] == ["doi:10.1000/demo"]

    stored = client.get(f"/api/v1/conversations/{conv['id']}", headers=HEADERS).json()
    assert [e["role"] for e in stored["entries"]] == ["assistant", "user", "assistant"]


def test_chat_stream_emits_entry_snapshots(client: TestClient) -> None:
    conv = client.post("/api/v1/chat", headers=HEADERS).json()
    with client.stream(
        "POST",
        f"/api/v1/chat/{conv['id']}/messages",
        headers=HEADERS,
        json={"message": "Explain", "stream": True},
    ) as resp:
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        body = "".join(resp.iter_text())

    frames = _frames(body)
    assert {name for name, _ in frames} == {"entry"}
    assert [f["content"] for _, f in frames] == ["Hello", "Hello world", "Hello world"]
    assert frames[-1][1]["status"] == "complete"
    assert len({f["id"] for _, f in frames}) == 1
    assert frames[0][1]["conversation_id"] == conv["id"]


def test_blank_chat_message_is_422(client: TestClient) -> None:
    conv = client.post("/api/v1/chat", headers=HEADERS).json()
    resp = client.post(f"/api/v1/chat/{conv['id']}/messages", headers=HEADERS, json={"message": "  "})
    assert resp.status_code == 422
    assert resp.json()["code"] == "empty_input"


def test_unknown_conversation_is_404(client: TestClient) -> None:
    resp = client.post("/api/v1/chat/nope/messages", headers=HEADERS, json={"message": "hi"})
    assert resp.status_code == 404


def test_tool_run_and_listing(client: TestClient) -> None:
    resp = client.post("/api/v1/tools/REWRITER/run", headers=HEADERS, json={"text": "draft"})
    assert resp.status_code == 200
    assert resp.json()["entry"]["content"] == "Hello world"

    listed = client.get("/api/v1/conversations", params={"kind": "REWRITER"}, headers=HEADERS).json()
    assert len(listed) == 1

    assert client.post("/api/v1/tools/NOPE/run", headers=HEADERS, json={"text": "x"}).status_code == 422
    assert client.post("/api/v1/tools/WIZARD/run", headers=HEADERS, json={"text": "x"}).status_code == 400


def test_failed_entry_can_be_retried_with_corrected_prompt(client: TestClient) -> None:
    run = client.post("/api/v1/tools/THESIS_GEN/run", headers=HEADERS, json={"text": "FAIL topic"}).json()
    failed = run["entry"]
    assert failed["status"] == "failed"
    assert failed["content"] == "Hello"
    assert failed["error"]["code"] == "service_failure"

    url = f"/api/v1/conversations/{run['conversation_id']}/entries/{failed['id']}/retry"
    retried = client.post(url, headers=HEADERS, json={"prompt": "Better topic"})
    assert retried.status_code == 200
    entry = retried.json()["entry"]
    assert entry["id"] == failed["id"]
    assert entry["status"] == "complete"
    assert entry["content"] == "Hello world"

    again = client.post(url, headers=HEADERS, json={})
    assert again.status_code == 409


def test_quota_exhaustion_fails_entry(client: TestClient) -> None:
    headers = {"X-User-ID": "free-user", "X-User-Plan": "free"}
    run = client.post("/api/v1/tools/REWRITER/run", headers=headers, json={"text": "draft"}).json()
    assert run["entry"]["status"] == "failed"
    assert run["entry"]["error"]["code"] == "quota_exceeded"

    quota = client.get("/api/v1/quota", headers=headers).json()
    assert quota["limit"] == 0
    assert quota["remaining"] == 0


def test_essay_wizard_flow(client: TestClient) -> None:
    wizard = client.post("/api/v1/wizards", headers=HEADERS, json={"kind": "WIZARD"}).json()
    assert wizard["step"] == "BRIEF"
    base = f"/api/v1/wizards/{wizard['id']}"

    wizard = client.post(f"{base}/actions", headers=HEADERS, json={"action": "brief", "text": "Bees"}).json()
    assert wizard["step"] == "TITLE"
    title = wizard["data"]["titles"][0]
    wizard = client.post(f"{base}/actions", headers=HEADERS, json={"action": "title", "text": title}).json()
    assert wizard["step"] == "OUTLINE"

    out_of_order = client.post(f"{base}/actions", headers=HEADERS, json={"action": "brief", "text": "x"})
    assert out_of_order.status_code == 409

    draft = client.post(f"{base}/draft", headers=HEADERS, json={"config": {"words": 500}}).json()
    assert draft["entry"]["status"] == "complete"
    assert client.get(base, headers=HEADERS).status_code == 404
    stored = client.get(f"/api/v1/conversations/{draft['conversation_id']}", headers=HEADERS).json()
    assert stored["kind"] == "WIZARD"


def test_direct_capstone(client: TestClient) -> None:
    resp = client.post(
        "/api/v1/wizards/direct",
        headers=HEADERS,
        json={"kind": "CAPSTONE_GEN", "instruction": "Study of coral reefs"},
    )
    assert resp.status_code == 200
    assert resp.json()["entry"]["status"] == "complete"


def test_unknown_wizard_is_404(client: TestClient) -> None:
    assert client.get("/api/v1/wizards/missing", headers=HEADERS).status_code == 404


def test_readyz_reports_backend(client: TestClient) -> None:
    body = client.get("/readyz").json()
    assert body["status"] == "ok"
    assert body["generation_mode"] == "local"
    assert body["generation_available"] is True


def test_delete_conversation(client: TestClient) -> None:
    conv = client.post("/api/v1/chat", headers=HEADERS).json()
    url = f"/api/v1/conversations/{conv['id']}"

    assert client.delete(url, headers={"X-User-ID": "someone-else"}).status_code == 404
    assert client.delete(url, headers=HEADERS).status_code == 204
    assert client.get(url, headers=HEADERS).status_code == 404
