"""Tests for the code assistant routes under /api/v1/code."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from src.core.constants import MSG_INVALID_FOLLOWUP_SESSION
from src.sessions.manager import SessionManager
from tests.fakes.fake_clients import FakeChatModel


BASE = "/api/v1/code"


def _body(session_id: str | None = None, **overrides: str) -> dict[str, str | None]:
    body: dict[str, str | None] = {
        "code": "int x = 1;",
        "analysisType": "EXPLAIN",
        "language": "java",
        "sessionId": session_id,
    }
    body.update(overrides)
    return body


def _events(text: str) -> list[tuple[str, dict]]:
    """Parse an SSE body into (event, data) pairs."""
    events = []
    for block in text.strip().split("\n\n"):
        lines = dict(line.split(": ", 1) for line in block.splitlines())
        events.append((lines["event"], json.loads(lines["data"])))
    return events


# =============================================================================
# Health and Services
# =============================================================================


class TestHealthAndServices:
    """Tests for availability endpoints."""

    def test_health_text(self, client: TestClient, session_manager: SessionManager) -> None:
        session_manager.create_session()

        response = client.get(f"{BASE}/health")

        assert response.status_code == 200
        assert response.text == (
            "Service is healthy with 2 AI services available and 1 active sessions"
        )

    def test_services(self, client: TestClient) -> None:
        response = client.get(f"{BASE}/services")

        assert response.json() == {
            "OpenAIChatService": "OpenAIChatService",
            "GroqAIChatService": "GroqAIChatService",
        }

    def test_service_stats(self, client: TestClient) -> None:
        data = client.get(f"{BASE}/services/stats").json()

        assert data["availableServices"] == 2
        assert data["hasServices"] is True
        assert data["services"] == ["GroqAIChatService", "OpenAIChatService"]


# =============================================================================
# Sessions
# =============================================================================


class TestSessions:
    """Tests for session management endpoints."""

    def test_create_session(self, client: TestClient, session_manager: SessionManager) -> None:
        response = client.post(f"{BASE}/sessions")

        data = response.json()
        assert response.status_code == 200
        assert data["success"] is True
        assert data["message"] == "Session created successfully"
        assert session_manager.session_exists(data["sessionId"])
        assert data["activeSessionCount"] == 1

    def test_clear_session(self, client: TestClient, session_manager: SessionManager) -> None:
        session_id = session_manager.create_session()

        response = client.delete(f"{BASE}/sessions/{session_id}")

        assert response.status_code == 200
        assert response.json()["message"] == "Session cleared successfully"
        assert not session_manager.session_exists(session_id)

    def test_clear_missing_session(self, client: TestClient) -> None:
        response = client.delete(f"{BASE}/sessions/missing")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_clear_all_sessions(self, client: TestClient, session_manager: SessionManager) -> None:
        session_manager.create_session()
        session_manager.create_session()

        data = client.delete(f"{BASE}/sessions").json()

        assert data["message"] == "All sessions cleared successfully. Cleared 2 sessions"
        assert data["activeSessionCount"] == 0

    def test_session_stats(self, client: TestClient, session_manager: SessionManager) -> None:
        session_id = session_manager.create_session()

        data = client.get(f"{BASE}/sessions/stats").json()

        assert data["activeSessionCount"] == 1
        assert data["activeSessionIds"] == [session_id]


# =============================================================================
# Assist
# =============================================================================


class TestAssist:
    """Tests for session-bound assist endpoints."""

    def test_assist(
        self,
        client: TestClient,
        session_manager: SessionManager,
        openai_model: FakeChatModel,
    ) -> None:
        session_id = session_manager.create_session()
        openai_model.response = "Declares x."

        response = client.post(f"{BASE}/assist/OpenAIChatService", json=_body(session_id))

        data = response.json()
        assert response.status_code == 200
        assert data["analysis"] == "Declares x."
        assert data["analysisType"] == "EXPLAIN"
        assert data["sessionId"] == session_id
        assert data["conversationContext"].startswith(f"Session: {session_id}")

    def test_assist_missing_session(self, client: TestClient) -> None:
        response = client.post(f"{BASE}/assist/OpenAIChatService", json=_body("missing"))

        assert response.status_code == 400
        assert response.json()["analysis"] == "Error: Session not found - missing"

    def test_assist_unknown_service(self, client: TestClient, session_manager: SessionManager) -> None:
        session_id = session_manager.create_session()

        response = client.post(f"{BASE}/assist/ClaudeService", json=_body(session_id))

        assert response.status_code == 503
        assert "Service 'ClaudeService' is not available" in response.json()["analysis"]

    def test_assist_stream(
        self,
        client: TestClient,
        session_manager: SessionManager,
        openai_streaming_model: FakeChatModel,
    ) -> None:
        session_id = session_manager.create_session()
        openai_streaming_model.tokens = ["Decl", "ares"]

        response = client.post(f"{BASE}/assist/OpenAIChatService/stream", json=_body(session_id))

        assert response.headers["content-type"].startswith("text/event-stream")
        events = _events(response.text)
        assert [name for name, _ in events] == ["content", "content", "complete"]
        assert [data["content"] for _, data in events[:2]] == ["Decl", "ares"]
        assert events[-1][1]["isComplete"] is True
        assert len(session_manager.get_session_memory(session_id)) == 2

    def test_assist_stream_missing_session(self, client: TestClient) -> None:
        response = client.post(f"{BASE}/assist/OpenAIChatService/stream", json=_body("missing"))

        ((name, data),) = _events(response.text)
        assert name == "error"
        assert data["error"] == "Session not found - missing"
        assert data["success"] is False

    def test_followup(
        self,
        client: TestClient,
        session_manager: SessionManager,
        openai_model: FakeChatModel,
    ) -> None:
        session_id = session_manager.create_session()

        response = client.post(
            f"{BASE}/assist/OpenAIChatService/followup",
            json=_body(session_id, code="What does x hold?"),
        )

        assert response.status_code == 200
        assert response.json()["analysisType"] == "FOLLOWUP"

    def test_followup_missing_session(self, client: TestClient) -> None:
        response = client.post(f"{BASE}/assist/OpenAIChatService/followup", json=_body("missing"))

        assert response.status_code == 400
        assert response.json()["analysis"] == MSG_INVALID_FOLLOWUP_SESSION


# =============================================================================
# Analyze
# =============================================================================


class TestAnalyze:
    """Tests for the /analyze family."""

    def test_analyze_stateless(
        self,
        client: TestClient,
        session_manager: SessionManager,
        openai_model: FakeChatModel,
    ) -> None:
        openai_model.response = "Stateless answer"

        response = client.post(f"{BASE}/analyze", json=_body(analysisType="ANALYZE"))

        data = response.json()
        assert response.status_code == 200
        assert data["analysis"] == "Stateless answer"
        assert data["sessionId"] is None
        assert session_manager.get_active_session_count() == 0

    def test_analyze_with_session_uses_memory(
        self, client: TestClient, session_manager: SessionManager
    ) -> None:
        session_id = session_manager.create_session()

        client.post(f"{BASE}/analyze/groq", json=_body(session_id))

        assert len(session_manager.get_session_memory(session_id)) == 2

    @pytest.mark.parametrize(
        ("path", "expected_type"),
        [("explain", "EXPLAIN"), ("refactor", "REFACTOR"), ("debug", "DEBUG")],
    )
    def test_fixed_type_shortcuts(self, client: TestClient, path: str, expected_type: str) -> None:
        response = client.post(f"{BASE}/{path}", json=_body(analysisType="WRITE_CODE"))

        assert response.json()["analysisType"] == expected_type

    def test_analyze_stream(self, client: TestClient) -> None:
        response = client.post(f"{BASE}/analyze/stream", json=_body())

        events = _events(response.text)
        assert "".join(data["content"] for name, data in events if name == "content") == "Fake analysis"
        assert events[-1][0] == "complete"

    def test_stream_unknown_service_emits_error(self, client: TestClient) -> None:
        response = client.post(f"{BASE}/analyze/Nope/stream", json=_body())

        ((name, data),) = _events(response.text)
        assert name == "error"
        assert "Nope" in data["error"]

    def test_provider_failure(self, client: TestClient, openai_model: FakeChatModel) -> None:
        openai_model.fail_on("complete", RuntimeError("timeout"))

        response = client.post(f"{BASE}/analyze/openai", json=_body())

        assert response.status_code == 503
        assert response.json()["success"] is False
        assert response.json()["analysis"].startswith("Error: Failed to analyze code")

    def test_blank_code_rejected(self, client: TestClient) -> None:
        response = client.post(f"{BASE}/analyze", json=_body(code="   "))

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_unknown_analysis_type_rejected(self, client: TestClient) -> None:
        response = client.post(f"{BASE}/analyze", json=_body(analysisType="SUMMARIZE"))

        assert response.status_code == 422
