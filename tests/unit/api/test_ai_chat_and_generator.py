"""Tests for the AI chat and code generator routes."""

from __future__ import annotations

from fastapi.testclient import TestClient

from src.api.routes.code_generator import GenerateCodeRequest, build_test_requirements
from src.sessions.manager import SessionManager
from tests.fakes.fake_clients import FakeChatModel


CHAT = "/api/v1/ai-chat"
GENERATOR = "/api/v1/code-generator"


# =============================================================================
# AI Chat
# =============================================================================


class TestAIChat:
    """Tests for /api/v1/ai-chat."""

    def test_health(self, client: TestClient) -> None:
        data = client.get(f"{CHAT}/health").json()

        assert data["status"] == "UP"
        assert data["service"] == "AI Chat"

    def test_send_without_session(self, client: TestClient, openai_model: FakeChatModel) -> None:
        openai_model.response = "Hello there"

        response = client.post(f"{CHAT}/chat/send", json={"message": "Hi"})

        data = response.json()
        assert response.status_code == 200
        assert data["status"] == "success"
        assert data["response"] == "Hello there"
        assert data["sessionId"] is None

    def test_send_and_read_history(self, client: TestClient, session_manager: SessionManager) -> None:
        session_id = session_manager.create_session()

        client.post(f"{CHAT}/chat/send", json={"message": "Hi", "sessionId": session_id})
        response = client.get(f"{CHAT}/chat/history", params={"sessionId": session_id})

        assert response.json()["history"] == [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Fake analysis"},
        ]

    def test_send_with_service_class_name(self, client: TestClient, provider_manager) -> None:
        provider_manager.get_model("groq").response = "from groq"

        response = client.post(
            f"{CHAT}/chat/send", json={"message": "Hi", "service": "GroqAIChatService"}
        )

        assert response.status_code == 200
        assert response.json()["response"] == "from groq"

    def test_empty_message(self, client: TestClient) -> None:
        response = client.post(f"{CHAT}/chat/send", json={"message": "  "})

        assert response.status_code == 400
        assert response.json()["message"] == "Message cannot be empty"

    def test_unknown_session(self, client: TestClient) -> None:
        response = client.post(f"{CHAT}/chat/send", json={"message": "Hi", "sessionId": "missing"})

        assert response.status_code == 404
        assert response.json()["message"] == "Session not found: missing"

    def test_history_unknown_session(self, client: TestClient) -> None:
        response = client.get(f"{CHAT}/chat/history", params={"sessionId": "missing"})

        assert response.status_code == 404

    def test_provider_failure(self, client: TestClient, openai_model: FakeChatModel) -> None:
        openai_model.fail_on("complete", RuntimeError("overloaded"))

        response = client.post(f"{CHAT}/chat/send", json={"message": "Hi"})

        assert response.status_code == 503
        assert response.json()["message"] == "Error: Failed to get chat response: overloaded"


# =============================================================================
# Code Generator
# =============================================================================


class TestCodeGenerator:
    """Tests for /api/v1/code-generator."""

    def test_prompt_is_requirements_synonym(self) -> None:
        assert GenerateCodeRequest(prompt="  a stack  ").text == "a stack"
        assert GenerateCodeRequest(requirements="a queue", prompt="ignored").text == "a queue"

    def test_build_test_requirements(self) -> None:
        assert build_test_requirements("int f();", "java", "JUnit 5") == (
            "Write unit tests for the following java code using JUnit 5:\n\nint f();"
        )
        assert build_test_requirements("def f(): ...", "python", None).startswith(
            "Write unit tests for the following python code:\n\n"
        )

    def test_generate(self, client: TestClient, openai_model: FakeChatModel) -> None:
        openai_model.response = "public class Stack {}"

        response = client.post(
            f"{GENERATOR}/generate", json={"requirements": "A stack of ints", "language": "java"}
        )

        data = response.json()
        assert response.status_code == 200
        assert data["generatedCode"] == "public class Stack {}"
        assert data["language"] == "java"
        user_prompt = openai_model.last_messages[1]["content"]
        assert "Requirements:\nA stack of ints\n\nPlease generate the code in java." in user_prompt

    def test_generate_requires_requirements(self, client: TestClient) -> None:
        response = client.post(f"{GENERATOR}/generate", json={"language": "java"})

        assert response.status_code == 400

    def test_generate_with_groq(self, client: TestClient, provider_manager) -> None:
        provider_manager.get_model("groq").response = "from groq"

        response = client.post(
            f"{GENERATOR}/generate",
            json={"prompt": "A queue", "language": "python", "service": "GroqAIChatService"},
        )

        assert response.json()["generatedCode"] == "from groq"

    def test_generate_unknown_service(self, client: TestClient) -> None:
        response = client.post(
            f"{GENERATOR}/generate", json={"prompt": "A queue", "service": "Nope"}
        )

        assert response.status_code == 503

    def test_generate_tests(self, client: TestClient, openai_model: FakeChatModel) -> None:
        openai_model.response = "@Test void adds() {}"

        response = client.post(
            f"{GENERATOR}/generate/tests",
            json={"code": "int add(int a, int b)", "framework": "JUnit 5"},
        )

        assert response.json()["generatedTests"] == "@Test void adds() {}"
        assert "using JUnit 5" in openai_model.last_messages[1]["content"]

    def test_generate_tests_requires_code(self, client: TestClient) -> None:
        response = client.post(f"{GENERATOR}/generate/tests", json={"code": ""})

        assert response.status_code == 400
        assert response.json()["message"] == "Code and language are required"
