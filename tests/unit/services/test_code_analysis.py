"""Tests for the session-aware code analysis service.

Verifies:
- Session-bound analysis writes both turns to memory
- Memory context is prefixed to later requests
- Streaming records the exchange only after a successful stream
- Stateless analysis leaves sessions untouched
"""

from __future__ import annotations

import pytest

from src.core.exceptions import AIServiceError, SessionNotFoundError
from src.schemas.analysis import AnalysisRequest, AnalysisType
from src.services.code_analysis import CodeAnalysisService
from src.sessions.manager import SessionManager
from src.sessions.memory import MessageType
from tests.fakes.fake_clients import FakeChatModel


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def session_id(session_manager: SessionManager) -> str:
    return session_manager.create_session()


def _request(session_id: str | None, code: str = "int x = 1;", **overrides) -> AnalysisRequest:
    return AnalysisRequest(
        code=code,
        analysis_type=overrides.pop("analysis_type", AnalysisType.EXPLAIN),
        language="java",
        session_id=session_id,
        **overrides,
    )


# =============================================================================
# analyze_code
# =============================================================================


class TestAnalyzeCode:
    """Tests for session-bound analysis."""

    @pytest.mark.asyncio
    async def test_response_annotated_with_session(
        self,
        code_analysis_service: CodeAnalysisService,
        openai_model: FakeChatModel,
        session_id: str,
    ) -> None:
        openai_model.response = "Declares x."

        response = await code_analysis_service.analyze_code(_request(session_id), "OpenAIChatService")

        assert response.success is True
        assert response.analysis == "Declares x."
        assert response.session_id == session_id
        assert response.conversation_context == f"Session: {session_id} | Messages in memory: 3"

    @pytest.mark.asyncio
    async def test_exchange_written_to_memory(
        self,
        code_analysis_service: CodeAnalysisService,
        session_manager: SessionManager,
        openai_model: FakeChatModel,
        session_id: str,
    ) -> None:
        openai_model.response = "Declares x."

        await code_analysis_service.analyze_code(_request(session_id), "openai")

        messages = session_manager.get_session_memory(session_id).messages()
        assert [(m.type, m.text) for m in messages] == [
            (MessageType.USER, "int x = 1;"),
            (MessageType.AI, "Declares x."),
        ]

    @pytest.mark.asyncio
    async def test_memory_prefixed_to_followup(
        self,
        code_analysis_service: CodeAnalysisService,
        openai_model: FakeChatModel,
        session_id: str,
    ) -> None:
        openai_model.response = "First answer"
        await code_analysis_service.analyze_code(_request(session_id), "OpenAIChatService")

        await code_analysis_service.analyze_code(
            _request(session_id, "Why?", analysis_type=AnalysisType.FOLLOWUP),
            "OpenAIChatService",
        )

        user_content = openai_model.last_messages[1]["content"]
        assert "// Previous conversation context:\n" in user_content
        assert "// USER: int x = 1;\n" in user_content
        assert "// AI: First answer\n" in user_content
        assert user_content.rstrip("`\n").endswith("// Current request:\nWhy?")

    @pytest.mark.asyncio
    async def test_first_request_not_enhanced(
        self,
        code_analysis_service: CodeAnalysisService,
        openai_model: FakeChatModel,
        session_id: str,
    ) -> None:
        await code_analysis_service.analyze_code(_request(session_id), "OpenAIChatService")

        assert "Previous conversation context" not in openai_model.last_messages[1]["content"]

    @pytest.mark.asyncio
    async def test_memory_stores_original_code_not_enhanced(
        self,
        code_analysis_service: CodeAnalysisService,
        session_manager: SessionManager,
        session_id: str,
    ) -> None:
        await code_analysis_service.analyze_code(_request(session_id, "one"), "OpenAIChatService")
        await code_analysis_service.analyze_code(_request(session_id, "two"), "OpenAIChatService")

        user_turns = [
            m.text
            for m in session_manager.get_session_memory(session_id).messages()
            if m.type == MessageType.USER
        ]
        assert user_turns == ["one", "two"]

    @pytest.mark.asyncio
    async def test_unknown_session_raises(self, code_analysis_service: CodeAnalysisService) -> None:
        with pytest.raises(SessionNotFoundError):
            await code_analysis_service.analyze_code(_request("missing"), "OpenAIChatService")

    @pytest.mark.asyncio
    async def test_unknown_service_raises(
        self, code_analysis_service: CodeAnalysisService, session_id: str
    ) -> None:
        with pytest.raises(AIServiceError, match="is not available"):
            await code_analysis_service.analyze_code(_request(session_id), "MissingService")

    @pytest.mark.asyncio
    async def test_provider_failure_leaves_memory_untouched(
        self,
        code_analysis_service: CodeAnalysisService,
        session_manager: SessionManager,
        openai_model: FakeChatModel,
        session_id: str,
    ) -> None:
        openai_model.fail_on("complete", RuntimeError("timeout"))

        with pytest.raises(AIServiceError):
            await code_analysis_service.analyze_code(_request(session_id), "OpenAIChatService")

        assert len(session_manager.get_session_memory(session_id)) == 0


# =============================================================================
# stream_analysis
# =============================================================================


class TestStreamAnalysis:
    """Tests for session-bound streaming."""

    @pytest.mark.asyncio
    async def test_events_carry_session_and_memory_updated(
        self,
        code_analysis_service: CodeAnalysisService,
        session_manager: SessionManager,
        openai_streaming_model: FakeChatModel,
        session_id: str,
    ) -> None:
        openai_streaming_model.tokens = ["Decl", "ares x."]

        stream = await code_analysis_service.stream_analysis(_request(session_id), "OpenAIChatService")
        events = [event async for event in stream]

        assert [e.event_type for e in events] == ["content", "content", "complete"]
        assert all(e.session_id == session_id for e in events)
        texts = [m.text for m in session_manager.get_session_memory(session_id).messages()]
        assert texts == ["int x = 1;", "Declares x."]

    @pytest.mark.asyncio
    async def test_failed_stream_not_remembered(
        self,
        code_analysis_service: CodeAnalysisService,
        session_manager: SessionManager,
        openai_streaming_model: FakeChatModel,
        session_id: str,
    ) -> None:
        openai_streaming_model.fail_on("stream_end", RuntimeError("reset"))

        stream = await code_analysis_service.stream_analysis(_request(session_id), "OpenAIChatService")
        events = [event async for event in stream]

        assert events[-1].event_type == "error"
        assert len(session_manager.get_session_memory(session_id)) == 0

    @pytest.mark.asyncio
    async def test_empty_stream_not_remembered(
        self,
        code_analysis_service: CodeAnalysisService,
        session_manager: SessionManager,
        openai_streaming_model: FakeChatModel,
        session_id: str,
    ) -> None:
        openai_streaming_model.tokens = []

        stream = await code_analysis_service.stream_analysis(_request(session_id), "OpenAIChatService")
        events = [event async for event in stream]

        assert [e.event_type for e in events] == ["complete"]
        assert len(session_manager.get_session_memory(session_id)) == 0

    @pytest.mark.asyncio
    async def test_unknown_session_raises_before_streaming(
        self, code_analysis_service: CodeAnalysisService
    ) -> None:
        with pytest.raises(SessionNotFoundError):
            await code_analysis_service.stream_analysis(_request("missing"), "OpenAIChatService")


# =============================================================================
# Stateless and Discovery
# =============================================================================


class TestStateless:
    """Tests for analysis without sessions."""

    @pytest.mark.asyncio
    async def test_analyze_stateless(
        self,
        code_analysis_service: CodeAnalysisService,
        session_manager: SessionManager,
        openai_model: FakeChatModel,
    ) -> None:
        openai_model.response = "stateless"

        response = await code_analysis_service.analyze_stateless(_request(None), "OpenAIChatService")

        assert response.analysis == "stateless"
        assert response.session_id is None
        assert session_manager.get_active_session_count() == 0

    @pytest.mark.asyncio
    async def test_stream_stateless(
        self, code_analysis_service: CodeAnalysisService, openai_streaming_model: FakeChatModel
    ) -> None:
        stream = await code_analysis_service.stream_stateless(_request(None), "groq")
        events = [event async for event in stream]

        assert events[-1].event_type == "complete"
        assert openai_streaming_model.call_history == []

    @pytest.mark.asyncio
    async def test_stream_stateless_unknown_service(
        self, code_analysis_service: CodeAnalysisService
    ) -> None:
        with pytest.raises(AIServiceError):
            await code_analysis_service.stream_stateless(_request(None), "Nope")

    def test_service_discovery(self, code_analysis_service: CodeAnalysisService) -> None:
        assert code_analysis_service.has_available_service() is True
        assert code_analysis_service.get_available_service_count() == 2
        assert set(code_analysis_service.get_available_services()) == {
            "OpenAIChatService",
            "GroqAIChatService",
        }
