"""Tests for retrieval-augmented document chat.

Verifies:
- System prompt assembly for first and follow-up questions
- Intent-filtered, session-scoped retrieval
- Transcript bookkeeping and fallback answers
"""

from __future__ import annotations

import pytest

from src.core.constants import MSG_AI_RESPONSE_FAILED, MSG_EMPTY_QUESTION, MSG_NO_AI_RESPONSE
from src.providers.manager import ProviderManager
from src.schemas.documents import ChatHistoryMessage, DocumentChatRequest, TextSegment
from src.services.document_chat import (
    FIRST_REQUEST_PROMPT,
    FOLLOW_UP_PROMPT,
    DocumentChatService,
    build_system_prompt,
    describe_segment,
    provider_for,
)
from src.services.intent_detection import GENERAL_RESULT, IntentScore, SearchIntent
from src.vectorstore.memory import InMemoryEmbeddingStore
from tests.fakes.fake_clients import (
    FailingEmbeddingStore,
    FakeChatModel,
    FakeEmbeddingClient,
    FlakyEmbeddingStore,
)


# =============================================================================
# Fixtures
# =============================================================================


def _segment(element_type: str, name: str, session_id: str = "s1", **extra: str) -> TextSegment:
    metadata = {
        "type": element_type,
        "name": name,
        "class": "Calculator",
        "package": "com.example",
        "startLine": "5",
        "endLine": "7",
        "sessionId": session_id,
        "documentId": "doc-1",
        "modifiers": "[public]",
        "javadoc": "",
    }
    metadata.update(extra)
    return TextSegment(text=f"[{element_type.upper()}] Calculator.{name}\nbody of {name}", metadata=metadata)


@pytest.fixture
def method_segment() -> TextSegment:
    return _segment("method", "add", javadoc="Adds numbers")


# =============================================================================
# Prompt Helpers
# =============================================================================


class TestDescribeSegment:
    def test_label(self, method_segment: TextSegment) -> None:
        assert describe_segment(method_segment) == "[method] Calculator.add (Lines 5-7)"


class TestProviderFor:
    """Requested service names map onto providers."""

    @pytest.mark.parametrize(
        ("service", "expected"),
        [
            (None, "openai"),
            ("openai", "openai"),
            ("OpenAIChatService", "openai"),
            ("groq", "groq"),
            ("GroqAIChatService", "groq"),
        ],
    )
    def test_mapping(self, service: str | None, expected: str) -> None:
        assert provider_for(service) == expected


class TestBuildSystemPrompt:
    """Tests for the document chat system prompt."""

    def test_first_request(self, method_segment: TextSegment) -> None:
        history = [ChatHistoryMessage(role="user", content="list methods")]

        prompt = build_system_prompt(
            IntentScore(SearchIntent.METHODS, 0.8765), [method_segment], history
        )

        assert prompt.startswith(FIRST_REQUEST_PROMPT)
        assert "Detected Intent: METHODS (confidence: 87.65%)\n" in prompt
        assert "The user is asking about METHODS." in prompt
        assert "Relevant code segments found:\n" in prompt
        assert (
            "1. [METHOD] Calculator.add (Lines 5-7, Package: com.example)\n" in prompt
        )
        assert "   Modifiers: [public]\n" in prompt
        assert "   Javadoc: Adds numbers\n" in prompt
        assert f"   Content:\n{method_segment.text}\n\n" in prompt
        assert "Previous conversation context" not in prompt

    def test_follow_up_includes_earlier_turns(self) -> None:
        history = [
            ChatHistoryMessage(role="user", content="list methods"),
            ChatHistoryMessage(role="assistant", content="add and subtract"),
            ChatHistoryMessage(role="user", content="what about fields?"),
        ]

        prompt = build_system_prompt(GENERAL_RESULT, [], history)

        assert prompt.startswith(FOLLOW_UP_PROMPT)
        assert "Provide a helpful response about the Java code." in prompt
        assert "Previous conversation context:\nUser: list methods\nAssistant: add and subtract\n" in prompt
        assert "User: what about fields?" not in prompt
        assert "Relevant code segments found" not in prompt

    def test_empty_javadoc_omitted(self) -> None:
        segment = _segment("field", "[total]")

        prompt = build_system_prompt(GENERAL_RESULT, [segment], [])

        assert "Javadoc:" not in prompt


# =============================================================================
# chat_with_documents
# =============================================================================


class TestChatWithDocuments:
    """Tests for the chat entry point."""

    @pytest.mark.asyncio
    async def test_empty_question_rejected(self, document_chat_service: DocumentChatService) -> None:
        response = await document_chat_service.chat_with_documents(
            DocumentChatRequest(message="  ", session_id="s1")
        )

        assert response.success is False
        assert response.message == MSG_EMPTY_QUESTION
        assert document_chat_service.get_conversation_history("s1") == []

    @pytest.mark.asyncio
    async def test_answer_with_relevant_documents(
        self,
        document_chat_service: DocumentChatService,
        openai_model: FakeChatModel,
        method_segment: TextSegment,
    ) -> None:
        await document_chat_service.add_document_to_vector_store("doc-1", [method_segment], "java")
        openai_model.response = "There is one method: add."

        response = await document_chat_service.chat_with_documents(
            DocumentChatRequest(message="explain the code", session_id="s1")
        )

        assert response.success is True
        assert response.message == "Response generated successfully"
        assert response.answer == "There is one method: add."
        assert response.response == response.answer
        assert response.relevant_documents == ["[method] Calculator.add (Lines 5-7)"]
        assert [m.role for m in response.conversation_history] == ["user", "assistant"]
        assert openai_model.last_messages[1] == {"role": "user", "content": "explain the code"}

    @pytest.mark.asyncio
    async def test_retrieval_scoped_to_session(
        self,
        document_chat_service: DocumentChatService,
        openai_model: FakeChatModel,
    ) -> None:
        await document_chat_service.add_document_to_vector_store(
            "doc-1", [_segment("method", "mine", "s1"), _segment("method", "theirs", "s2")], "java"
        )

        response = await document_chat_service.chat_with_documents(
            DocumentChatRequest(message="explain", session_id="s1")
        )

        assert response.relevant_documents == ["[method] Calculator.mine (Lines 5-7)"]

    @pytest.mark.asyncio
    async def test_retrieval_filtered_by_intent(
        self,
        document_chat_service: DocumentChatService,
        intent_service,
    ) -> None:
        await intent_service.initialize_intent_embeddings()
        await document_chat_service.add_document_to_vector_store(
            "doc-1", [_segment("method", "add"), _segment("field", "[total]")], "java"
        )

        response = await document_chat_service.chat_with_documents(
            DocumentChatRequest(message="list all methods", session_id="s1")
        )

        assert response.relevant_documents == ["[method] Calculator.add (Lines 5-7)"]

    @pytest.mark.asyncio
    async def test_history_accumulates(
        self, document_chat_service: DocumentChatService
    ) -> None:
        for question in ("first", "second"):
            await document_chat_service.chat_with_documents(
                DocumentChatRequest(message=question, session_id="s1")
            )

        history = document_chat_service.get_conversation_history("s1")
        assert [m.content for m in history if m.role == "user"] == ["first", "second"]
        assert len(history) == 4

    @pytest.mark.asyncio
    async def test_second_question_uses_follow_up_prompt(
        self, document_chat_service: DocumentChatService, openai_model: FakeChatModel
    ) -> None:
        await document_chat_service.chat_with_documents(DocumentChatRequest(message="one", session_id="s1"))
        await document_chat_service.chat_with_documents(DocumentChatRequest(message="two", session_id="s1"))

        system_prompt = openai_model.last_messages[0]["content"]
        assert system_prompt.startswith(FOLLOW_UP_PROMPT)
        assert "User: one\nAssistant: Fake analysis\n" in system_prompt

    @pytest.mark.asyncio
    async def test_groq_service_selected(
        self, document_chat_service: DocumentChatService, provider_manager: ProviderManager
    ) -> None:
        groq = provider_manager.get_model("groq")
        groq.response = "from groq"

        response = await document_chat_service.chat_with_documents(
            DocumentChatRequest(message="hi", session_id="s1", service="GroqAIChatService")
        )

        assert response.answer == "from groq"

    @pytest.mark.asyncio
    async def test_provider_failure_returns_apology(
        self, document_chat_service: DocumentChatService, openai_model: FakeChatModel
    ) -> None:
        openai_model.fail_on("complete", RuntimeError("down"))

        response = await document_chat_service.chat_with_documents(
            DocumentChatRequest(message="hi", session_id="s1")
        )

        assert response.success is True
        assert response.answer == MSG_AI_RESPONSE_FAILED

    @pytest.mark.asyncio
    async def test_blank_answer_replaced(
        self, document_chat_service: DocumentChatService, openai_model: FakeChatModel
    ) -> None:
        openai_model.response = "   "

        response = await document_chat_service.chat_with_documents(
            DocumentChatRequest(message="hi", session_id="s1")
        )

        assert response.answer == MSG_NO_AI_RESPONSE

    @pytest.mark.asyncio
    async def test_search_failure_answers_without_documents(
        self, provider_manager: ProviderManager, intent_service
    ) -> None:
        service = DocumentChatService(
            FakeEmbeddingClient(),
            FailingEmbeddingStore(RuntimeError("pinecone down")),
            provider_manager,
            intent_service,
        )

        response = await service.chat_with_documents(DocumentChatRequest(message="hi", session_id="s1"))

        assert response.success is True
        assert response.relevant_documents == []


# =============================================================================
# Indexing and History
# =============================================================================


class TestIndexing:
    """Tests for storing and deleting session documents."""

    @pytest.mark.asyncio
    async def test_add_document_embeds_and_stores(
        self,
        document_chat_service: DocumentChatService,
        embedding_client: FakeEmbeddingClient,
        embedding_store: InMemoryEmbeddingStore,
        method_segment: TextSegment,
    ) -> None:
        stored = await document_chat_service.add_document_to_vector_store("doc-1", [method_segment], "java")

        assert stored == 1
        assert len(embedding_store) == 1
        assert embedding_client.call_history[-1] == {
            "method": "embed_all",
            "args": {"texts": [method_segment.text]},
        }

    @pytest.mark.asyncio
    async def test_add_empty_document(self, document_chat_service: DocumentChatService) -> None:
        assert await document_chat_service.add_document_to_vector_store("doc-1", [], "java") == 0

    @pytest.mark.asyncio
    async def test_add_failure_returns_zero(
        self, provider_manager: ProviderManager, intent_service, method_segment: TextSegment
    ) -> None:
        service = DocumentChatService(
            FakeEmbeddingClient(error_on={"embed_all": RuntimeError("quota")}),
            InMemoryEmbeddingStore(),
            provider_manager,
            intent_service,
        )

        assert await service.add_document_to_vector_store("doc-1", [method_segment], "java") == 0

    @pytest.mark.asyncio
    async def test_large_document_indexed_in_batches(
        self,
        provider_manager: ProviderManager,
        intent_service,
        embedding_client: FakeEmbeddingClient,
    ) -> None:
        store = InMemoryEmbeddingStore()
        service = DocumentChatService(
            embedding_client, store, provider_manager, intent_service, index_batch_size=50
        )
        segments = [_segment("method", f"m{i}") for i in range(120)]

        stored = await service.add_document_to_vector_store("doc-1", segments, "java")

        assert stored == 120
        assert len(store) == 120
        batch_sizes = [
            len(call["args"]["texts"])
            for call in embedding_client.call_history
            if call["method"] == "embed_all"
        ]
        assert batch_sizes == [50, 50, 20]

    @pytest.mark.asyncio
    async def test_failed_batch_does_not_sink_document(
        self,
        provider_manager: ProviderManager,
        intent_service,
        embedding_client: FakeEmbeddingClient,
    ) -> None:
        store = FlakyEmbeddingStore(fail_on_call=2)
        service = DocumentChatService(
            embedding_client, store, provider_manager, intent_service, index_batch_size=50
        )
        segments = [_segment("method", f"m{i}") for i in range(120)]

        stored = await service.add_document_to_vector_store("doc-1", segments, "java")

        assert stored == 70
        assert len(store) == 70

    @pytest.mark.asyncio
    async def test_delete_session_documents(
        self,
        document_chat_service: DocumentChatService,
        embedding_store: InMemoryEmbeddingStore,
    ) -> None:
        await document_chat_service.add_document_to_vector_store(
            "doc-1", [_segment("method", "a", "s1"), _segment("method", "b", "s2")], "java"
        )
        await document_chat_service.chat_with_documents(DocumentChatRequest(message="hi", session_id="s1"))

        await document_chat_service.delete_session_documents("s1")

        assert len(embedding_store) == 1
        assert document_chat_service.get_conversation_history("s1") == []


class TestHistory:
    """Tests for transcript accessors."""

    @pytest.mark.asyncio
    async def test_clear_history(self, document_chat_service: DocumentChatService) -> None:
        await document_chat_service.chat_with_documents(DocumentChatRequest(message="hi", session_id="s1"))

        document_chat_service.clear_conversation_history("s1")

        assert document_chat_service.get_conversation_history("s1") == []

    @pytest.mark.asyncio
    async def test_history_is_copy(self, document_chat_service: DocumentChatService) -> None:
        await document_chat_service.chat_with_documents(DocumentChatRequest(message="hi", session_id="s1"))

        document_chat_service.get_conversation_history("s1").clear()

        assert len(document_chat_service.get_conversation_history("s1")) == 2
