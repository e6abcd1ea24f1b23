"""Test configuration and shared fixtures.

Pattern: Pytest fixtures, conftest.py
"""

from __future__ import annotations

import pytest

from src.core.config import Settings
from src.providers.factory import AIServiceFactory, create_service_factory
from src.providers.manager import ProviderManager
from src.services.code_analysis import CodeAnalysisService
from src.services.document_chat import DocumentChatService
from src.services.document_processing import DocumentProcessingService
from src.services.intent_detection import IntentDetectionService
from src.sessions.manager import SessionManager
from src.vectorstore.memory import InMemoryEmbeddingStore
from tests.fakes.fake_clients import FakeChatModel, FakeEmbeddingClient


SAMPLE_JAVA_SOURCE = """package com.example.calc;

import java.util.List;
import java.util.ArrayList;

/**
 * Simple calculator.
 */
public class Calculator {

    private int total = 0;

    public Calculator() {
        this.total = 0;
    }

    /**
     * Adds two numbers.
     */
    public int add(int a, int b) {
        return a + b;
    }

    public static List<Integer> history() {
        return new ArrayList<>();
    }
}
"""


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with both providers configured and no Pinecone."""
    return Settings(
        _env_file=None,
        openai_api_key="sk-test-openai",
        groq_api_key="gsk-test-groq",
        pinecone_api_key="pc-test",
        vector_store_backend="memory",
        initialize_intents_on_startup=False,
        log_level="DEBUG",
    )


@pytest.fixture
def unconfigured_settings() -> Settings:
    """Create settings without any provider API key."""
    return Settings(
        _env_file=None,
        openai_api_key="",
        groq_api_key="",
        vector_store_backend="memory",
        initialize_intents_on_startup=False,
    )


# ============================================================================
# Provider Fixtures
# ============================================================================

@pytest.fixture
def provider_manager(test_settings: Settings) -> ProviderManager:
    """ProviderManager building FakeChatModel clients."""
    return ProviderManager(test_settings, client_factory=FakeChatModel)


@pytest.fixture
def openai_model(provider_manager: ProviderManager) -> FakeChatModel:
    """The cached OpenAI client of provider_manager."""
    return provider_manager.get_model("openai")


@pytest.fixture
def openai_streaming_model(provider_manager: ProviderManager) -> FakeChatModel:
    """The cached OpenAI streaming client of provider_manager."""
    return provider_manager.get_streaming_model("openai")


@pytest.fixture
def service_factory(provider_manager: ProviderManager) -> AIServiceFactory:
    return create_service_factory(provider_manager)


# ============================================================================
# Session and Service Fixtures
# ============================================================================

@pytest.fixture
def session_manager() -> SessionManager:
    return SessionManager(max_messages=10)


@pytest.fixture
def code_analysis_service(
    service_factory: AIServiceFactory,
    session_manager: SessionManager,
) -> CodeAnalysisService:
    return CodeAnalysisService(service_factory, session_manager)


@pytest.fixture
def embedding_client() -> FakeEmbeddingClient:
    return FakeEmbeddingClient()


@pytest.fixture
def embedding_store() -> InMemoryEmbeddingStore:
    return InMemoryEmbeddingStore()


@pytest.fixture
def intent_service(
    embedding_client: FakeEmbeddingClient,
    embedding_store: InMemoryEmbeddingStore,
) -> IntentDetectionService:
    return IntentDetectionService(embedding_client, embedding_store, top_k=5, min_score=0.3)


@pytest.fixture
def document_chat_service(
    embedding_client: FakeEmbeddingClient,
    embedding_store: InMemoryEmbeddingStore,
    provider_manager: ProviderManager,
    intent_service: IntentDetectionService,
) -> DocumentChatService:
    return DocumentChatService(
        embedding_client,
        embedding_store,
        provider_manager,
        intent_service,
        top_k=10,
        min_score=0.0,
    )


@pytest.fixture
def document_processing_service(
    document_chat_service: DocumentChatService,
) -> DocumentProcessingService:
    return DocumentProcessingService(document_chat_service)


@pytest.fixture
def sample_java_source() -> str:
    return SAMPLE_JAVA_SOURCE
