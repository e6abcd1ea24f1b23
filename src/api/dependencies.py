"""FastAPI dependency providers.

Module-level singletons built lazily from Settings. Routes receive them
through ``Depends(get_x)``; tests replace them via
``app.dependency_overrides``.
"""

from __future__ import annotations

import logging

from src.clients.embeddings import OpenAIEmbeddingClient
from src.clients.protocols import EmbeddingClientProtocol, EmbeddingStoreProtocol
from src.core.config import get_settings
from src.providers.factory import AIServiceFactory, create_service_factory
from src.providers.manager import ProviderManager
from src.services.code_analysis import CodeAnalysisService
from src.services.document_chat import DocumentChatService
from src.services.document_processing import DocumentProcessingService
from src.services.general_chat import GeneralChatService
from src.services.intent_detection import IntentDetectionService
from src.sessions.manager import SessionManager, get_session_manager
from src.vectorstore.memory import InMemoryEmbeddingStore
from src.vectorstore.pinecone import PineconeEmbeddingStore


logger = logging.getLogger(__name__)

_provider_manager: ProviderManager | None = None
_service_factory: AIServiceFactory | None = None
_code_analysis_service: CodeAnalysisService | None = None
_general_chat_service: GeneralChatService | None = None
_embedding_client: EmbeddingClientProtocol | None = None
_embedding_store: EmbeddingStoreProtocol | None = None
_intent_service: IntentDetectionService | None = None
_document_chat_service: DocumentChatService | None = None
_document_processing_service: DocumentProcessingService | None = None


# =============================================================================
# AI Providers
# =============================================================================


def get_provider_manager() -> ProviderManager:
    global _provider_manager
    if _provider_manager is None:
        _provider_manager = ProviderManager(get_settings())
    return _provider_manager


def get_service_factory() -> AIServiceFactory:
    global _service_factory
    if _service_factory is None:
        _service_factory = create_service_factory(get_provider_manager())
    return _service_factory


def get_sessions() -> SessionManager:
    return get_session_manager()


def get_code_analysis_service() -> CodeAnalysisService:
    global _code_analysis_service
    if _code_analysis_service is None:
        _code_analysis_service = CodeAnalysisService(get_service_factory(), get_session_manager())
    return _code_analysis_service


def get_general_chat_service() -> GeneralChatService:
    global _general_chat_service
    if _general_chat_service is None:
        _general_chat_service = GeneralChatService(get_provider_manager(), get_session_manager())
    return _general_chat_service


# =============================================================================
# Document RAG
# =============================================================================


def get_embedding_client() -> EmbeddingClientProtocol:
    global _embedding_client
    if _embedding_client is None:
        settings = get_settings()
        _embedding_client = OpenAIEmbeddingClient(
            api_key=settings.openai_api_key.get_secret_value(),
            model=settings.embedding_model,
            base_url=settings.openai_base_url,
            timeout=settings.embedding_timeout_seconds,
        )
    return _embedding_client


def get_embedding_store() -> EmbeddingStoreProtocol:
    """Vector store selected by ``vector_store_backend``."""
    global _embedding_store
    if _embedding_store is None:
        settings = get_settings()
        if settings.vector_store_backend == "memory":
            logger.info("Using in-memory embedding store")
            _embedding_store = InMemoryEmbeddingStore()
        else:
            _embedding_store = PineconeEmbeddingStore(
                api_key=settings.pinecone_api_key.get_secret_value(),
                index_name=settings.pinecone_index_name,
                project_id=settings.pinecone_project_id,
                environment=settings.pinecone_environment,
                timeout=settings.pinecone_timeout_seconds,
            )
    return _embedding_store


def get_intent_service() -> IntentDetectionService:
    global _intent_service
    if _intent_service is None:
        settings = get_settings()
        _intent_service = IntentDetectionService(
            get_embedding_client(),
            get_embedding_store(),
            top_k=settings.intent_top_k,
            min_score=settings.intent_min_score,
        )
    return _intent_service


def get_document_chat_service() -> DocumentChatService:
    global _document_chat_service
    if _document_chat_service is None:
        settings = get_settings()
        _document_chat_service = DocumentChatService(
            get_embedding_client(),
            get_embedding_store(),
            get_provider_manager(),
            get_intent_service(),
            top_k=settings.rag_top_k,
            min_score=settings.rag_min_score,
        )
    return _document_chat_service


def get_document_processing_service() -> DocumentProcessingService:
    global _document_processing_service
    if _document_processing_service is None:
        settings = get_settings()
        _document_processing_service = DocumentProcessingService(
            get_document_chat_service(),
            max_java_bytes=settings.max_java_file_bytes,
            max_pdf_bytes=settings.max_pdf_file_bytes,
            pdf_chunk_size=settings.pdf_chunk_size,
            pdf_chunk_overlap=settings.pdf_chunk_overlap,
        )
    return _document_processing_service


# =============================================================================
# Lifecycle
# =============================================================================


async def close_dependencies() -> None:
    """Close HTTP clients and drop every singleton."""
    global _provider_manager, _service_factory, _code_analysis_service
    global _general_chat_service, _embedding_client, _embedding_store
    global _intent_service, _document_chat_service, _document_processing_service

    if _provider_manager is not None:
        await _provider_manager.close()
    if _embedding_client is not None:
        await _embedding_client.close()
    if _embedding_store is not None:
        await _embedding_store.close()

    _provider_manager = None
    _service_factory = None
    _code_analysis_service = None
    _general_chat_service = None
    _embedding_client = None
    _embedding_store = None
    _intent_service = None
    _document_chat_service = None
    _document_processing_service = None
