"""API test fixtures.

The application is built with create_app() and every service dependency
overridden with the in-memory fixtures from tests/conftest.py. TestClient is
used without a ``with`` block, so the lifespan (and its real HTTP clients)
never runs.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.dependencies import (
    get_code_analysis_service,
    get_document_chat_service,
    get_document_processing_service,
    get_general_chat_service,
    get_intent_service,
    get_provider_manager,
    get_sessions,
)
from src.main import create_app
from src.providers.manager import ProviderManager
from src.services.code_analysis import CodeAnalysisService
from src.services.document_chat import DocumentChatService
from src.services.document_processing import DocumentProcessingService
from src.services.general_chat import GeneralChatService
from src.services.intent_detection import IntentDetectionService
from src.sessions.manager import SessionManager


@pytest.fixture
def general_chat_service(
    provider_manager: ProviderManager,
    session_manager: SessionManager,
) -> GeneralChatService:
    return GeneralChatService(provider_manager, session_manager)


@pytest.fixture
def app(
    provider_manager: ProviderManager,
    session_manager: SessionManager,
    code_analysis_service: CodeAnalysisService,
    general_chat_service: GeneralChatService,
    intent_service: IntentDetectionService,
    document_chat_service: DocumentChatService,
    document_processing_service: DocumentProcessingService,
) -> FastAPI:
    """Application wired to fake providers and the in-memory vector store."""
    application = create_app()
    application.dependency_overrides.update(
        {
            get_provider_manager: lambda: provider_manager,
            get_sessions: lambda: session_manager,
            get_code_analysis_service: lambda: code_analysis_service,
            get_general_chat_service: lambda: general_chat_service,
            get_intent_service: lambda: intent_service,
            get_document_chat_service: lambda: document_chat_service,
            get_document_processing_service: lambda: document_processing_service,
        }
    )
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
