"""Document RAG API routes.

Endpoints under /api/v1/document-rag:
- POST /upload - Multipart upload of a .java or .pdf file into a session
- POST /chat - Question about the session's documents
- GET|DELETE /history/{sessionId} - Document chat transcript
- GET /documents - Uploaded document records
- DELETE /documents/{sessionId} - Purge a session's vectors and transcript
- GET /intents - Intent examples and whether their embeddings are stored
- GET /health
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import JSONResponse

from src.api.dependencies import (
    get_document_chat_service,
    get_document_processing_service,
    get_intent_service,
)
from src.core.constants import DOCUMENT_RAG_PREFIX, MSG_UNSUPPORTED_UPLOAD
from src.core.exceptions import VectorStoreClientError
from src.core.logging import bind_request_context, get_logger
from src.schemas.documents import DocumentChatRequest, DocumentChatResponse, DocumentUploadResponse
from src.services.document_chat import DocumentChatService
from src.services.document_processing import DocumentProcessingService
from src.services.intent_detection import IntentDetectionService


logger = get_logger(__name__)

router = APIRouter(prefix=DOCUMENT_RAG_PREFIX, tags=["Document RAG"])


def _json(model: DocumentUploadResponse | DocumentChatResponse, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=model.model_dump(mode="json", by_alias=True),
    )


# =============================================================================
# Upload
# =============================================================================


def _unsupported(file_name: str) -> JSONResponse:
    logger.warning("Unsupported file rejected", file_name=file_name)
    return _json(DocumentUploadResponse(success=False, message=MSG_UNSUPPORTED_UPLOAD), 400)


@router.post("/upload", response_model=DocumentUploadResponse)
async def upload_document(
    file: UploadFile = File(...),
    session_id: str = Form(..., alias="sessionId"),
    processing: DocumentProcessingService = Depends(get_document_processing_service),
) -> JSONResponse:
    bind_request_context(session_id=session_id)
    file_name = file.filename or ""
    logger.info(
        "File upload received",
        file_name=file_name,
        content_type=file.content_type,
        file_size=file.size,
        session_id=session_id,
    )

    # Size known from the multipart part: reject before reading it into memory
    declared_size = file.size
    if declared_size is not None and not processing.classify_upload(
        file_name, file.content_type, declared_size
    ):
        return _unsupported(file_name)

    content = await file.read()
    document_type = processing.classify_upload(file_name, file.content_type, len(content))
    if document_type is None:
        return _unsupported(file_name)

    logger.info("Processing upload", document_type=document_type, session_id=session_id)
    response = await processing.process_document(document_type, file_name, content, session_id)
    return _json(response)


# =============================================================================
# Chat
# =============================================================================


@router.post("/chat", response_model=DocumentChatResponse)
async def chat_with_documents(
    request: DocumentChatRequest,
    chat: DocumentChatService = Depends(get_document_chat_service),
) -> JSONResponse:
    bind_request_context(session_id=request.session_id, service=request.service)
    response = await chat.chat_with_documents(request)
    return _json(response, 200 if response.success else 400)


@router.get("/history/{session_id}")
async def get_history(
    session_id: str,
    chat: DocumentChatService = Depends(get_document_chat_service),
) -> dict[str, Any]:
    history = chat.get_conversation_history(session_id)
    return {
        "sessionId": session_id,
        "history": [message.model_dump(by_alias=True) for message in history],
        "count": len(history),
    }


@router.delete("/history/{session_id}")
async def clear_history(
    session_id: str,
    chat: DocumentChatService = Depends(get_document_chat_service),
) -> dict[str, Any]:
    chat.clear_conversation_history(session_id)
    return {
        "success": True,
        "message": "Conversation history cleared",
        "sessionId": session_id,
    }


# =============================================================================
# Documents
# =============================================================================


@router.get("/documents")
async def list_documents(
    session_id: str | None = Query(default=None, alias="sessionId"),
    processing: DocumentProcessingService = Depends(get_document_processing_service),
) -> dict[str, Any]:
    documents = processing.list_documents(session_id)
    return {
        "documents": [document.to_dict() for document in documents],
        "count": len(documents),
    }


@router.delete("/documents/{session_id}")
async def delete_session_documents(
    session_id: str,
    chat: DocumentChatService = Depends(get_document_chat_service),
    processing: DocumentProcessingService = Depends(get_document_processing_service),
) -> JSONResponse:
    try:
        await chat.delete_session_documents(session_id)
    except VectorStoreClientError as e:
        logger.error("Failed to delete session documents", session_id=session_id, error=e.message)
        return JSONResponse(
            status_code=502,
            content={
                "success": False,
                "message": f"Error deleting documents: {e.message}",
                "sessionId": session_id,
            },
        )

    removed = processing.forget_session_documents(session_id)
    logger.info("Deleted session documents", session_id=session_id, documents=removed)
    return JSONResponse(
        content={
            "success": True,
            "message": f"Deleted {removed} documents for session",
            "sessionId": session_id,
            "documentsRemoved": removed,
        }
    )


# =============================================================================
# Intents and Health
# =============================================================================


@router.get("/intents")
async def get_intents(
    intents: IntentDetectionService = Depends(get_intent_service),
) -> dict[str, Any]:
    examples = intents.get_intent_examples()
    return {
        "intents": {
            intent.value: {
                "examples": intent_examples,
                "filter": intent.pinecone_filter,
            }
            for intent, intent_examples in examples.items()
        },
        "initialized": await intents.is_initialized(),
    }


@router.get("/health")
async def health() -> dict[str, Any]:
    return {
        "status": "UP",
        "service": "document-rag",
        "timestamp": datetime.now(UTC).isoformat(),
    }


__all__ = ["router"]
