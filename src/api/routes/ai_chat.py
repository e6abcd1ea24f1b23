"""AI chat API routes.

Endpoints under /api/v1/ai-chat:
- GET /health
- POST /chat/send - General chat through the chosen provider
- GET /chat/history?sessionId= - Turns remembered for a session
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import Field

from src.api.dependencies import get_general_chat_service
from src.core.constants import AI_CHAT_PREFIX
from src.core.exceptions import AIServiceError, SessionNotFoundError
from src.core.logging import bind_request_context, get_logger
from src.schemas.analysis import CamelModel
from src.services.general_chat import GeneralChatService


logger = get_logger(__name__)

router = APIRouter(prefix=AI_CHAT_PREFIX, tags=["AI Chat"])

SERVICE_VERSION = "1.0.0"


# =============================================================================
# Request Models
# =============================================================================


class ChatSendRequest(CamelModel):
    """Message for the general chat."""

    message: str = Field(default="", description="User message")
    session_id: str | None = Field(default=None, description="Session providing chat memory")
    service: str | None = Field(
        default=None, description="Provider (openai, groq) or chat service class name"
    )
    api_key: str | None = Field(default=None, description="Per-request provider API key")


def _error(status_code: int, message: str, session_id: str | None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message, "sessionId": session_id},
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/health")
async def health() -> dict[str, Any]:
    return {
        "status": "UP",
        "service": "AI Chat",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": SERVICE_VERSION,
        "description": "AI Chat Service - Conversational AI",
    }


@router.post("/chat/send")
async def send_message(
    request: ChatSendRequest,
    chat: GeneralChatService = Depends(get_general_chat_service),
) -> JSONResponse:
    if not request.message.strip():
        return _error(400, "Message cannot be empty", request.session_id)

    bind_request_context(session_id=request.session_id, service=request.service)
    try:
        reply = await chat.send_message(
            request.message,
            session_id=request.session_id,
            service=request.service,
            api_key=request.api_key,
        )
    except SessionNotFoundError as e:
        return _error(404, e.message, request.session_id)
    except AIServiceError as e:
        logger.error("AI chat failed", session_id=request.session_id, error=e.message)
        return _error(503, f"Error: {e.message}", request.session_id)

    return JSONResponse(
        content={
            "status": "success",
            "message": "Response generated successfully",
            "response": reply.response,
            "sessionId": reply.session_id,
            "timestamp": datetime.now(UTC).isoformat(),
        }
    )


@router.get("/chat/history")
async def get_chat_history(
    session_id: str = Query(..., alias="sessionId"),
    chat: GeneralChatService = Depends(get_general_chat_service),
) -> JSONResponse:
    try:
        history = chat.get_history(session_id)
    except SessionNotFoundError as e:
        return _error(404, e.message, session_id)

    return JSONResponse(
        content={"status": "success", "history": history, "sessionId": session_id}
    )


__all__ = ["ChatSendRequest", "router"]
