"""Code assistant API routes.

Endpoints under /api/v1/code:
- GET /health - Plain-text availability summary
- POST /sessions, DELETE /sessions/{id}, DELETE /sessions, GET /sessions/stats
- POST /assist/{service}[/stream|/followup] - Session-bound analysis
- POST /analyze[/{service}][/stream] - Analysis with any analysis type
- POST /explain|/refactor|/debug[/stream] - Analysis with a fixed type
- GET /services, GET /services/stats

Requests without a ``sessionId`` on the /analyze family run without memory.
Streaming endpoints emit Server-Sent Events: content chunks followed by one
``complete`` or ``error`` event.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from src.api.dependencies import get_code_analysis_service, get_sessions
from src.core.config import get_settings
from src.core.constants import CODE_ASSISTANT_PREFIX, MSG_INVALID_FOLLOWUP_SESSION, MSG_NO_AI_SERVICES
from src.core.exceptions import AIServiceError
from src.core.logging import bind_request_context, get_logger
from src.schemas.analysis import (
    AnalysisRequest,
    AnalysisResponse,
    AnalysisType,
    CamelModel,
    SessionResponse,
    StreamingAnalysisResponse,
)
from src.services.code_analysis import CodeAnalysisService
from src.sessions.manager import SessionManager


logger = get_logger(__name__)

router = APIRouter(prefix=CODE_ASSISTANT_PREFIX, tags=["Code Assistant"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

EventStreamOpener = Callable[[], Awaitable[AsyncIterator[StreamingAnalysisResponse]]]


# =============================================================================
# Helpers
# =============================================================================


def _json(model: CamelModel, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=model.model_dump(mode="json", by_alias=True),
    )


def _analysis_error(request: AnalysisRequest, message: str, status_code: int) -> JSONResponse:
    return _json(
        AnalysisResponse(
            analysis=message,
            analysis_type=request.analysis_type,
            language=request.language,
            session_id=request.session_id,
            success=False,
        ),
        status_code,
    )


def _failure_event(request: AnalysisRequest, message: str) -> StreamingAnalysisResponse:
    event = StreamingAnalysisResponse.failure(message, request.analysis_type, request.language)
    event.session_id = request.session_id
    return event


def _default_service() -> str:
    return get_settings().default_ai_service


def _with_type(request: AnalysisRequest, analysis_type: AnalysisType) -> AnalysisRequest:
    return request.model_copy(update={"analysis_type": analysis_type})


async def _sse_events(request: AnalysisRequest, open_stream: EventStreamOpener) -> AsyncIterator[str]:
    try:
        events = await open_stream()
    except Exception as e:
        logger.error(
            "Error setting up streaming analysis",
            session_id=request.session_id,
            error=str(e),
        )
        yield _failure_event(request, str(e)).to_sse()
        return

    try:
        async for event in events:
            yield event.to_sse()
    except Exception as e:
        logger.error("Error in streaming analysis", session_id=request.session_id, error=str(e))
        yield _failure_event(request, str(e)).to_sse()
    else:
        logger.debug("Streaming analysis completed", session_id=request.session_id)


def _event_stream(request: AnalysisRequest, open_stream: EventStreamOpener) -> StreamingResponse:
    return StreamingResponse(
        _sse_events(request, open_stream),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


async def _analyze(
    request: AnalysisRequest,
    service_name: str,
    code_analysis: CodeAnalysisService,
) -> JSONResponse:
    """Run an /analyze-family request, with memory only when a session is given."""
    bind_request_context(session_id=request.session_id, service=service_name)
    logger.info(
        "Received analysis request",
        analysis_type=request.analysis_type.value,
    )
    try:
        if request.session_id:
            response = await code_analysis.analyze_code(request, service_name)
        else:
            response = await code_analysis.analyze_stateless(request, service_name)
    except AIServiceError as e:
        logger.error("AI service error during analysis", error=e.message)
        return _analysis_error(request, f"Error: {e.message}", 503)
    except Exception as e:
        logger.exception("Unexpected error during analysis")
        return _analysis_error(request, f"Unexpected error: {e}", 500)
    return _json(response)


def _stream(
    request: AnalysisRequest,
    service_name: str,
    code_analysis: CodeAnalysisService,
) -> StreamingResponse:
    bind_request_context(session_id=request.session_id, service=service_name)
    logger.info(
        "Received streaming analysis request",
        analysis_type=request.analysis_type.value,
    )
    if request.session_id:
        return _event_stream(
            request, lambda: code_analysis.stream_analysis(request, service_name)
        )
    return _event_stream(request, lambda: code_analysis.stream_stateless(request, service_name))


# =============================================================================
# Health and Services
# =============================================================================


@router.get("/health", response_class=PlainTextResponse)
async def health(
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
    sessions: SessionManager = Depends(get_sessions),
) -> PlainTextResponse:
    if not code_analysis.has_available_service():
        return PlainTextResponse(MSG_NO_AI_SERVICES, status_code=503)
    return PlainTextResponse(
        f"Service is healthy with {code_analysis.get_available_service_count()} AI services "
        f"available and {sessions.get_active_session_count()} active sessions"
    )


@router.get("/services")
async def get_available_services(
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
) -> dict[str, str]:
    return {
        name: type(service).__name__
        for name, service in code_analysis.get_available_services().items()
    }


@router.get("/services/stats")
async def get_service_stats(
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
    sessions: SessionManager = Depends(get_sessions),
) -> dict[str, Any]:
    return {
        "availableServices": code_analysis.get_available_service_count(),
        "hasServices": code_analysis.has_available_service(),
        "services": sorted(code_analysis.get_available_services()),
        "activeSessionCount": sessions.get_active_session_count(),
    }


# =============================================================================
# Sessions
# =============================================================================


@router.post("/sessions", response_model=SessionResponse)
async def create_session(sessions: SessionManager = Depends(get_sessions)) -> JSONResponse:
    session_id = sessions.create_session()
    logger.info("Created new session", session_id=session_id)
    return _json(
        SessionResponse(
            session_id=session_id,
            message="Session created successfully",
            success=True,
            active_session_count=sessions.get_active_session_count(),
        )
    )


@router.delete("/sessions/{session_id}", response_model=SessionResponse)
async def clear_session(
    session_id: str,
    sessions: SessionManager = Depends(get_sessions),
) -> JSONResponse:
    if not sessions.clear_session(session_id):
        return _json(
            SessionResponse(
                session_id=session_id,
                message="Session not found",
                success=False,
                active_session_count=sessions.get_active_session_count(),
            ),
            404,
        )
    return _json(
        SessionResponse(
            session_id=session_id,
            message="Session cleared successfully",
            success=True,
            active_session_count=sessions.get_active_session_count(),
        )
    )


@router.delete("/sessions", response_model=SessionResponse)
async def clear_all_sessions(sessions: SessionManager = Depends(get_sessions)) -> JSONResponse:
    cleared = sessions.clear_all_sessions()
    return _json(
        SessionResponse(
            message=f"All sessions cleared successfully. Cleared {cleared} sessions",
            success=True,
            active_session_count=sessions.get_active_session_count(),
        )
    )


@router.get("/sessions/stats")
async def get_session_stats(
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
    sessions: SessionManager = Depends(get_sessions),
) -> dict[str, Any]:
    return {
        "activeSessionCount": sessions.get_active_session_count(),
        "activeSessionIds": sessions.get_active_session_ids(),
        "availableServices": code_analysis.get_available_service_count(),
        "hasServices": code_analysis.has_available_service(),
    }


# =============================================================================
# Session-bound Assist
# =============================================================================


@router.post("/assist/{service}", response_model=AnalysisResponse)
async def assist_with_service(
    service: str,
    request: AnalysisRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
    sessions: SessionManager = Depends(get_sessions),
) -> JSONResponse:
    bind_request_context(session_id=request.session_id, service=service)
    logger.info(
        "Assist request received",
        service=service,
        session_id=request.session_id,
        language=request.language,
        analysis_type=request.analysis_type.value,
        code_length=len(request.code),
        api_key_present=bool(request.api_key),
    )
    if not sessions.session_exists(request.session_id):
        return _analysis_error(request, f"Error: Session not found - {request.session_id}", 400)

    try:
        response = await code_analysis.analyze_code(request, service)
    except AIServiceError as e:
        logger.error("AI service error during assist", session_id=request.session_id, error=e.message)
        return _analysis_error(request, f"Error: {e.message}", 503)
    except Exception as e:
        logger.exception("Unexpected error during assist", session_id=request.session_id)
        return _analysis_error(request, f"Unexpected error: {e}", 500)
    return _json(response)


@router.post("/assist/{service}/stream")
async def stream_assist_with_service(
    service: str,
    request: AnalysisRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
    sessions: SessionManager = Depends(get_sessions),
) -> StreamingResponse:
    bind_request_context(session_id=request.session_id, service=service)
    logger.info(
        "Streaming assist request received",
        service=service,
        session_id=request.session_id,
        analysis_type=request.analysis_type.value,
    )
    if not sessions.session_exists(request.session_id):
        message = f"Session not found - {request.session_id}"

        async def session_missing() -> AsyncIterator[str]:
            yield _failure_event(request, message).to_sse()

        return StreamingResponse(
            session_missing(), media_type="text/event-stream", headers=SSE_HEADERS
        )

    return _event_stream(request, lambda: code_analysis.stream_analysis(request, service))


@router.post("/assist/{service}/followup", response_model=AnalysisResponse)
async def follow_up_with_service(
    service: str,
    request: AnalysisRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
    sessions: SessionManager = Depends(get_sessions),
) -> JSONResponse:
    bind_request_context(session_id=request.session_id, service=service)
    logger.info("Follow-up request received", service=service, session_id=request.session_id)
    if not sessions.session_exists(request.session_id):
        logger.warning("Follow-up request with invalid session ID", session_id=request.session_id)
        return _json(
            AnalysisResponse(
                success=False,
                analysis=MSG_INVALID_FOLLOWUP_SESSION,
                session_id=request.session_id,
            ),
            400,
        )

    try:
        response = await code_analysis.analyze_code(
            _with_type(request, AnalysisType.FOLLOWUP), service
        )
    except AIServiceError as e:
        logger.error("AI service error during follow-up", error=e.message)
        return _json(
            AnalysisResponse(success=False, analysis=f"Error: {e.message}", session_id=request.session_id),
            500,
        )
    except Exception:
        logger.exception("Unexpected error during follow-up")
        return _json(
            AnalysisResponse(
                success=False,
                analysis="Error: An unexpected error occurred",
                session_id=request.session_id,
            ),
            500,
        )
    logger.info("Follow-up response generated", session_id=request.session_id)
    return _json(response)


# =============================================================================
# Analyze
# =============================================================================


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze(
    request: AnalysisRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
) -> JSONResponse:
    return await _analyze(request, _default_service(), code_analysis)


@router.post("/analyze/stream")
async def analyze_stream(
    request: AnalysisRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
) -> StreamingResponse:
    return _stream(request, _default_service(), code_analysis)


@router.post("/analyze/{service}", response_model=AnalysisResponse)
async def analyze_with_service(
    service: str,
    request: AnalysisRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
) -> JSONResponse:
    return await _analyze(request, service, code_analysis)


@router.post("/analyze/{service}/stream")
async def analyze_stream_with_service(
    service: str,
    request: AnalysisRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
) -> StreamingResponse:
    return _stream(request, service, code_analysis)


# =============================================================================
# Fixed-type Shortcuts
# =============================================================================


@router.post("/explain", response_model=AnalysisResponse)
async def explain(
    request: AnalysisRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
) -> JSONResponse:
    return await _analyze(_with_type(request, AnalysisType.EXPLAIN), _default_service(), code_analysis)


@router.post("/explain/stream")
async def explain_stream(
    request: AnalysisRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
) -> StreamingResponse:
    return _stream(_with_type(request, AnalysisType.EXPLAIN), _default_service(), code_analysis)


@router.post("/refactor", response_model=AnalysisResponse)
async def refactor(
    request: AnalysisRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
) -> JSONResponse:
    return await _analyze(_with_type(request, AnalysisType.REFACTOR), _default_service(), code_analysis)


@router.post("/refactor/stream")
async def refactor_stream(
    request: AnalysisRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
) -> StreamingResponse:
    return _stream(_with_type(request, AnalysisType.REFACTOR), _default_service(), code_analysis)


@router.post("/debug", response_model=AnalysisResponse)
async def debug(
    request: AnalysisRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
) -> JSONResponse:
    return await _analyze(_with_type(request, AnalysisType.DEBUG), _default_service(), code_analysis)


@router.post("/debug/stream")
async def debug_stream(
    request: AnalysisRequest,
    code_analysis: CodeAnalysisService = Depends(get_code_analysis_service),
) -> StreamingResponse:
    return _stream(_with_type(request, AnalysisType.DEBUG), _default_service(), code_analysis)


__all__ = ["router"]
