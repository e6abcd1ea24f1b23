"""Code analysis service.

Runs code analysis requests through the AI chat service named by the
caller. Session-bound requests are enhanced with the session's rolling
memory, and each completed exchange is written back to that memory so
follow-up questions see the earlier conversation.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from src.core.exceptions import AIServiceError, SessionNotFoundError
from src.providers.chat_services import AIChatService
from src.providers.factory import AIServiceFactory
from src.schemas.analysis import AnalysisRequest, AnalysisResponse, StreamingAnalysisResponse
from src.sessions.manager import SessionManager
from src.sessions.memory import ChatMemory, MemoryMessage


logger = logging.getLogger(__name__)


class CodeAnalysisService:
    """Session-aware front end over the AI service factory.

    Attributes:
        service_factory: Resolves service names to chat services
        session_manager: Holds per-session chat memory
    """

    def __init__(
        self,
        service_factory: AIServiceFactory,
        session_manager: SessionManager,
    ) -> None:
        self.service_factory = service_factory
        self.session_manager = session_manager

    # =========================================================================
    # Session-bound analysis
    # =========================================================================

    async def analyze_code(self, request: AnalysisRequest, service_name: str) -> AnalysisResponse:
        """Analyze code within a session.

        Args:
            request: Analysis request carrying a session ID
            service_name: Chat service to use, e.g. "OpenAIChatService"

        Returns:
            Response annotated with the session ID and memory size

        Raises:
            SessionNotFoundError: If the session does not exist
            AIServiceError: If the service is unknown or the provider fails
        """
        session_id = request.session_id
        logger.debug(
            "Analyzing code: type=%s, service=%s, session=%s",
            request.analysis_type.value,
            service_name,
            session_id,
        )
        memory = self._require_session(session_id)

        try:
            service = self.service_factory.get_service(service_name)
            logger.info("Using AI service %s for session %s", type(service).__name__, session_id)

            response = await service.analyze_code(self._enhance_with_memory(request, memory))
            self._log_llm_response(session_id, response.analysis)
            self._remember(memory, request, response.analysis)

            response.session_id = session_id
            response.conversation_context = (
                f"Session: {session_id} | Messages in memory: {len(memory) + 1}"
            )
            return response
        except AIServiceError:
            logger.error("AI service failed to analyze code for session: %s", session_id)
            raise
        except Exception as e:
            logger.exception("Unexpected error during code analysis for session: %s", session_id)
            raise AIServiceError(f"Unexpected error during code analysis: {e}", cause=e) from e

    async def stream_analysis(
        self, request: AnalysisRequest, service_name: str
    ) -> AsyncIterator[StreamingAnalysisResponse]:
        """Stream an analysis within a session.

        Events carry the session ID. Once the stream completes normally with
        non-empty content, the exchange is stored in the session memory.

        Raises:
            SessionNotFoundError: If the session does not exist (before the
                first event is produced)
            AIServiceError: If the service is unknown
        """
        session_id = request.session_id
        memory = self._require_session(session_id)
        service = self._resolve_for_stream(service_name)
        logger.info("Streaming with AI service %s for session %s", type(service).__name__, session_id)

        return self._stream_with_memory(
            service, request, self._enhance_with_memory(request, memory), memory
        )

    async def _stream_with_memory(
        self,
        service: AIChatService,
        request: AnalysisRequest,
        enhanced: AnalysisRequest,
        memory: ChatMemory,
    ) -> AsyncIterator[StreamingAnalysisResponse]:
        chunks: list[str] = []
        completed = False

        async for event in service.stream_analysis(enhanced):
            event.session_id = request.session_id
            if event.event_type == "content" and event.content:
                chunks.append(event.content)
            elif event.event_type == "complete":
                completed = True
            yield event

        full_response = "".join(chunks)
        if completed and full_response:
            self._log_llm_response(request.session_id, full_response)
            self._remember(memory, request, full_response)

    # =========================================================================
    # Stateless analysis
    # =========================================================================

    async def analyze_stateless(
        self, request: AnalysisRequest, service_name: str
    ) -> AnalysisResponse:
        """Analyze code without session memory.

        Raises:
            AIServiceError: If the service is unknown or the provider fails
        """
        try:
            service = self.service_factory.get_service(service_name)
            return await service.analyze_code(request)
        except AIServiceError:
            raise
        except Exception as e:
            logger.exception("Unexpected error during code analysis")
            raise AIServiceError(f"Unexpected error during code analysis: {e}", cause=e) from e

    async def stream_stateless(
        self, request: AnalysisRequest, service_name: str
    ) -> AsyncIterator[StreamingAnalysisResponse]:
        """Stream an analysis without session memory.

        Raises:
            AIServiceError: If the service is unknown
        """
        service = self._resolve_for_stream(service_name)
        return service.stream_analysis(request)

    # =========================================================================
    # Service discovery
    # =========================================================================

    def get_available_services(self) -> dict[str, AIChatService]:
        return self.service_factory.get_all_available_services()

    def has_available_service(self) -> bool:
        return self.service_factory.has_available_services()

    def get_available_service_count(self) -> int:
        return self.service_factory.get_available_service_count()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_session(self, session_id: str | None) -> ChatMemory:
        memory = self.session_manager.get_session_memory(session_id)
        if memory is None:
            raise SessionNotFoundError(session_id)
        return memory

    def _resolve_for_stream(self, service_name: str) -> AIChatService:
        try:
            return self.service_factory.get_service(service_name)
        except AIServiceError:
            raise
        except Exception as e:
            logger.exception("Unexpected error during streaming analysis")
            raise AIServiceError(
                f"Unexpected error during streaming analysis: {e}", cause=e
            ) from e

    @staticmethod
    def _enhance_with_memory(request: AnalysisRequest, memory: ChatMemory) -> AnalysisRequest:
        """Prefix the request code with the remembered conversation."""
        messages = memory.messages()
        if not messages:
            logger.info(
                "No memory context available - Type: %s, Language: %s, Session: %s",
                request.analysis_type.value,
                request.language,
                request.session_id,
            )
            return request

        lines = ["// Previous conversation context:\n"]
        lines.extend(f"// {message.type.value}: {message.text}\n" for message in messages)
        lines.append("\n// Current request:\n")
        lines.append(request.code or "")

        logger.info(
            "Request enhanced with memory - Type: %s, Session: %s, Memory: %d messages",
            request.analysis_type.value,
            request.session_id,
            len(messages),
        )
        return request.model_copy(update={"code": "".join(lines)})

    @staticmethod
    def _remember(memory: ChatMemory, request: AnalysisRequest, answer: str) -> None:
        before = len(memory)
        memory.add(MemoryMessage.user(request.code))
        memory.add(MemoryMessage.ai(answer))
        logger.info(
            "Memory updated - Session: %s, Before: %d messages, After: %d messages",
            request.session_id,
            before,
            len(memory),
        )

    @staticmethod
    def _log_llm_response(session_id: str | None, text: str) -> None:
        logger.info(
            "LLM response received - Session: %s, Response length: %d", session_id, len(text)
        )
        logger.debug("=== LLM RESPONSE ===\n%s\n=== END OF RESPONSE ===", text)
