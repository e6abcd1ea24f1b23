"""AI chat services.

A chat service picks the analysis strategy for a request, builds the prompt
and calls its provider through the ProviderManager, either for a full
answer or as a token stream of StreamingAnalysisResponse events.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from src.core.constants import GROQ_SERVICE, OPENAI_SERVICE
from src.core.exceptions import AIServiceError
from src.providers.manager import ProviderManager
from src.schemas.analysis import AnalysisRequest, AnalysisResponse, StreamingAnalysisResponse
from src.strategies import AnalysisStrategy, build_strategy_map


logger = logging.getLogger(__name__)


@runtime_checkable
class AIChatService(Protocol):
    """Interface shared by every AI chat service."""

    async def analyze_code(self, request: AnalysisRequest) -> AnalysisResponse:
        ...

    def stream_analysis(self, request: AnalysisRequest) -> AsyncIterator[StreamingAnalysisResponse]:
        ...

    def is_available(self) -> bool:
        ...


class ProviderChatService:
    """Chat service bound to one provider.

    Attributes:
        provider: Provider name passed to the ProviderManager
    """

    provider: str = ""

    def __init__(
        self,
        provider_manager: ProviderManager,
        strategies: list[AnalysisStrategy] | None = None,
    ) -> None:
        self.provider_manager = provider_manager
        self.analysis_strategies = build_strategy_map(strategies)
        logger.info(
            "%s initialized with %d analysis strategies",
            type(self).__name__,
            len(self.analysis_strategies),
        )

    def _strategy_for(self, request: AnalysisRequest) -> AnalysisStrategy:
        strategy = self.analysis_strategies.get(request.analysis_type)
        if strategy is None:
            raise AIServiceError(
                f"No analysis strategy found for type: {request.analysis_type.value}"
            )
        return strategy

    async def analyze_code(self, request: AnalysisRequest) -> AnalysisResponse:
        """Run a complete analysis.

        Raises:
            AIServiceError: Unknown analysis type or provider failure
        """
        strategy = self._strategy_for(request)
        try:
            model = self.provider_manager.get_model(self.provider, request.api_key)
            analysis = await model.complete(strategy.build_messages(request).to_chat_messages())
        except Exception as e:
            logger.error("Error analyzing code with %s: %s", self.provider, e)
            raise AIServiceError(f"Failed to analyze code: {e}", cause=e) from e

        return AnalysisResponse(
            analysis=analysis,
            analysis_type=request.analysis_type,
            language=request.language,
            success=True,
        )

    async def stream_analysis(
        self, request: AnalysisRequest
    ) -> AsyncIterator[StreamingAnalysisResponse]:
        """Stream an analysis as content events followed by complete or error.

        Setup failures (unknown type, missing key) produce a single error event
        instead of raising.
        """
        try:
            strategy = self._strategy_for(request)
            model = self.provider_manager.get_streaming_model(self.provider, request.api_key)
            messages = strategy.build_messages(request).to_chat_messages()
        except Exception as e:
            logger.error("Error setting up streaming analysis with %s: %s", self.provider, e)
            yield StreamingAnalysisResponse.failure(
                f"Failed to setup streaming analysis: {e}",
                request.analysis_type,
                request.language,
            )
            return

        try:
            async for token in model.stream(messages):
                yield StreamingAnalysisResponse.content_chunk(
                    token, request.analysis_type, request.language
                )
        except Exception as e:
            logger.error("Streaming error from %s: %s", self.provider, e)
            yield StreamingAnalysisResponse.failure(
                f"Streaming error: {e}", request.analysis_type, request.language
            )
            return

        yield StreamingAnalysisResponse.complete(request.analysis_type, request.language)

    def is_available(self) -> bool:
        # Callers may supply their own API key per request
        return True


class OpenAIChatService(ProviderChatService):
    provider = OPENAI_SERVICE


class GroqAIChatService(ProviderChatService):
    provider = GROQ_SERVICE
