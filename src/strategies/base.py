"""Analysis Strategy Base Class.

A strategy turns an AnalysisRequest into the system/user message pair sent
to a chat provider. Strategies are stateless; chat services hold one
instance per AnalysisType.
"""

from typing import Protocol, runtime_checkable

from src.schemas.analysis import AnalysisRequest, AnalysisType
from src.strategies.messages import MessagePair, SystemMessage, UserMessage


# ============================================================================
# Protocol for Type Checking
# ============================================================================

@runtime_checkable
class AnalysisStrategyProtocol(Protocol):
    """Protocol for analysis strategy type hints."""

    @property
    def analysis_type(self) -> AnalysisType:
        ...

    @property
    def description(self) -> str:
        ...

    def build_messages(self, request: AnalysisRequest) -> MessagePair:
        ...


# ============================================================================
# Base Class
# ============================================================================

class AnalysisStrategy:
    """Base class for analysis strategies.

    Subclasses set ``analysis_type`` and ``description``. The prompt text
    for each type lives in ``src.strategies.messages``; the request's own
    analysis type selects the role content, language context and response
    structure.

    Example:
        ```python
        class ExplainAnalysisStrategy(AnalysisStrategy):
            analysis_type = AnalysisType.EXPLAIN
            description = "Explains what the code does"
        ```
    """

    # Class attributes to be overridden by subclasses
    analysis_type: AnalysisType
    description: str = ""

    def build_messages(self, request: AnalysisRequest) -> MessagePair:
        """Build the system and user messages for a request."""
        system = SystemMessage.for_analysis(request.analysis_type, request.language)
        user = UserMessage.for_analysis(request.code, request.analysis_type, request.language)
        return MessagePair(system=system, user=user)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(analysis_type={self.analysis_type.value!r})"
