"""Code analysis request/response schemas.

JSON field names are camelCase (``analysisType``, ``sessionId``) so that
browser clients of the code-assistant endpoints can post payloads as-is;
Python code uses the snake_case attribute names.
"""

from __future__ import annotations

import json
import time
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class AnalysisType(str, Enum):
    """Kinds of code analysis, each served by one strategy."""

    WRITE_CODE = "WRITE_CODE"
    EXPLAIN = "EXPLAIN"
    REFACTOR = "REFACTOR"
    DEBUG = "DEBUG"
    ANALYZE = "ANALYZE"
    FOLLOWUP = "FOLLOWUP"

    @property
    def description(self) -> str:
        return _ANALYSIS_TYPE_DESCRIPTIONS[self]


_ANALYSIS_TYPE_DESCRIPTIONS: dict[AnalysisType, str] = {
    AnalysisType.WRITE_CODE: "Generate code based on user requirements and specifications",
    AnalysisType.EXPLAIN: "Explain the code functionality and logic",
    AnalysisType.REFACTOR: "Provide refactoring suggestions and improvements",
    AnalysisType.DEBUG: "Analyze potential bugs and debugging tips",
    AnalysisType.ANALYZE: (
        "Comprehensive analysis including explanation, refactoring, and debugging"
    ),
    AnalysisType.FOLLOWUP: "Handle follow-up questions in an ongoing conversation",
}


class CamelModel(BaseModel):
    """Base model serializing with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Requests
# =============================================================================


class AnalysisRequest(CamelModel):
    """Request to analyze, explain, refactor, debug or generate code.

    Attributes:
        code: Source code, or the requirements / question for WRITE_CODE and FOLLOWUP
        analysis_type: Requested analysis
        language: Programming language of the code
        session_id: Session whose memory provides conversation context
        api_key: Optional provider key overriding the configured one
    """

    code: str = Field(..., description="Code or question to analyze")
    analysis_type: AnalysisType = Field(..., description="Requested analysis type")
    language: str = Field(..., description="Programming language")
    session_id: str | None = Field(default=None, description="Conversation session ID")
    api_key: str | None = Field(default=None, description="Per-request provider API key")

    @field_validator("code")
    @classmethod
    def code_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Code cannot be blank")
        return value

    @field_validator("language")
    @classmethod
    def language_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Language cannot be blank")
        return value


# =============================================================================
# Responses
# =============================================================================


class AnalysisResponse(CamelModel):
    """Result of a non-streaming analysis."""

    analysis: str = ""
    analysis_type: AnalysisType | None = None
    language: str | None = None
    success: bool = False
    session_id: str | None = None
    conversation_context: str | None = None


class StreamingAnalysisResponse(CamelModel):
    """One Server-Sent Event of a streaming analysis.

    A stream is zero or more ``content`` events followed by exactly one
    ``complete`` or ``error`` event.
    """

    event_type: Literal["content", "complete", "error"]
    content: str | None = None
    analysis_type: AnalysisType | None = None
    language: str | None = None
    is_complete: bool = False
    error: str | None = None
    success: bool = True
    session_id: str | None = None

    @classmethod
    def content_chunk(
        cls,
        content: str,
        analysis_type: AnalysisType | None,
        language: str | None,
    ) -> StreamingAnalysisResponse:
        return cls(
            event_type="content",
            content=content,
            analysis_type=analysis_type,
            language=language,
            is_complete=False,
            success=True,
        )

    @classmethod
    def complete(
        cls,
        analysis_type: AnalysisType | None,
        language: str | None,
    ) -> StreamingAnalysisResponse:
        return cls(
            event_type="complete",
            analysis_type=analysis_type,
            language=language,
            is_complete=True,
            success=True,
        )

    @classmethod
    def failure(
        cls,
        error_message: str,
        analysis_type: AnalysisType | None,
        language: str | None,
    ) -> StreamingAnalysisResponse:
        return cls(
            event_type="error",
            error=error_message,
            analysis_type=analysis_type,
            language=language,
            is_complete=True,
            success=False,
        )

    def to_sse(self) -> str:
        """Serialize event to SSE format.

        Returns:
            SSE-formatted string with event type and camelCase JSON data
        """
        data = self.model_dump(mode="json", by_alias=True)
        return f"event: {self.event_type}\ndata: {json.dumps(data)}\n\n"


class SessionResponse(CamelModel):
    """Result of a session management operation."""

    session_id: str | None = None
    message: str
    success: bool
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))
    active_session_count: int = 0


__all__ = [
    "AnalysisRequest",
    "AnalysisResponse",
    "AnalysisType",
    "CamelModel",
    "SessionResponse",
    "StreamingAnalysisResponse",
]
