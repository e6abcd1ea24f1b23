"""Request, response and value schemas for the code assistant service."""

from src.schemas.analysis import (
    AnalysisRequest,
    AnalysisResponse,
    AnalysisType,
    SessionResponse,
    StreamingAnalysisResponse,
)
from src.schemas.documents import (
    ChatHistoryMessage,
    CodeElement,
    DocumentChatRequest,
    DocumentChatResponse,
    DocumentInfo,
    DocumentUploadResponse,
    EmbeddingMatch,
    TextSegment,
)


__all__ = [
    "AnalysisRequest",
    "AnalysisResponse",
    "AnalysisType",
    "ChatHistoryMessage",
    "CodeElement",
    "DocumentChatRequest",
    "DocumentChatResponse",
    "DocumentInfo",
    "DocumentUploadResponse",
    "EmbeddingMatch",
    "SessionResponse",
    "StreamingAnalysisResponse",
    "TextSegment",
]
