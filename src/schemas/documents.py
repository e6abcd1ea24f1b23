"""Document RAG schemas.

Internal value types (CodeElement, TextSegment, EmbeddingMatch, DocumentInfo)
are dataclasses; request/response payloads of the document-rag endpoints are
camelCase Pydantic models.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from pydantic import Field

from src.schemas.analysis import CamelModel


def _now_ms() -> int:
    return int(time.time() * 1000)


# =============================================================================
# Parsing / Vector Store Value Types
# =============================================================================


@dataclass(frozen=True)
class CodeElement:
    """A structural element extracted from a source file.

    Attributes:
        type: class, interface, method, constructor, field, enum, annotation,
            package, imports or pdf_chunk
        name: Element name (comma-separated list for multi-variable fields)
        class_name: Enclosing type, or "N/A" for package/imports
        source: Exact source text of the element
        start_line: First line (1-based); first page for PDF chunks
        end_line: Last line (inclusive); last page for PDF chunks
        javadoc: Javadoc body without comment delimiters
        package_name: Declared package, "default" or "N/A"
        modifiers: Bracketed modifier list, e.g. "[public, static]"
    """

    type: str
    name: str
    class_name: str
    source: str
    start_line: int
    end_line: int
    javadoc: str = ""
    package_name: str = "default"
    modifiers: str = ""


@dataclass
class TextSegment:
    """Text plus string metadata, the unit stored in the vector index."""

    text: str
    metadata: dict[str, str] = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.metadata.get(key, default)


@dataclass(frozen=True)
class EmbeddingMatch:
    """A vector search hit."""

    score: float
    embedding_id: str
    embedded: TextSegment | None


@dataclass(frozen=True)
class DocumentInfo:
    """Record of an uploaded document."""

    document_id: str
    file_name: str
    document_type: str
    description: str
    file_size: int
    total_segments: int
    processed_segments: int
    content: str
    session_id: str
    uploaded_at: int = field(default_factory=_now_ms)

    def to_dict(self) -> dict[str, Any]:
        return {
            "documentId": self.document_id,
            "fileName": self.file_name,
            "documentType": self.document_type,
            "description": self.description,
            "fileSize": self.file_size,
            "totalSegments": self.total_segments,
            "processedSegments": self.processed_segments,
            "content": self.content,
            "sessionId": self.session_id,
            "uploadedAt": self.uploaded_at,
        }


# =============================================================================
# API Payloads
# =============================================================================


class DocumentUploadResponse(CamelModel):
    """Result of POST /upload."""

    success: bool = False
    message: str = ""
    document_id: str | None = None
    file_name: str | None = None
    document_type: str | None = None
    file_size: int | None = None
    segments_processed: int | None = None
    metadata: dict[str, Any] | None = None


class ChatHistoryMessage(CamelModel):
    """One turn in a document chat transcript."""

    role: str
    content: str
    timestamp: str = Field(default_factory=lambda: str(_now_ms()))


class DocumentChatRequest(CamelModel):
    """Question about the documents uploaded in a session."""

    message: str = ""
    session_id: str = Field(..., description="Session owning the uploaded documents")
    service: str | None = Field(default=None, description="Requested AI service")


class DocumentChatResponse(CamelModel):
    """Answer to a document question."""

    success: bool = False
    message: str = ""
    answer: str | None = None
    response: str | None = None
    session_id: str | None = None
    relevant_documents: list[str] = Field(default_factory=list)
    conversation_history: list[ChatHistoryMessage] = Field(default_factory=list)
    timestamp: int = Field(default_factory=_now_ms)


__all__ = [
    "ChatHistoryMessage",
    "CodeElement",
    "DocumentChatRequest",
    "DocumentChatResponse",
    "DocumentInfo",
    "DocumentUploadResponse",
    "EmbeddingMatch",
    "TextSegment",
]
