"""Document processing service.

Turns an uploaded file into embedded, searchable segments:
1. Classify the upload (Java source or PDF) and enforce size limits
2. Parse it into CodeElements (javalang / pypdf) on an executor thread
3. Wrap each element in a TextSegment with provenance metadata
4. Embed and store the segments through the document chat service
5. Record a DocumentInfo for listing
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
import uuid
from typing import Any

from src.core.constants import (
    MSG_INDEXING_FAILED,
    MSG_JAVA_UNPARSEABLE,
    MSG_JAVA_UPLOADED,
    MSG_PDF_UNPARSEABLE,
    MSG_PDF_UPLOADED,
    VECTOR_STORE_NAME,
)
from src.parsing.java_parser import parse_java_source
from src.parsing.pdf_parser import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE, parse_pdf
from src.schemas.documents import CodeElement, DocumentInfo, DocumentUploadResponse, TextSegment
from src.services.document_chat import DocumentChatService


logger = logging.getLogger(__name__)

JAVA_DOCUMENT = "java"
PDF_DOCUMENT = "pdf"

JAVA_EXTENSION = ".java"
PDF_EXTENSION = ".pdf"
PDF_CONTENT_TYPE = "application/pdf"

JAVA_CONTENT_TYPE = "java_code"
PDF_TEXT_CONTENT_TYPE = "pdf_text"

JAVA_DESCRIPTION = "Java source code file"
PDF_DESCRIPTION = "PDF document"

DEFAULT_MAX_JAVA_BYTES = 100 * 1024
DEFAULT_MAX_PDF_BYTES = 10 * 1024 * 1024


def segment_text(element: CodeElement) -> str:
    """Embedded text of an element: a provenance header followed by its source."""
    return (
        f"[{element.type.upper()}] {element.class_name}.{element.name} "
        f"(Lines {element.start_line}-{element.end_line})\n{element.source}"
    )


def create_segment(
    element: CodeElement,
    document_id: str,
    session_id: str,
    chunk_index: int,
    content_type: str = JAVA_CONTENT_TYPE,
) -> TextSegment:
    """Wrap a CodeElement in a TextSegment carrying string metadata."""
    metadata = {
        "documentId": document_id,
        "sessionId": session_id,
        "chunkIndex": str(chunk_index),
        "type": element.type,
        "name": element.name,
        "class": element.class_name,
        "package": element.package_name,
        "modifiers": element.modifiers,
        "source": element.source,
        "startLine": str(element.start_line),
        "endLine": str(element.end_line),
        "javadoc": element.javadoc,
        "contentType": content_type,
        "processingTimestamp": str(int(time.time() * 1000)),
    }
    return TextSegment(text=segment_text(element), metadata=metadata)


def count_code_lines(segments: list[TextSegment]) -> int:
    total = 0
    for segment in segments:
        try:
            total += int(segment.get("endLine") or "") - int(segment.get("startLine") or "") + 1
        except ValueError:
            continue
    return total


def count_type(segments: list[TextSegment], element_type: str) -> int:
    return sum(1 for segment in segments if segment.get("type") == element_type)


class DocumentProcessingService:
    """Parses, embeds and records uploaded documents.

    Attributes:
        max_java_bytes: Largest accepted Java upload
        max_pdf_bytes: Largest accepted PDF upload
    """

    def __init__(
        self,
        document_chat_service: DocumentChatService,
        max_java_bytes: int = DEFAULT_MAX_JAVA_BYTES,
        max_pdf_bytes: int = DEFAULT_MAX_PDF_BYTES,
        pdf_chunk_size: int = DEFAULT_CHUNK_SIZE,
        pdf_chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> None:
        self.document_chat_service = document_chat_service
        self.max_java_bytes = max_java_bytes
        self.max_pdf_bytes = max_pdf_bytes
        self.pdf_chunk_size = pdf_chunk_size
        self.pdf_chunk_overlap = pdf_chunk_overlap
        self._documents: dict[str, DocumentInfo] = {}
        self._lock = threading.Lock()

    # =========================================================================
    # Upload Routing
    # =========================================================================

    def classify_upload(
        self,
        file_name: str | None,
        content_type: str | None,
        file_size: int,
    ) -> str | None:
        """Document type an upload is accepted as, or None when rejected."""
        name = (file_name or "").lower()
        if name.endswith(JAVA_EXTENSION) and 0 < file_size <= self.max_java_bytes:
            return JAVA_DOCUMENT
        is_pdf = name.endswith(PDF_EXTENSION) or (content_type or "").lower() == PDF_CONTENT_TYPE
        if is_pdf and 0 < file_size <= self.max_pdf_bytes:
            return PDF_DOCUMENT
        return None

    async def process_document(
        self,
        document_type: str,
        file_name: str,
        content: bytes,
        session_id: str,
    ) -> DocumentUploadResponse:
        """Process an upload already accepted by classify_upload."""
        if document_type == PDF_DOCUMENT:
            return await self.process_pdf_document(file_name, content, session_id)
        return await self.process_java_document(file_name, content, session_id)

    # =========================================================================
    # Java
    # =========================================================================

    async def process_java_document(
        self,
        file_name: str,
        content: bytes,
        session_id: str,
    ) -> DocumentUploadResponse:
        document_id = str(uuid.uuid4())
        try:
            source = content.decode("utf-8", errors="replace")
            elements = await asyncio.get_event_loop().run_in_executor(
                None, parse_java_source, source, file_name
            )
            segments = [
                create_segment(element, document_id, session_id, index)
                for index, element in enumerate(elements, start=1)
            ]
            logger.info(
                "Java file parsing completed - File: %s, Elements: %d, Segments: %d",
                file_name,
                len(elements),
                len(segments),
            )
            if not segments:
                return DocumentUploadResponse(success=False, message=MSG_JAVA_UNPARSEABLE)

            stored = await self.document_chat_service.add_document_to_vector_store(
                document_id, segments, JAVA_DOCUMENT
            )
        except Exception as e:
            logger.exception("Error processing Java file: %s", e)
            return DocumentUploadResponse(
                success=False, message=f"Error processing Java file: {e}"
            )

        if not stored:
            logger.error("Java file %s parsed but none of its segments were indexed", file_name)
            return DocumentUploadResponse(success=False, message=MSG_INDEXING_FAILED)

        self._record(
            DocumentInfo(
                document_id=document_id,
                file_name=file_name,
                document_type=JAVA_DOCUMENT,
                description=JAVA_DESCRIPTION,
                file_size=len(content),
                total_segments=len(segments),
                processed_segments=stored,
                content=f"Java code with {len(segments)} semantic segments",
                session_id=session_id,
            )
        )
        logger.info(
            "Java file processed successfully - ID: %s, Session: %s, Name: %s, Segments: %d/%d",
            document_id,
            session_id,
            file_name,
            stored,
            len(segments),
        )
        return DocumentUploadResponse(
            success=True,
            message=MSG_JAVA_UPLOADED,
            document_id=document_id,
            file_name=file_name,
            document_type=JAVA_DOCUMENT,
            file_size=len(content),
            segments_processed=stored,
            metadata=self._upload_metadata(
                segments, stored, JAVA_DOCUMENT, JAVA_DESCRIPTION, session_id
            )
            | {
                "codeLines": count_code_lines(segments),
                "classes": count_type(segments, "class"),
                "methods": count_type(segments, "method"),
            },
        )

    # =========================================================================
    # PDF
    # =========================================================================

    async def process_pdf_document(
        self,
        file_name: str,
        content: bytes,
        session_id: str,
    ) -> DocumentUploadResponse:
        document_id = str(uuid.uuid4())
        try:
            chunks = await asyncio.get_event_loop().run_in_executor(
                None, parse_pdf, content, file_name, self.pdf_chunk_size, self.pdf_chunk_overlap
            )
            segments = [
                create_segment(chunk, document_id, session_id, index, PDF_TEXT_CONTENT_TYPE)
                for index, chunk in enumerate(chunks, start=1)
            ]
            logger.info("PDF chunking completed - File: %s, Chunks: %d", file_name, len(chunks))
            if not segments:
                return DocumentUploadResponse(success=False, message=MSG_PDF_UNPARSEABLE)

            stored = await self.document_chat_service.add_document_to_vector_store(
                document_id, segments, PDF_DOCUMENT
            )
        except Exception as e:
            logger.exception("Error processing PDF file: %s", e)
            return DocumentUploadResponse(
                success=False, message=f"Error processing PDF file: {e}"
            )

        if not stored:
            logger.error("PDF file %s parsed but none of its chunks were indexed", file_name)
            return DocumentUploadResponse(success=False, message=MSG_INDEXING_FAILED)

        pages = {segment.get("startLine") for segment in segments} | {
            segment.get("endLine") for segment in segments
        }
        self._record(
            DocumentInfo(
                document_id=document_id,
                file_name=file_name,
                document_type=PDF_DOCUMENT,
                description=PDF_DESCRIPTION,
                file_size=len(content),
                total_segments=len(segments),
                processed_segments=stored,
                content=f"PDF text with {len(segments)} chunks",
                session_id=session_id,
            )
        )
        logger.info(
            "PDF file processed successfully - ID: %s, Session: %s, Name: %s, Chunks: %d/%d",
            document_id,
            session_id,
            file_name,
            stored,
            len(segments),
        )
        return DocumentUploadResponse(
            success=True,
            message=MSG_PDF_UPLOADED,
            document_id=document_id,
            file_name=file_name,
            document_type=PDF_DOCUMENT,
            file_size=len(content),
            segments_processed=stored,
            metadata=self._upload_metadata(
                segments, stored, PDF_DOCUMENT, PDF_DESCRIPTION, session_id
            )
            | {"pages": len(pages)},
        )

    # =========================================================================
    # Document Registry
    # =========================================================================

    @staticmethod
    def _upload_metadata(
        segments: list[TextSegment],
        stored: int,
        document_type: str,
        description: str,
        session_id: str,
    ) -> dict[str, Any]:
        return {
            "totalSegments": len(segments),
            "processedSegments": stored,
            "documentType": document_type,
            "description": description,
            "vectorStore": VECTOR_STORE_NAME,
            "sessionId": session_id,
        }

    def _record(self, info: DocumentInfo) -> None:
        with self._lock:
            self._documents[info.document_id] = info

    def get_document(self, document_id: str) -> DocumentInfo | None:
        with self._lock:
            return self._documents.get(document_id)

    def list_documents(self, session_id: str | None = None) -> list[DocumentInfo]:
        """All recorded documents, oldest first, optionally for one session."""
        with self._lock:
            documents = list(self._documents.values())
        if session_id is not None:
            documents = [doc for doc in documents if doc.session_id == session_id]
        return sorted(documents, key=lambda doc: doc.uploaded_at)

    def forget_session_documents(self, session_id: str) -> int:
        """Drop the records of a session's documents; returns how many were dropped."""
        with self._lock:
            doomed = [doc_id for doc_id, doc in self._documents.items() if doc.session_id == session_id]
            for doc_id in doomed:
                del self._documents[doc_id]
        return len(doomed)
