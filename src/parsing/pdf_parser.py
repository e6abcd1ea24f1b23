"""PDF text extraction and chunking.

Extracts text per page with pypdf and splits the concatenated text into
fixed-size character chunks with overlap. Each chunk records the first and
last page it covers.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from io import BytesIO

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from src.core.exceptions import DocumentProcessingError
from src.schemas.documents import CodeElement


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200
PAGE_SEPARATOR = "\n\n"
PDF_CHUNK_TYPE = "pdf_chunk"


@dataclass(frozen=True)
class PdfPage:
    number: int
    text: str


def extract_pages(content: bytes, file_name: str = "") -> list[PdfPage]:
    """Extract the text of every page that has any.

    Raises:
        DocumentProcessingError: If the bytes are not a readable PDF
    """
    try:
        reader = PdfReader(BytesIO(content))
        pages = [
            PdfPage(number=index, text=(page.extract_text() or "").strip())
            for index, page in enumerate(reader.pages, start=1)
        ]
    except PdfReadError as e:
        raise DocumentProcessingError(f"Invalid PDF: {e}", file_name) from e

    logger.info("Extracted text from %d pages of %s", len(pages), file_name)
    return [page for page in pages if page.text]


def chunk_pages(
    pages: list[PdfPage],
    file_name: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[CodeElement]:
    """Split page text into overlapping fixed-size chunks.

    Args:
        pages: Pages with non-empty text
        file_name: Stored as the chunk's class name
        chunk_size: Characters per chunk
        chunk_overlap: Characters shared by consecutive chunks

    Returns:
        One ``pdf_chunk`` element per chunk, named ``chunk-1``, ``chunk-2``...
        with the covered page numbers as its line range
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if not 0 <= chunk_overlap < chunk_size:
        raise ValueError("chunk_overlap must be between 0 and chunk_size")
    if not pages:
        return []

    offsets: list[int] = []
    parts: list[str] = []
    position = 0
    for page in pages:
        offsets.append(position)
        parts.append(page.text)
        position += len(page.text) + len(PAGE_SEPARATOR)
    text = PAGE_SEPARATOR.join(parts)

    def page_at(offset: int) -> int:
        return pages[bisect.bisect_right(offsets, offset) - 1].number

    chunks: list[CodeElement] = []
    step = chunk_size - chunk_overlap
    start = 0
    while start < len(text):
        end = min(start + chunk_size, len(text))
        chunk_text = text[start:end].strip()
        if chunk_text:
            chunks.append(
                CodeElement(
                    type=PDF_CHUNK_TYPE,
                    name=f"chunk-{len(chunks) + 1}",
                    class_name=file_name,
                    source=chunk_text,
                    start_line=page_at(start),
                    end_line=page_at(end - 1),
                    package_name="N/A",
                )
            )
        if end == len(text):
            break
        start += step

    return chunks


def parse_pdf(
    content: bytes,
    file_name: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[CodeElement]:
    """Extract and chunk the text of a PDF document."""
    return chunk_pages(extract_pages(content, file_name), file_name, chunk_size, chunk_overlap)
