"""Document parsers for Java source files and PDFs."""

from src.parsing.java_parser import JavaSourceParser, parse_java_source
from src.parsing.pdf_parser import chunk_pages, extract_pages, parse_pdf


__all__ = [
    "JavaSourceParser",
    "chunk_pages",
    "extract_pages",
    "parse_java_source",
    "parse_pdf",
]
