"""Ingestion package interfaces."""

from .extractor import ExtractionError, extract_book, extract_file
from .models import UNKNOWN_AUTHOR, BookMetadata, ExtractedBook, Paragraph

__all__ = [
    "BookMetadata",
    "ExtractedBook",
    "ExtractionError",
    "Paragraph",
    "UNKNOWN_AUTHOR",
    "extract_book",
    "extract_file",
]
