"""Canonical data structures shared by extraction, loading and reporting."""

from __future__ import annotations

from dataclasses import dataclass, field


UNKNOWN_AUTHOR = "Unknown Author"


@dataclass(frozen=True, slots=True)
class BookMetadata:
    """Title and author located in a source file header."""

    title: str
    author: str = UNKNOWN_AUTHOR


@dataclass(frozen=True, slots=True)
class Paragraph:
    """One cleaned paragraph with its zero-based position in the book body."""

    book_title: str
    author: str
    ordinal: int
    text: str

    def to_document(self) -> dict[str, str | int]:
        """Persisted index form; ordinal is stored as ``location``."""

        return {
            "title": self.book_title,
            "author": self.author,
            "location": self.ordinal,
            "text": self.text,
        }


@dataclass(slots=True)
class ExtractedBook:
    """Extraction output consumed by the batch loader."""

    metadata: BookMetadata
    paragraphs: list[Paragraph] = field(default_factory=list)
