"""Plain-text novel extraction: header metadata, body markers, paragraphs."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import re
from typing import Literal

from charset_normalizer import from_bytes

from novelsearch.ingestion.models import UNKNOWN_AUTHOR, BookMetadata, ExtractedBook, Paragraph
from novelsearch.ingestion.normalization import (
    clean_paragraph,
    normalize_newlines,
    normalize_whitespace,
    split_paragraphs,
)

logger = logging.getLogger(__name__)

ExtractionErrorKind = Literal[
    "missing_title",
    "missing_start_marker",
    "missing_end_marker",
    "markers_out_of_order",
    "unreadable_source",
]

_TITLE_RE = re.compile(r"^Title:[^\S\n]*(.*)$", re.MULTILINE)
_AUTHOR_RE = re.compile(r"^Author:[^\S\n]*(.*)$", re.MULTILINE)
_START_MARKER_RE = re.compile(
    r"^\*{3}[^\S\n]*START OF (?:THIS|THE)(?: PROJECT GUTENBERG EBOOK)?\b[^\n]*\*{3}[^\S\n]*$",
    re.MULTILINE,
)
_END_MARKER_RE = re.compile(
    r"^\*{3}[^\S\n]*END OF (?:THIS|THE)(?: PROJECT GUTENBERG EBOOK)?\b[^\n]*\*{3}[^\S\n]*$",
    re.MULTILINE,
)


@dataclass(slots=True)
class ExtractionError(Exception):
    """Raised when a source file lacks the structure needed for extraction."""

    kind: ExtractionErrorKind
    message: str
    path: Path | None = None

    def __str__(self) -> str:
        if self.path is None:
            return f"{self.message} (kind={self.kind})"
        return f"{self.message} (kind={self.kind}, path={self.path})"


def _extract_metadata(text: str) -> BookMetadata:
    title_match = _TITLE_RE.search(text)
    title = normalize_whitespace(title_match.group(1)) if title_match else ""
    if not title:
        raise ExtractionError("missing_title", "No 'Title:' metadata line found")

    author_match = _AUTHOR_RE.search(text)
    author = normalize_whitespace(author_match.group(1)) if author_match else ""
    return BookMetadata(title=title, author=author or UNKNOWN_AUTHOR)


def _locate_body(text: str) -> tuple[int, int]:
    start_match = _START_MARKER_RE.search(text)
    if start_match is None:
        raise ExtractionError("missing_start_marker", "No '*** START OF ... ***' body marker found")

    body_start = start_match.end()
    end_match = _END_MARKER_RE.search(text, body_start)
    if end_match is None:
        if _END_MARKER_RE.search(text, 0, start_match.start()) is not None:
            raise ExtractionError("markers_out_of_order", "End marker precedes the start marker")
        raise ExtractionError("missing_end_marker", "No '*** END OF ... ***' body marker found")

    return body_start, end_match.start()


def extract_book(raw_text: str) -> ExtractedBook:
    """Parse a decoded source text into metadata and ordered paragraphs.

    Paragraph ordinals are assigned after empty candidates are dropped, so
    they run 0..N-1 over the surviving paragraphs only.
    """

    text = normalize_newlines(raw_text)
    metadata = _extract_metadata(text)
    body_start, body_end = _locate_body(text)

    cleaned = (clean_paragraph(candidate) for candidate in split_paragraphs(text[body_start:body_end]))
    paragraphs = [
        Paragraph(book_title=metadata.title, author=metadata.author, ordinal=ordinal, text=paragraph)
        for ordinal, paragraph in enumerate(item for item in cleaned if item)
    ]
    return ExtractedBook(metadata=metadata, paragraphs=paragraphs)


def decode_source(raw: bytes) -> str:
    """Decode source bytes, preferring UTF-8 and falling back to detection."""

    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass

    best = from_bytes(raw).best()
    if best is None or not best.encoding:
        raise ValueError("Could not detect text encoding")
    logger.info("Decoding non-UTF-8 source as %s", best.encoding)
    return raw.decode(best.encoding)


def extract_file(path: str | Path) -> ExtractedBook:
    """Read, decode and extract one source file."""

    source = Path(path)
    try:
        raw_text = decode_source(source.read_bytes())
    except (OSError, ValueError) as exc:
        raise ExtractionError("unreadable_source", f"Failed to read source file: {exc}", source) from exc

    try:
        book = extract_book(raw_text)
    except ExtractionError as exc:
        exc.path = source
        raise

    logger.info("Reading book - %s by %s", book.metadata.title, book.metadata.author)
    logger.info("Parsed %d paragraphs", len(book.paragraphs))
    return book
