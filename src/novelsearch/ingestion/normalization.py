"""Text cleanup helpers used while splitting book bodies into paragraphs."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")
_LINE_BREAK_RE = re.compile(r"[^\S\n]*\n[^\S\n]*")
_PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n")
_ITALIC_MARK = "_"


def normalize_newlines(text: str) -> str:
    """Convert CRLF and bare CR line endings to LF."""

    return text.replace("\r\n", "\n").replace("\r", "\n")


def normalize_whitespace(text: str) -> str:
    """Collapse repeated whitespace and trim boundaries."""

    return _WHITESPACE_RE.sub(" ", text).strip()


def split_paragraphs(body: str) -> list[str]:
    """Split on one or more whitespace-only lines."""

    return _PARAGRAPH_BREAK_RE.split(body)


def clean_paragraph(candidate: str) -> str:
    """Join hard-wrapped lines, trim, and drop italic underscores."""

    joined = _LINE_BREAK_RE.sub(" ", candidate).strip()
    return joined.replace(_ITALIC_MARK, "").strip()
