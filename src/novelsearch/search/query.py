"""Read-side queries: term search with highlights and paragraph ranges."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from novelsearch.search.client import SearchEngineClient


DEFAULT_PAGE_SIZE = 10
# Largest page the engine serves without scrolling (index.max_result_window).
MAX_RANGE_SIZE = 10_000


@dataclass(slots=True)
class SearchHit:
    title: str
    author: str
    location: int
    text: str
    score: float | None = None
    highlights: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "author": self.author,
            "location": self.location,
            "text": self.text,
            "score": self.score,
            "highlights": self.highlights,
        }


@dataclass(slots=True)
class SearchPage:
    total: int
    hits: list[SearchHit] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"total": self.total, "hits": [hit.to_dict() for hit in self.hits]}


def build_term_query(term: str, *, offset: int = 0, size: int = DEFAULT_PAGE_SIZE) -> dict[str, Any]:
    return {
        "from": offset,
        "size": size,
        "query": {"match": {"text": term}},
        "highlight": {"fields": {"text": {}}},
    }


def build_range_query(book_title: str, start: int, end: int) -> dict[str, Any]:
    """Inclusive location range for one book, sorted by location."""

    return {
        "size": end - start + 1,
        "sort": [{"location": "asc"}],
        "query": {
            "bool": {
                "filter": [
                    {"term": {"title": book_title}},
                    {"range": {"location": {"gte": start, "lte": end}}},
                ]
            }
        },
    }


def _total(payload: dict[str, Any]) -> int:
    total = payload.get("hits", {}).get("total", 0)
    if isinstance(total, dict):
        return int(total.get("value", 0))
    return int(total or 0)


def _map_hits(payload: dict[str, Any]) -> list[SearchHit]:
    hits: list[SearchHit] = []
    for row in payload.get("hits", {}).get("hits", []):
        source = row.get("_source", {})
        score = row.get("_score")
        hits.append(
            SearchHit(
                title=str(source.get("title", "")),
                author=str(source.get("author", "")),
                location=int(source.get("location", 0)),
                text=str(source.get("text", "")),
                score=float(score) if score is not None else None,
                highlights=list(row.get("highlight", {}).get("text", [])),
            )
        )
    return hits


class ParagraphQueries:
    """Query interface consumed by the HTTP layer and the CLIs."""

    def __init__(self, client: SearchEngineClient, *, index_name: str, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._client = client
        self._index_name = index_name
        self._page_size = page_size

    def query_term(self, term: str, offset: int = 0) -> SearchPage:
        term_text = term.strip()
        if not term_text:
            raise ValueError("term cannot be empty")
        if offset < 0:
            raise ValueError("offset cannot be negative")

        payload = self._client.search(
            self._index_name,
            build_term_query(term_text, offset=offset, size=self._page_size),
        )
        return SearchPage(total=_total(payload), hits=_map_hits(payload))

    def get_paragraphs(self, book_title: str, start: int, end: int) -> SearchPage:
        if not book_title.strip():
            raise ValueError("book_title cannot be empty")
        if start < 0:
            raise ValueError("start cannot be negative")
        if end <= start:
            raise ValueError("end must be greater than start")
        if end - start + 1 > MAX_RANGE_SIZE:
            raise ValueError(f"range cannot span more than {MAX_RANGE_SIZE} paragraphs")

        payload = self._client.search(self._index_name, build_range_query(book_title, start, end))
        return SearchPage(total=_total(payload), hits=_map_hits(payload))
