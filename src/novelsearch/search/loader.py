"""Ordered, fixed-size bulk loading of one book's paragraphs."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Iterator, Literal, Sequence, TypeVar

from novelsearch.config import DEFAULT_BATCH_SIZE, Settings
from novelsearch.ingestion.models import BookMetadata, Paragraph
from novelsearch.search.client import BulkOperation, EngineRequestError, EngineUnavailableError, SearchEngineClient

logger = logging.getLogger(__name__)

LoadErrorKind = Literal["batch_mismatch", "engine_unreachable", "request_failed"]

_T = TypeVar("_T")
_MAX_REPORTED_ITEM_ERRORS = 3


@dataclass(slots=True)
class LoadError(Exception):
    """Raised when a batch of one book could not be written in full."""

    kind: LoadErrorKind
    title: str
    message: str
    batch_no: int | None = None
    paragraphs_written: int = 0
    item_errors: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.message} (kind={self.kind}, title={self.title}, batch={self.batch_no})"


@dataclass(frozen=True, slots=True)
class LoadResult:
    title: str
    paragraphs_written: int
    batches_submitted: int


def iter_batches(items: Sequence[_T], size: int) -> Iterator[Sequence[_T]]:
    """Yield consecutive slices of at most ``size`` items, preserving order."""

    if size < 1:
        raise ValueError("size must be >= 1")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def _item_result(item: dict[str, Any]) -> dict[str, Any]:
    for action in ("index", "create", "update"):
        result = item.get(action)
        if isinstance(result, dict):
            return result
    return {}


def _verify_bulk_response(response: Any) -> tuple[int, list[str]]:
    """Count accepted items and collect per-item error descriptions."""

    items = response.get("items") if isinstance(response, dict) else None
    if not isinstance(items, list):
        return 0, ["Bulk response missing 'items'"]

    accepted = 0
    errors: list[str] = []
    for item in items:
        result = _item_result(item) if isinstance(item, dict) else {}
        status = int(result.get("status", 0))
        error = result.get("error")
        if error is None and 200 <= status < 300:
            accepted += 1
            continue
        if isinstance(error, dict):
            errors.append(f"{error.get('type', 'error')}: {error.get('reason', '')}".strip())
        else:
            errors.append(str(error or f"status {status}"))
    return accepted, errors


def _validate_paragraphs(metadata: BookMetadata, paragraphs: Sequence[Paragraph]) -> None:
    for position, paragraph in enumerate(paragraphs):
        if paragraph.book_title != metadata.title:
            raise ValueError(
                f"Paragraph {paragraph.ordinal} belongs to {paragraph.book_title!r}, not {metadata.title!r}"
            )
        if paragraph.ordinal != position:
            raise ValueError(f"Paragraph ordinals must be contiguous from 0; got {paragraph.ordinal} at {position}")


class BatchLoader:
    """Writes one book at a time in ordinal order through the bulk endpoint."""

    def __init__(
        self,
        client: SearchEngineClient,
        *,
        index_name: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._client = client
        self._index_name = index_name
        self._batch_size = batch_size

    @classmethod
    def from_settings(cls, client: SearchEngineClient, settings: Settings) -> "BatchLoader":
        return cls(client, index_name=settings.index_name, batch_size=settings.batch_size)

    def load(self, metadata: BookMetadata, paragraphs: Sequence[Paragraph]) -> LoadResult:
        _validate_paragraphs(metadata, paragraphs)

        written = 0
        batches = 0
        for batch_no, batch in enumerate(iter_batches(paragraphs, self._batch_size), start=1):
            operations: list[BulkOperation] = [
                ({"index": {"_index": self._index_name}}, paragraph.to_document()) for paragraph in batch
            ]
            first, last = batch[0].ordinal, batch[-1].ordinal

            try:
                response = self._client.bulk(operations)
            except EngineUnavailableError as exc:
                raise self._error("engine_unreachable", metadata, str(exc), batch_no, written) from exc
            except EngineRequestError as exc:
                raise self._error("request_failed", metadata, str(exc), batch_no, written) from exc

            batches += 1
            accepted, item_errors = _verify_bulk_response(response)
            if accepted != len(batch) or item_errors:
                raise self._error(
                    "batch_mismatch",
                    metadata,
                    f"Batch {batch_no} (paragraphs {first} - {last}) accepted {accepted} of {len(batch)} documents",
                    batch_no,
                    written + accepted,
                    item_errors[:_MAX_REPORTED_ITEM_ERRORS],
                )

            written += accepted
            logger.info("Indexed paragraphs %d - %d", first, last)

        if written:
            try:
                self._client.refresh(self._index_name)
            except EngineUnavailableError as exc:
                raise self._error("engine_unreachable", metadata, str(exc), None, written) from exc
            except EngineRequestError as exc:
                raise self._error("request_failed", metadata, str(exc), None, written) from exc

        return LoadResult(title=metadata.title, paragraphs_written=written, batches_submitted=batches)

    def _error(
        self,
        kind: LoadErrorKind,
        metadata: BookMetadata,
        message: str,
        batch_no: int | None,
        written: int,
        item_errors: list[str] | None = None,
    ) -> LoadError:
        return LoadError(
            kind=kind,
            title=metadata.title,
            message=message,
            batch_no=batch_no,
            paragraphs_written=written,
            item_errors=list(item_errors or []),
        )
