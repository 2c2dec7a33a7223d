"""Sequential directory ingestion with per-file failure reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
import time
from typing import Callable, Literal

from novelsearch.ingestion.extractor import ExtractionError, extract_file
from novelsearch.ingestion.models import ExtractedBook
from novelsearch.search.loader import BatchLoader, LoadError

logger = logging.getLogger(__name__)

_SUPPORTED_SUFFIXES = {".txt"}

OutcomeStatus = Literal["success", "parse_failure", "write_failure"]


@dataclass(slots=True)
class FileOutcome:
    source_path: str
    status: OutcomeStatus
    title: str | None = None
    author: str | None = None
    paragraphs_parsed: int = 0
    paragraphs_written: int = 0
    error_kind: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, str | int | None]:
        return {
            "source_path": self.source_path,
            "status": self.status,
            "title": self.title,
            "author": self.author,
            "paragraphs_parsed": self.paragraphs_parsed,
            "paragraphs_written": self.paragraphs_written,
            "error_kind": self.error_kind,
            "error": self.error,
        }


@dataclass(slots=True)
class IngestionReport:
    scanned: int = 0
    duration_ms: int = 0
    outcomes: list[FileOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[FileOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == "success"]

    @property
    def failed(self) -> list[FileOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status != "success"]

    @property
    def paragraphs_written(self) -> int:
        return sum(outcome.paragraphs_written for outcome in self.outcomes)

    def to_dict(self) -> dict[str, object]:
        return {
            "scanned": self.scanned,
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "paragraphs_written": self.paragraphs_written,
            "duration_ms": self.duration_ms,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }


def _is_supported(path: Path) -> bool:
    return path.suffix.lower() in _SUPPORTED_SUFFIXES


def collect_sources(directory: Path) -> list[Path]:
    """List candidate files in filename order; raises if the directory is unusable."""

    if not directory.is_dir():
        raise NotADirectoryError(f"Source directory not found: {directory}")
    return sorted(
        (path for path in directory.iterdir() if path.is_file() and _is_supported(path)),
        key=lambda path: path.name,
    )


class IngestionOrchestrator:
    """Extracts and loads each book in turn; one bad file never aborts the run."""

    def __init__(
        self,
        loader: BatchLoader,
        *,
        extractor: Callable[[Path], ExtractedBook] = extract_file,
    ) -> None:
        self._loader = loader
        self._extractor = extractor

    def run(self, source_directory: str | Path) -> IngestionReport:
        started = time.perf_counter()
        report = IngestionReport()
        files = collect_sources(Path(source_directory))
        report.scanned = len(files)
        logger.info("Found %d files", len(files))

        for file_path in files:
            logger.info("Reading file - %s", file_path.name)
            report.outcomes.append(self._ingest_file(file_path))

        report.duration_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            "Ingestion finished: %d succeeded, %d failed, %d paragraphs written",
            len(report.succeeded),
            len(report.failed),
            report.paragraphs_written,
        )
        return report

    def _ingest_file(self, file_path: Path) -> FileOutcome:
        source_path = str(file_path)
        try:
            book = self._extractor(file_path)
        except ExtractionError as exc:
            logger.warning("Skipping %s: %s", file_path.name, exc)
            return FileOutcome(
                source_path=source_path,
                status="parse_failure",
                error_kind=exc.kind,
                error=str(exc),
            )

        outcome = FileOutcome(
            source_path=source_path,
            status="success",
            title=book.metadata.title,
            author=book.metadata.author,
            paragraphs_parsed=len(book.paragraphs),
        )
        try:
            result = self._loader.load(book.metadata, book.paragraphs)
        except LoadError as exc:
            logger.warning("Failed to index %s: %s", file_path.name, exc)
            outcome.status = "write_failure"
            outcome.paragraphs_written = exc.paragraphs_written
            outcome.error_kind = exc.kind
            outcome.error = str(exc)
            return outcome

        outcome.paragraphs_written = result.paragraphs_written
        return outcome
