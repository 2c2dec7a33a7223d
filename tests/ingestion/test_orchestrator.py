from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from novelsearch.ingestion.orchestrator import IngestionOrchestrator, collect_sources
from novelsearch.search.loader import BatchLoader


def _write_book(path: Path, *, title: str, paragraphs: list[str], author: str = "Tester") -> None:
    body = "\n\n".join(paragraphs)
    path.write_text(
        f"Title: {title}\nAuthor: {author}\n\n"
        f"*** START OF THE PROJECT GUTENBERG EBOOK {title.upper()} ***\n"
        f"{body}\n"
        f"*** END OF THE PROJECT GUTENBERG EBOOK {title.upper()} ***\n",
        encoding="utf-8",
    )


def test_collect_sources_filters_and_sorts_by_filename(tmp_path: Path) -> None:
    for name in ["b.txt", "A.TXT", "c.md", "a.txt"]:
        (tmp_path / name).write_text("x", encoding="utf-8")
    (tmp_path / "nested.txt").mkdir()

    names = [path.name for path in collect_sources(tmp_path)]

    assert names == ["A.TXT", "a.txt", "b.txt"]


def test_collect_sources_missing_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(NotADirectoryError):
        collect_sources(tmp_path / "missing")


def test_malformed_file_does_not_block_other_books(tmp_path: Path, fake_engine, engine_client) -> None:
    _write_book(tmp_path / "01-hound.txt", title="The Hound", paragraphs=["Dog.", "Moor."])
    (tmp_path / "02-broken.txt").write_text("Title: Broken\nNo body markers.\n", encoding="utf-8")
    _write_book(tmp_path / "03-study.txt", title="A Study", paragraphs=["One.", "Two.", "Three."])

    loader = BatchLoader(engine_client, index_name="library", batch_size=2)
    report = IngestionOrchestrator(loader).run(tmp_path)

    assert report.scanned == 3
    assert [outcome.status for outcome in report.outcomes] == ["success", "parse_failure", "success"]
    broken = report.outcomes[1]
    assert broken.error_kind == "missing_start_marker"
    assert broken.source_path.endswith("02-broken.txt")
    assert report.paragraphs_written == 5

    titles = [doc["title"] for doc in fake_engine.documents()]
    assert titles == ["The Hound", "The Hound", "A Study", "A Study", "A Study"]
    assert fake_engine.bulk_sizes == [2, 2, 1]


def test_write_failure_is_recorded_and_next_book_still_loads(tmp_path: Path, fake_engine, engine_client) -> None:
    _write_book(tmp_path / "a.txt", title="Alpha", paragraphs=["a0", "a1", "a2"])
    _write_book(tmp_path / "b.txt", title="Beta", paragraphs=["b0"])
    fake_engine.reject_items_on_bulk_call = {2: 1}

    loader = BatchLoader(engine_client, index_name="library", batch_size=2)
    report = IngestionOrchestrator(loader).run(tmp_path)

    alpha, beta = report.outcomes
    assert alpha.status == "write_failure"
    assert alpha.error_kind == "batch_mismatch"
    assert alpha.paragraphs_parsed == 3
    assert alpha.paragraphs_written == 2
    assert beta.status == "success"
    assert beta.paragraphs_written == 1
    assert len(report.succeeded) == 1
    assert len(report.failed) == 1


def test_unparseable_bulk_response_fails_only_that_book(tmp_path: Path, fake_engine, engine_client) -> None:
    _write_book(tmp_path / "a.txt", title="Alpha", paragraphs=["a0", "a1"])
    _write_book(tmp_path / "b.txt", title="Beta", paragraphs=["b0"])
    fake_engine.raw_bulk_responses = {1: httpx.Response(200, text="<html>proxy error</html>")}

    report = IngestionOrchestrator(BatchLoader(engine_client, index_name="library")).run(tmp_path)

    alpha, beta = report.outcomes
    assert [outcome.status for outcome in report.outcomes] == ["write_failure", "success"]
    assert alpha.error_kind == "request_failed"
    assert alpha.paragraphs_written == 0
    assert beta.paragraphs_written == 1
    assert [doc["title"] for doc in fake_engine.documents()] == ["Beta"]


def test_report_serializes_counts(tmp_path: Path, engine_client) -> None:
    _write_book(tmp_path / "only.txt", title="Only", paragraphs=["Just one."])

    payload = IngestionOrchestrator(BatchLoader(engine_client, index_name="library")).run(tmp_path).to_dict()

    assert payload["scanned"] == 1
    assert payload["succeeded"] == 1
    assert payload["failed"] == 0
    assert payload["paragraphs_written"] == 1
    assert payload["duration_ms"] >= 0
    assert payload["outcomes"][0]["title"] == "Only"
    assert payload["outcomes"][0]["author"] == "Tester"


def test_run_on_missing_directory_propagates(tmp_path: Path, engine_client) -> None:
    orchestrator = IngestionOrchestrator(BatchLoader(engine_client, index_name="library"))

    with pytest.raises(NotADirectoryError):
        orchestrator.run(tmp_path / "nope")
