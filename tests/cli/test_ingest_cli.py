from __future__ import annotations

import json
from pathlib import Path

import pytest

import novelsearch.cli.ingest_books as ingest_cli
from novelsearch.cli.ingest_books import main as ingest_cli_main


def _write_txt(path: Path, *, title: str, body: str) -> None:
    path.write_text(
        f"Title: {title}\nAuthor: Tester\n\n"
        f"*** START OF THE PROJECT GUTENBERG EBOOK {title.upper()} ***\n{body}\n"
        f"*** END OF THE PROJECT GUTENBERG EBOOK {title.upper()} ***\n",
        encoding="utf-8",
    )


@pytest.fixture
def patched_engine(fake_engine, monkeypatch: pytest.MonkeyPatch):
    class _Factory:
        @staticmethod
        def connect(settings):
            return fake_engine.client(settings)

    monkeypatch.setattr(ingest_cli, "SearchEngineClient", _Factory)
    monkeypatch.setenv("NOVELSEARCH_CONNECT_MAX_ATTEMPTS", "2")
    monkeypatch.setenv("NOVELSEARCH_CONNECT_BACKOFF_SECONDS", "0.01")
    monkeypatch.setenv("NOVELSEARCH_CONNECT_MAX_BACKOFF_SECONDS", "0.01")
    return fake_engine


def test_cli_resets_index_and_prints_report(tmp_path: Path, patched_engine, capsys: pytest.CaptureFixture[str]) -> None:
    _write_txt(tmp_path / "one.txt", title="One", body="First.\n\nSecond.")
    (tmp_path / "two.txt").write_text("Author: Nobody\n", encoding="utf-8")
    patched_engine.indices["library"] = {"mappings": {}, "docs": [{"title": "stale"}]}

    exit_code = ingest_cli_main(["--books-path", str(tmp_path), "--batch-size", "1"])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert payload["scanned"] == 2
    assert payload["succeeded"] == 1
    assert payload["failed"] == 1
    assert payload["outcomes"][1]["error_kind"] == "missing_title"
    assert [doc["text"] for doc in patched_engine.documents()] == ["First.", "Second."]
    assert patched_engine.bulk_sizes == [1, 1]


def test_cli_exits_nonzero_when_engine_unreachable(tmp_path: Path, patched_engine, capsys) -> None:
    patched_engine.unreachable_health_checks = 10

    exit_code = ingest_cli_main(["--books-path", str(tmp_path)])

    assert exit_code == 1
    assert capsys.readouterr().out == ""
    assert patched_engine.bulk_sizes == []


def test_cli_exits_nonzero_for_missing_directory(tmp_path: Path, patched_engine) -> None:
    assert ingest_cli_main(["--books-path", str(tmp_path / "missing")]) == 1


def test_cli_rejects_invalid_configuration(tmp_path: Path, patched_engine, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOVELSEARCH_BATCH_SIZE", "0")

    assert ingest_cli_main(["--books-path", str(tmp_path)]) == 2
