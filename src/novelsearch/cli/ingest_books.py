"""CLI entrypoint: reset the index and ingest a directory of novels."""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

from novelsearch.config import Settings
from novelsearch.ingestion.orchestrator import IngestionOrchestrator
from novelsearch.search.client import SearchEngineClient
from novelsearch.search.lifecycle import IndexLifecycleManager, LifecycleError
from novelsearch.search.loader import BatchLoader

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    parser = argparse.ArgumentParser(description="Recreate the search index and load every book in a directory")
    parser.add_argument("--books-path", default=None, help="Directory containing .txt books")
    parser.add_argument("--batch-size", type=int, default=None, help="Documents per bulk request")
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as exc:
        logger.error("Configuration error: %s", exc)
        return 2

    books_path = Path(args.books_path) if args.books_path else settings.books_path
    batch_size = args.batch_size if args.batch_size is not None else settings.batch_size
    if batch_size < 1:
        logger.error("Configuration error: --batch-size must be >= 1")
        return 2

    try:
        with SearchEngineClient.connect(settings) as client:
            IndexLifecycleManager.from_settings(client, settings).reset()
            loader = BatchLoader.from_settings(client, replace(settings, batch_size=batch_size))
            report = IngestionOrchestrator(loader).run(books_path)
    except LifecycleError as exc:
        logger.error("Index reset failed: %s", exc)
        return 1
    except OSError as exc:
        logger.error("Cannot read books directory: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.warning("Ingestion interrupted by operator")
        return 130

    print(json.dumps(report.to_dict(), ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
