"""CLI entrypoint for reading a location range of one book."""

from __future__ import annotations

import argparse
import json

from dotenv import load_dotenv

from novelsearch.config import Settings
from novelsearch.search.client import SearchEngineClient
from novelsearch.search.query import MAX_RANGE_SIZE, ParagraphQueries


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Print paragraphs of a book by location range")
    parser.add_argument("--book-title", required=True, help="Exact book title")
    parser.add_argument("--start", type=int, default=0, help="First location (inclusive)")
    parser.add_argument("--end", type=int, default=10, help="Last location (inclusive)")
    args = parser.parse_args(argv)
    if args.start < 0:
        parser.error("--start cannot be negative")
    if args.end <= args.start:
        parser.error("--end must be greater than --start")
    if args.end - args.start + 1 > MAX_RANGE_SIZE:
        parser.error(f"range cannot span more than {MAX_RANGE_SIZE} paragraphs")

    settings = Settings.from_env()
    with SearchEngineClient.connect(settings) as client:
        page = ParagraphQueries(client, index_name=settings.index_name).get_paragraphs(
            args.book_title,
            args.start,
            args.end,
        )

    payload = {"book_title": args.book_title, "start": args.start, "end": args.end, **page.to_dict()}
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
