"""CLI entrypoint for term search against the paragraph index."""

from __future__ import annotations

import argparse
import json

from dotenv import load_dotenv

from novelsearch.config import Settings
from novelsearch.search.client import SearchEngineClient
from novelsearch.search.query import ParagraphQueries


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Search indexed paragraphs for a term")
    parser.add_argument("--term", required=True, help="Term to search for")
    parser.add_argument("--offset", type=int, default=0, help="Number of hits to skip")
    args = parser.parse_args(argv)
    if args.offset < 0:
        parser.error("--offset cannot be negative")

    settings = Settings.from_env()
    with SearchEngineClient.connect(settings) as client:
        page = ParagraphQueries(client, index_name=settings.index_name).query_term(args.term, args.offset)

    payload = {"term": args.term, "offset": args.offset, **page.to_dict()}
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
