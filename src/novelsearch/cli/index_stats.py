"""CLI entrypoint printing engine health and the index document count."""

from __future__ import annotations

import argparse
import json

from dotenv import load_dotenv

from novelsearch.config import Settings
from novelsearch.search.client import SearchEngineClient


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Show search engine health and indexed paragraph count")
    parser.parse_args(argv)

    settings = Settings.from_env()
    with SearchEngineClient.connect(settings) as client:
        health = client.health()
        exists = client.index_exists(settings.index_name)
        count = client.count(settings.index_name) if exists else 0

    payload = {
        "engine": settings.engine_url,
        "status": health.get("status"),
        "index": settings.index_name,
        "exists": exists,
        "count": count,
    }
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
