"""CLI entrypoint running the HTTP API with uvicorn."""

from __future__ import annotations

import argparse
import logging

from dotenv import load_dotenv
import uvicorn

from novelsearch.api.app import create_app
from novelsearch.config import Settings

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    parser = argparse.ArgumentParser(description="Serve the novel search HTTP API")
    parser.add_argument("--host", default="0.0.0.0", help="Listen address")
    parser.add_argument("--port", type=int, default=None, help="Listen port (defaults to $PORT)")
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as exc:
        logger.error("Configuration error: %s", exc)
        return 2

    port = args.port or settings.api_port
    logger.info("App listening on port %d", port)
    uvicorn.run(create_app(settings), host=args.host, port=port, log_level="info")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
