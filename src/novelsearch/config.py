"""Runtime configuration for ingestion, query and HTTP modules."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping


DEFAULT_ES_HOST = "localhost"
DEFAULT_ES_PORT = 9200
DEFAULT_ES_SCHEME = "http"
DEFAULT_INDEX_NAME = "library"
DEFAULT_DOCUMENT_TYPE = "book"
DEFAULT_BOOKS_PATH = "books"
DEFAULT_BATCH_SIZE = 500
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_CONNECT_MAX_ATTEMPTS = 10
DEFAULT_CONNECT_BACKOFF_SECONDS = 0.5
DEFAULT_CONNECT_MAX_BACKOFF_SECONDS = 10.0
DEFAULT_API_PORT = 3000


def _parse_positive_int(*, name: str, raw_value: str, minimum: int = 1) -> int:
    value = int(raw_value)
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _parse_positive_float(*, name: str, raw_value: str, minimum: float = 0.001) -> float:
    value = float(raw_value)
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _require(source: Mapping[str, str], name: str, default: object) -> str:
    raw = source.get(name, str(default)).strip()
    if not raw:
        raise ValueError(f"{name} cannot be empty")
    return raw


@dataclass(frozen=True, slots=True)
class Settings:
    """Validated engine, ingestion and API settings."""

    es_host: str = DEFAULT_ES_HOST
    es_port: int = DEFAULT_ES_PORT
    es_scheme: str = DEFAULT_ES_SCHEME
    index_name: str = DEFAULT_INDEX_NAME
    document_type: str = DEFAULT_DOCUMENT_TYPE
    books_path: Path = Path(DEFAULT_BOOKS_PATH)
    batch_size: int = DEFAULT_BATCH_SIZE
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    connect_max_attempts: int = DEFAULT_CONNECT_MAX_ATTEMPTS
    connect_backoff_seconds: float = DEFAULT_CONNECT_BACKOFF_SECONDS
    connect_max_backoff_seconds: float = DEFAULT_CONNECT_MAX_BACKOFF_SECONDS
    api_port: int = DEFAULT_API_PORT

    @property
    def engine_url(self) -> str:
        return f"{self.es_scheme}://{self.es_host}:{self.es_port}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        es_host = _require(source, "ES_HOST", DEFAULT_ES_HOST)
        es_scheme = _require(source, "ES_SCHEME", DEFAULT_ES_SCHEME).lower()
        if es_scheme not in {"http", "https"}:
            raise ValueError("ES_SCHEME must be http or https")

        index_name = _require(source, "NOVELSEARCH_INDEX", DEFAULT_INDEX_NAME)
        if index_name != index_name.lower():
            raise ValueError("NOVELSEARCH_INDEX must be lowercase")

        document_type = _require(source, "NOVELSEARCH_DOC_TYPE", DEFAULT_DOCUMENT_TYPE)
        books_path = _require(source, "NOVELSEARCH_BOOKS_PATH", DEFAULT_BOOKS_PATH)

        es_port = _parse_positive_int(
            name="ES_PORT",
            raw_value=_require(source, "ES_PORT", DEFAULT_ES_PORT),
        )
        batch_size = _parse_positive_int(
            name="NOVELSEARCH_BATCH_SIZE",
            raw_value=_require(source, "NOVELSEARCH_BATCH_SIZE", DEFAULT_BATCH_SIZE),
        )
        request_timeout_seconds = _parse_positive_float(
            name="NOVELSEARCH_REQUEST_TIMEOUT_SECONDS",
            raw_value=_require(source, "NOVELSEARCH_REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS),
            minimum=0.1,
        )
        connect_max_attempts = _parse_positive_int(
            name="NOVELSEARCH_CONNECT_MAX_ATTEMPTS",
            raw_value=_require(source, "NOVELSEARCH_CONNECT_MAX_ATTEMPTS", DEFAULT_CONNECT_MAX_ATTEMPTS),
        )
        connect_backoff_seconds = _parse_positive_float(
            name="NOVELSEARCH_CONNECT_BACKOFF_SECONDS",
            raw_value=_require(source, "NOVELSEARCH_CONNECT_BACKOFF_SECONDS", DEFAULT_CONNECT_BACKOFF_SECONDS),
        )
        connect_max_backoff_seconds = _parse_positive_float(
            name="NOVELSEARCH_CONNECT_MAX_BACKOFF_SECONDS",
            raw_value=_require(
                source,
                "NOVELSEARCH_CONNECT_MAX_BACKOFF_SECONDS",
                DEFAULT_CONNECT_MAX_BACKOFF_SECONDS,
            ),
        )
        if connect_max_backoff_seconds < connect_backoff_seconds:
            raise ValueError(
                "NOVELSEARCH_CONNECT_MAX_BACKOFF_SECONDS must be >= NOVELSEARCH_CONNECT_BACKOFF_SECONDS"
            )
        api_port = _parse_positive_int(
            name="PORT",
            raw_value=_require(source, "PORT", DEFAULT_API_PORT),
        )

        return cls(
            es_host=es_host,
            es_port=es_port,
            es_scheme=es_scheme,
            index_name=index_name,
            document_type=document_type,
            books_path=Path(books_path),
            batch_size=batch_size,
            request_timeout_seconds=request_timeout_seconds,
            connect_max_attempts=connect_max_attempts,
            connect_backoff_seconds=connect_backoff_seconds,
            connect_max_backoff_seconds=connect_max_backoff_seconds,
            api_port=api_port,
        )
