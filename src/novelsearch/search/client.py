"""HTTP handle for an Elasticsearch-compatible search engine."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Any, Mapping, Sequence

import httpx

from novelsearch.config import Settings

logger = logging.getLogger(__name__)

BulkOperation = tuple[Mapping[str, Any], Mapping[str, Any]]


@dataclass(slots=True)
class EngineUnavailableError(RuntimeError):
    """Raised when the engine cannot be reached at the transport level."""

    url: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} (url={self.url})"


@dataclass(slots=True)
class EngineRequestError(RuntimeError):
    """Raised when the engine answers with an error status."""

    method: str
    path: str
    status_code: int
    body: str

    def __str__(self) -> str:
        return f"Engine request {self.method} {self.path} failed ({self.status_code}): {self.body[:500]}"


def _build_default_client(settings: Settings) -> httpx.Client:
    return httpx.Client(base_url=settings.engine_url, timeout=settings.request_timeout_seconds)


def encode_bulk_body(operations: Sequence[BulkOperation]) -> bytes:
    """Serialize (action, document) pairs as newline-delimited JSON."""

    lines: list[str] = []
    for action, document in operations:
        lines.append(json.dumps(action, ensure_ascii=False))
        lines.append(json.dumps(document, ensure_ascii=False))
    return ("\n".join(lines) + "\n").encode("utf-8")


class SearchEngineClient:
    """Explicit engine connection shared by lifecycle, loader and query code."""

    def __init__(self, settings: Settings, *, http_client: httpx.Client | None = None) -> None:
        self._settings = settings
        self._http = http_client or _build_default_client(settings)

    @classmethod
    def connect(cls, settings: Settings, *, http_client: httpx.Client | None = None) -> "SearchEngineClient":
        logger.info("Connecting to search engine at %s", settings.engine_url)
        return cls(settings, http_client=http_client)

    @property
    def url(self) -> str:
        return self._settings.engine_url

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "SearchEngineClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def health(self) -> dict[str, Any]:
        return self._request_json("GET", "/_cluster/health")

    def index_exists(self, index: str) -> bool:
        response = self._request("HEAD", f"/{index}", allowed_statuses={404})
        return response.status_code == 200

    def delete_index(self, index: str) -> None:
        self._request("DELETE", f"/{index}")

    def create_index(self, index: str) -> None:
        self._request("PUT", f"/{index}")

    def put_mapping(
        self,
        index: str,
        properties: Mapping[str, Mapping[str, str]],
        *,
        meta: Mapping[str, str] | None = None,
    ) -> None:
        body: dict[str, Any] = {"properties": dict(properties)}
        if meta:
            body["_meta"] = dict(meta)
        self._request("PUT", f"/{index}/_mapping", json=body)

    def bulk(self, operations: Sequence[BulkOperation]) -> dict[str, Any]:
        """Submit one bulk request and return the engine's per-item response."""

        if not operations:
            raise ValueError("operations cannot be empty")
        return self._request_json(
            "POST",
            "/_bulk",
            content=encode_bulk_body(operations),
            headers={"Content-Type": "application/x-ndjson"},
        )

    def refresh(self, index: str) -> None:
        self._request("POST", f"/{index}/_refresh")

    def count(self, index: str) -> int:
        payload = self._request_json("GET", f"/{index}/_count")
        return int(payload.get("count", 0))

    def search(self, index: str, body: Mapping[str, Any]) -> dict[str, Any]:
        return self._request_json("POST", f"/{index}/_search", json=dict(body))

    def _request(
        self,
        method: str,
        path: str,
        *,
        allowed_statuses: set[int] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise EngineUnavailableError(url=self.url, message=f"Engine unreachable: {exc}") from exc

        if response.status_code >= 400 and response.status_code not in (allowed_statuses or set()):
            raise EngineRequestError(
                method=method,
                path=path,
                status_code=response.status_code,
                body=response.text,
            )
        return response

    def _request_json(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        response = self._request(method, path, **kwargs)
        try:
            payload = response.json()
        except ValueError as exc:
            raise EngineRequestError(
                method=method,
                path=path,
                status_code=response.status_code,
                body=f"invalid JSON body: {response.text}",
            ) from exc
        if not isinstance(payload, dict):
            raise EngineRequestError(
                method=method,
                path=path,
                status_code=response.status_code,
                body=f"expected a JSON object, got {type(payload).__name__}",
            )
        return payload
