from __future__ import annotations

import json
from typing import Any, Iterator

import httpx
import pytest

from novelsearch.config import Settings
from novelsearch.search.client import SearchEngineClient


class FakeEngine:
    """In-memory stand-in for the handful of engine endpoints the app uses."""

    def __init__(self) -> None:
        self.indices: dict[str, dict[str, Any]] = {}
        self.requests: list[tuple[str, str]] = []
        self.bulk_sizes: list[int] = []
        self.unreachable_health_checks = 0
        self.disconnect_on_bulk_call: int | None = None
        self.reject_items_on_bulk_call: dict[int, int] = {}
        self.raw_bulk_responses: dict[int, httpx.Response] = {}
        self.raw_health_responses: list[httpx.Response] = []

    # -- helpers used by tests -------------------------------------------------

    def documents(self, index: str = "library") -> list[dict[str, Any]]:
        return list(self.indices.get(index, {}).get("docs", []))

    def client(self, settings: Settings | None = None) -> SearchEngineClient:
        http_client = httpx.Client(transport=httpx.MockTransport(self.handle), base_url="http://engine.test")
        return SearchEngineClient(settings or Settings(), http_client=http_client)

    # -- transport ---------------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        self.requests.append((method, path))
        parts = [part for part in path.split("/") if part]

        if path == "/_cluster/health":
            if self.unreachable_health_checks > 0:
                self.unreachable_health_checks -= 1
                raise httpx.ConnectError("Connection refused", request=request)
            if self.raw_health_responses:
                return self.raw_health_responses.pop(0)
            return httpx.Response(200, json={"status": "green"})

        if path == "/_bulk" and method == "POST":
            return self._bulk(request)

        if len(parts) == 1:
            return self._index_admin(method, parts[0])

        index, action = parts[0], parts[1]
        if index not in self.indices:
            return httpx.Response(404, json={"error": {"type": "index_not_found_exception"}})
        if action == "_mapping" and method == "PUT":
            self.indices[index]["mappings"] = json.loads(request.content)
            return httpx.Response(200, json={"acknowledged": True})
        if action == "_refresh":
            return httpx.Response(200, json={"_shards": {"failed": 0}})
        if action == "_count":
            return httpx.Response(200, json={"count": len(self.indices[index]["docs"])})
        if action == "_search":
            return httpx.Response(200, json=self._search(index, json.loads(request.content)))
        return httpx.Response(400, json={"error": {"type": "unsupported"}})

    def _index_admin(self, method: str, index: str) -> httpx.Response:
        exists = index in self.indices
        if method == "HEAD":
            return httpx.Response(200 if exists else 404)
        if method == "DELETE":
            if not exists:
                return httpx.Response(404, json={"error": {"type": "index_not_found_exception"}})
            del self.indices[index]
            return httpx.Response(200, json={"acknowledged": True})
        if method == "PUT":
            if exists:
                return httpx.Response(400, json={"error": {"type": "resource_already_exists_exception"}})
            self.indices[index] = {"mappings": {}, "docs": []}
            return httpx.Response(200, json={"acknowledged": True})
        return httpx.Response(405)

    def _bulk(self, request: httpx.Request) -> httpx.Response:
        call_no = len(self.bulk_sizes) + 1
        lines = [line for line in request.content.decode("utf-8").split("\n") if line]
        pairs = [(json.loads(lines[i]), json.loads(lines[i + 1])) for i in range(0, len(lines), 2)]
        self.bulk_sizes.append(len(pairs))

        if self.disconnect_on_bulk_call == call_no:
            raise httpx.ConnectError("Connection reset", request=request)
        if call_no in self.raw_bulk_responses:
            return self.raw_bulk_responses[call_no]

        rejected = self.reject_items_on_bulk_call.get(call_no, 0)
        items = []
        for position, (action, document) in enumerate(pairs):
            index = action["index"]["_index"]
            if position >= len(pairs) - rejected:
                items.append(
                    {
                        "index": {
                            "_index": index,
                            "status": 400,
                            "error": {"type": "mapper_parsing_exception", "reason": "failed to parse"},
                        }
                    }
                )
                continue
            self.indices.setdefault(index, {"mappings": {}, "docs": []})["docs"].append(document)
            items.append({"index": {"_index": index, "status": 201, "result": "created"}})

        return httpx.Response(200, json={"took": 1, "errors": rejected > 0, "items": items})

    def _search(self, index: str, body: dict[str, Any]) -> dict[str, Any]:
        docs = self.indices[index]["docs"]
        query = body.get("query", {})
        start = int(body.get("from", 0))
        size = int(body.get("size", 10))

        if "bool" in query:
            title = None
            low, high = 0, None
            for clause in query["bool"]["filter"]:
                if "term" in clause:
                    title = clause["term"]["title"]
                if "range" in clause:
                    low = clause["range"]["location"]["gte"]
                    high = clause["range"]["location"]["lte"]
            matched = [
                doc
                for doc in docs
                if doc["title"] == title and doc["location"] >= low and (high is None or doc["location"] <= high)
            ]
            matched.sort(key=lambda doc: doc["location"])
            hits = [{"_source": doc, "_score": None} for doc in matched[start : start + size]]
            return {"hits": {"total": {"value": len(matched)}, "hits": hits}}

        term = query["match"]["text"].lower()
        matched = [doc for doc in docs if term in doc["text"].lower()]
        hits = []
        for doc in matched[start : start + size]:
            position = doc["text"].lower().index(term)
            original = doc["text"][position : position + len(term)]
            fragment = doc["text"].replace(original, f"<em>{original}</em>")
            hits.append({"_source": doc, "_score": 1.0, "highlight": {"text": [fragment]}})
        return {"hits": {"total": {"value": len(matched)}, "hits": hits}}


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def engine_client(fake_engine: FakeEngine) -> Iterator[SearchEngineClient]:
    client = fake_engine.client()
    yield client
    client.close()
