"""Index reset with a bounded connectivity check and the fixed paragraph mapping."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
import time
from typing import Any, Callable, Literal

from novelsearch.config import Settings
from novelsearch.search.client import EngineRequestError, EngineUnavailableError, SearchEngineClient

logger = logging.getLogger(__name__)

LifecycleErrorKind = Literal["unreachable", "cancelled", "request_failed"]

DOCUMENT_PROPERTIES: dict[str, dict[str, str]] = {
    "title": {"type": "keyword"},
    "author": {"type": "keyword"},
    "location": {"type": "integer"},
    "text": {"type": "text"},
}


@dataclass(slots=True)
class LifecycleError(RuntimeError):
    """Fatal error: ingestion must not continue against an unknown index state."""

    kind: LifecycleErrorKind
    index: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} (kind={self.kind}, index={self.index})"


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Exponential backoff for the startup connectivity check."""

    max_attempts: int = 10
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 10.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds cannot be negative")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.connect_max_attempts,
            base_delay_seconds=settings.connect_backoff_seconds,
            max_delay_seconds=settings.connect_max_backoff_seconds,
        )

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay_seconds * (2**attempt), self.max_delay_seconds)


class IndexLifecycleManager:
    """Recreates the paragraph index; must finish before any bulk load."""

    def __init__(
        self,
        client: SearchEngineClient,
        *,
        index_name: str,
        document_type: str,
        policy: RetryPolicy | None = None,
        cancel_event: threading.Event | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._index_name = index_name
        self._document_type = document_type
        self._policy = policy or RetryPolicy()
        self._cancel_event = cancel_event
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        client: SearchEngineClient,
        settings: Settings,
        *,
        cancel_event: threading.Event | None = None,
    ) -> "IndexLifecycleManager":
        return cls(
            client,
            index_name=settings.index_name,
            document_type=settings.document_type,
            policy=RetryPolicy.from_settings(settings),
            cancel_event=cancel_event,
        )

    def wait_for_engine(self) -> dict[str, Any]:
        """Poll cluster health until it answers or the policy is exhausted."""

        last_error: Exception | None = None
        for attempt in range(self._policy.max_attempts):
            logger.info("Connecting to search engine (attempt %d/%d)", attempt + 1, self._policy.max_attempts)
            try:
                health = self._client.health()
            except (EngineUnavailableError, EngineRequestError) as exc:
                last_error = exc
                logger.warning("Connection failed, retrying: %s", exc)
            else:
                logger.info("Search engine health: %s", health.get("status", "unknown"))
                return health

            if attempt + 1 >= self._policy.max_attempts:
                break
            self._pause(self._policy.delay_for(attempt))

        raise LifecycleError(
            kind="unreachable",
            index=self._index_name,
            message=f"Search engine unreachable after {self._policy.max_attempts} attempt(s): {last_error}",
        ) from last_error

    def reset(self) -> None:
        """Drop the index if present, recreate it and apply the mapping."""

        self.wait_for_engine()
        try:
            if self._client.index_exists(self._index_name):
                logger.info("Deleting existing index %s", self._index_name)
                self._client.delete_index(self._index_name)
            self._client.create_index(self._index_name)
            self._client.put_mapping(
                self._index_name,
                DOCUMENT_PROPERTIES,
                meta={"document_type": self._document_type},
            )
        except EngineUnavailableError as exc:
            raise LifecycleError(kind="unreachable", index=self._index_name, message=str(exc)) from exc
        except EngineRequestError as exc:
            raise LifecycleError(kind="request_failed", index=self._index_name, message=str(exc)) from exc
        logger.info("Index %s recreated with paragraph mapping", self._index_name)

    def _pause(self, delay: float) -> None:
        if self._cancel_event is None:
            self._sleep(delay)
            return
        if self._cancel_event.wait(delay):
            raise LifecycleError(
                kind="cancelled",
                index=self._index_name,
                message="Connectivity check cancelled",
            )
