"""Search engine handle, index lifecycle, bulk loading and queries."""

from .client import EngineRequestError, EngineUnavailableError, SearchEngineClient
from .lifecycle import DOCUMENT_PROPERTIES, IndexLifecycleManager, LifecycleError, RetryPolicy
from .loader import BatchLoader, LoadError, LoadResult
from .query import ParagraphQueries, SearchHit, SearchPage

__all__ = [
    "BatchLoader",
    "DOCUMENT_PROPERTIES",
    "EngineRequestError",
    "EngineUnavailableError",
    "IndexLifecycleManager",
    "LifecycleError",
    "LoadError",
    "LoadResult",
    "ParagraphQueries",
    "RetryPolicy",
    "SearchEngineClient",
    "SearchHit",
    "SearchPage",
]
