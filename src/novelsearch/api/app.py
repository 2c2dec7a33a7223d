"""FastAPI application exposing term search and paragraph ranges."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import time
from typing import Any, AsyncIterator

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from novelsearch.config import Settings
from novelsearch.search.client import EngineRequestError, EngineUnavailableError, SearchEngineClient
from novelsearch.search.query import ParagraphQueries

logger = logging.getLogger(__name__)

MAX_TERM_LENGTH = 60
MAX_BOOK_TITLE_LENGTH = 256
DEFAULT_RANGE_END = 10


def _get_queries(request: Request) -> ParagraphQueries:
    queries = getattr(request.app.state, "queries", None)
    if queries is None:
        raise HTTPException(status_code=503, detail="Search service unavailable")
    return queries


def create_app(settings: Settings | None = None, *, queries: ParagraphQueries | None = None) -> FastAPI:
    """Build the API; pass ``queries`` to skip connecting to the engine on startup."""

    app_settings = settings or Settings()

    @asynccontextmanager
    async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
        if getattr(application.state, "queries", None) is not None:
            yield
            return

        client = SearchEngineClient.connect(app_settings)
        application.state.queries = ParagraphQueries(client, index_name=app_settings.index_name)
        logger.info("Serving index %s from %s", app_settings.index_name, app_settings.engine_url)
        try:
            yield
        finally:
            client.close()
            application.state.queries = None
            logger.info("Search engine client closed")

    application = FastAPI(title="novelsearch API", version="0.1.0", lifespan=_lifespan)
    if queries is not None:
        application.state.queries = queries

    application.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET"], allow_headers=["*"])

    @application.middleware("http")
    async def log_requests(request: Request, call_next: Any) -> Any:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info("%s %s - %d", request.method, request.url, elapsed_ms)
        return response

    @application.exception_handler(EngineUnavailableError)
    async def _engine_unavailable(request: Request, exc: EngineUnavailableError) -> JSONResponse:
        logger.error("Server error: %s", exc)
        return JSONResponse(status_code=503, content={"detail": "Search engine unavailable"})

    @application.exception_handler(EngineRequestError)
    async def _engine_request_failed(request: Request, exc: EngineRequestError) -> JSONResponse:
        logger.error("Server error: %s", exc)
        return JSONResponse(status_code=502, content={"detail": "Search engine rejected the query"})

    @application.get("/search")
    def search(
        request: Request,
        term: str = Query(..., min_length=1, max_length=MAX_TERM_LENGTH),
        offset: int = Query(0, ge=0),
    ) -> dict[str, Any]:
        """Search paragraph text for a term, with highlighted fragments."""

        try:
            page = _get_queries(request).query_term(term, offset)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return page.to_dict()

    @application.get("/paragraphs")
    def paragraphs(
        request: Request,
        book_title: str = Query(..., alias="bookTitle", min_length=1, max_length=MAX_BOOK_TITLE_LENGTH),
        start: int = Query(0, ge=0),
        end: int = Query(DEFAULT_RANGE_END),
    ) -> dict[str, Any]:
        """Return paragraphs of one book with location in [start, end]."""

        if end <= start:
            raise HTTPException(status_code=422, detail="end must be greater than start")
        try:
            page = _get_queries(request).get_paragraphs(book_title, start, end)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return page.to_dict()

    return application
