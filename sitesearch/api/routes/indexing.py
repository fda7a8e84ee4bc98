"""Indexing lifecycle routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from sitesearch.indexing.outcome import IndexingOutcome

router = APIRouter(prefix="/api", tags=["indexing"])


def _respond(outcome: IndexingOutcome) -> JSONResponse:
    return JSONResponse(status_code=int(outcome.status_code), content=outcome.as_dict())


@router.get("/startIndexing")
def start_indexing(request: Request) -> JSONResponse:
    """Start a full crawl of every configured site in the background."""
    return _respond(request.app.state.coordinator.start_indexing())


@router.get("/stopIndexing")
def stop_indexing(request: Request) -> JSONResponse:
    """Cancel the running crawl."""
    return _respond(request.app.state.coordinator.stop_indexing())


@router.post("/indexPage")
def index_page(
    request: Request,
    url: Optional[str] = Query(None, description="Absolute URL of a page on a configured site"),
) -> JSONResponse:
    """Fetch and re-index a single page synchronously."""
    return _respond(request.app.state.page_indexer.index_page(url))
