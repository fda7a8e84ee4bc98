"""Search API route."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Request

from sitesearch.api.schemas import SearchHitResponse, SearchResponse

router = APIRouter(prefix="/api", tags=["search"])


@router.get("/search", response_model=SearchResponse, response_model_by_alias=True)
def search(
    request: Request,
    query: Optional[str] = Query(None, description="Search query"),
    site: Optional[str] = Query(None, description="Restrict results to one site root URL"),
    offset: int = Query(0, description="Number of results to skip"),
    limit: Optional[int] = Query(None, description="Results per page"),
) -> SearchResponse:
    """Run a ranked search; validation failures surface as HTTP 400."""
    engine = request.app.state.search_engine
    page = engine.search(query, site=site, offset=offset, limit=limit)

    return SearchResponse(
        count=page.total,
        data=[SearchHitResponse.model_validate(hit.as_dict()) for hit in page.results],
    )
