"""Health and statistics routes."""

from __future__ import annotations

from fastapi import APIRouter, Request

from sitesearch.api.schemas import StatisticsResponse

router = APIRouter(tags=["system"])


@router.get("/health")
def health() -> dict:
    """Simple liveness check."""
    return {"status": "ok"}


@router.get("/api/statistics", response_model=StatisticsResponse, response_model_by_alias=True)
def statistics(request: Request) -> StatisticsResponse:
    """Return index totals and per-site status."""
    stats = request.app.state.statistics.statistics()
    return StatisticsResponse.model_validate({"statistics": stats})
