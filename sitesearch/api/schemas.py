"""Pydantic response models for the API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OutcomeResponse(BaseModel):
    """Result of an indexing lifecycle call."""

    result: bool
    error: Optional[str] = None


class SearchHitResponse(BaseModel):
    """A single search result."""

    model_config = ConfigDict(populate_by_name=True)

    site: str
    site_name: str = Field(alias="siteName")
    uri: str
    title: str
    snippet: str
    relevance: float


class SearchResponse(BaseModel):
    """One page of ranked results; `count` is the size of the whole list."""

    result: bool = True
    count: int
    data: list[SearchHitResponse]


class TotalStatistics(BaseModel):
    sites: int
    pages: int
    lemmas: int
    indexing: bool


class SiteStatistics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    name: str
    status: str
    status_time: int = Field(alias="statusTime")
    error: Optional[str] = None
    pages: int
    lemmas: int


class Statistics(BaseModel):
    total: TotalStatistics
    detailed: list[SiteStatistics]


class StatisticsResponse(BaseModel):
    """Index totals plus per-site detail."""

    result: bool = True
    statistics: Statistics
