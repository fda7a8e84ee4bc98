"""FastAPI application factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sitesearch.api.routes.health import router as health_router
from sitesearch.api.routes.indexing import router as indexing_router
from sitesearch.api.routes.search import router as search_router
from sitesearch.config.settings import Settings, get_settings
from sitesearch.crawler.http_client import PageFetcher
from sitesearch.errors import QueryValidationError
from sitesearch.indexing.coordinator import IndexingCoordinator
from sitesearch.indexing.merger import IndexMerger
from sitesearch.indexing.page_indexer import PageIndexer
from sitesearch.indexing.statistics import StatisticsService
from sitesearch.preprocessing.lemmatizer import Lemmatizer
from sitesearch.search.engine import SearchEngine
from sitesearch.storage.cache import ExpiringLRUCache
from sitesearch.storage.lemma_store import LemmaStore
from sitesearch.storage.page_store import PageStore
from sitesearch.storage.posting_store import PostingStore
from sitesearch.storage.schema import initialize_database
from sitesearch.storage.site_store import SiteStore

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    fetcher: PageFetcher | None = None,
) -> FastAPI:
    """
    Build and return a fully wired FastAPI application.

    Initializes the database and creates the shared stores, caches and
    services before mounting routes. One IndexingCoordinator serves the
    whole process.
    """
    settings = settings or get_settings()
    initialize_database(settings.db_path)

    app = FastAPI(
        title="SiteSearch API",
        version="0.1.0",
        description="Crawler and ranked full-text search over a fixed set of sites",
    )

    db_path = settings.db_path
    site_store = SiteStore(db_path)
    page_store = PageStore(db_path)
    lemma_store = LemmaStore(db_path)
    posting_store = PostingStore(db_path)
    lemmatizer = Lemmatizer(settings.preprocessing)
    fetcher = fetcher or PageFetcher(settings.crawler)

    merger = IndexMerger(
        lemma_store=lemma_store,
        posting_store=posting_store,
        lemma_cache=ExpiringLRUCache(
            max_size=settings.cache.lemma_cache_size,
            ttl=settings.cache.lemma_cache_ttl,
        ),
    )

    # Shared state, reachable via request.app.state in routes
    app.state.settings = settings
    app.state.coordinator = IndexingCoordinator(
        settings,
        site_store=site_store,
        page_store=page_store,
        lemma_store=lemma_store,
        merger=merger,
        fetcher=fetcher,
        lemmatizer=lemmatizer,
    )
    app.state.page_indexer = PageIndexer(
        merger,
        settings,
        site_store=site_store,
        page_store=page_store,
        fetcher=fetcher,
        lemmatizer=lemmatizer,
    )
    app.state.search_engine = SearchEngine(
        settings,
        lemmatizer=lemmatizer,
        site_store=site_store,
        page_store=page_store,
        lemma_store=lemma_store,
        posting_store=posting_store,
    )
    app.state.statistics = StatisticsService(
        app.state.coordinator, site_store, page_store, lemma_store
    )

    @app.exception_handler(QueryValidationError)
    async def query_validation_error(request: Request, exc: QueryValidationError) -> JSONResponse:
        logger.info("Rejected search request: %s", exc)
        return JSONResponse(status_code=400, content={"result": False, "error": str(exc)})

    # Mount routes
    app.include_router(health_router)
    app.include_router(indexing_router)
    app.include_router(search_router)

    return app
