"""On-demand re-indexing of a single URL."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Optional

from sitesearch.config.settings import Settings, get_settings
from sitesearch.crawler.http_client import PageFetcher
from sitesearch.crawler.urls import relative_path
from sitesearch.errors import FetchError
from sitesearch.indexing.merger import IndexMerger
from sitesearch.indexing.outcome import IndexingOutcome
from sitesearch.preprocessing.lemmatizer import Lemmatizer
from sitesearch.storage.models import Page
from sitesearch.storage.page_store import PageStore
from sitesearch.storage.site_store import SiteStore

logger = logging.getLogger(__name__)

OUTSIDE_SITES_MESSAGE = "This page is outside the sites listed in the configuration"


class PageIndexer:
    """
    Replaces one page's content and postings with a fresh fetch.

    Synchronous: one fetch, no link following, no cancellation.
    """

    def __init__(
        self,
        merger: IndexMerger,
        settings: Optional[Settings] = None,
        site_store: Optional[SiteStore] = None,
        page_store: Optional[PageStore] = None,
        fetcher: Optional[PageFetcher] = None,
        lemmatizer: Optional[Lemmatizer] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._merger = merger
        self._site_store = site_store or SiteStore(self._settings.db_path)
        self._page_store = page_store or PageStore(self._settings.db_path)
        self._fetcher = fetcher or PageFetcher(self._settings.crawler)
        self._lemmatizer = lemmatizer or Lemmatizer(self._settings.preprocessing)

    def index_page(self, url: Optional[str]) -> IndexingOutcome:
        url = (url or "").strip()
        if not url:
            return IndexingOutcome.rejected("Page URL is not specified")

        site_config = self._settings.find_site(url)
        if site_config is None:
            logger.info("Rejected page outside configured sites: %s", url)
            return IndexingOutcome.rejected(OUTSIDE_SITES_MESSAGE)

        site = self._site_store.get_or_create(site_config.url, site_config.name)
        path = relative_path(site.url, url)

        previous = self._page_store.get(path, site.id)
        if previous is not None:
            self._page_store.delete(previous.id)
            logger.info("Removed previous version of %s%s", site.url, path)

        try:
            fetched = self._fetcher.fetch(url)
        except FetchError as exc:
            logger.warning("Could not fetch %s: %s", url, exc)
            return IndexingOutcome.rejected(f"Failed to fetch page: {exc}", HTTPStatus.BAD_GATEWAY)

        if not 200 <= fetched.status_code < 300:
            return IndexingOutcome.rejected(
                f"Page returned HTTP status {fetched.status_code}", fetched.status_code
            )
        if not fetched.html:
            return IndexingOutcome.rejected(
                "Page is not an HTML document", HTTPStatus.UNSUPPORTED_MEDIA_TYPE
            )

        page = self._page_store.insert(
            Page(site_id=site.id, path=path, code=fetched.status_code, content=fetched.html)
        )
        if page is None:
            # A running crawl stored the same path between our delete and insert
            return IndexingOutcome.rejected(
                "Page is being indexed by a running crawl", HTTPStatus.CONFLICT
            )

        text = self._lemmatizer.plain_text(fetched.html)
        written = self._merger.merge(page, self._lemmatizer.lemma_frequencies(text))
        logger.info("Indexed %s%s: %d lemmas", site.url, path, written)
        return IndexingOutcome.ok()
