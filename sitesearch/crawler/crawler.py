"""
Recursive, concurrent crawl of one site.

Every URL is one task on a shared worker pool. A task fetches its page,
stores and indexes it, then submits one child task per eligible link.
Completion is tracked with a pending-task counter instead of blocking
joins, so pool threads never wait on each other and the Python call
stack stays flat however deep the link graph goes. The tree is finished
when the counter drops to zero, i.e. every task has finished after all
of its descendants were submitted.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, Future
from typing import TYPE_CHECKING, Callable, Optional

from sitesearch.config.settings import CrawlerSettings, get_settings
from sitesearch.crawler.http_client import FetchedPage, PageFetcher
from sitesearch.crawler.urls import UrlFilter, relative_path
from sitesearch.errors import FetchError
from sitesearch.preprocessing.lemmatizer import Lemmatizer
from sitesearch.storage.cache import ExpiringLRUCache
from sitesearch.storage.models import Page, Site, SiteStatus
from sitesearch.storage.page_store import PageStore
from sitesearch.storage.site_store import SiteStore

if TYPE_CHECKING:
    from sitesearch.indexing.merger import IndexMerger

logger = logging.getLogger(__name__)

STOPPED_MESSAGE = "Indexing stopped by user"


class CrawlRunState:
    """
    State shared by every crawl task of one run.

    `claim()` is first-writer-wins: exactly one task gets True for a key.
    """

    def __init__(self, page_cache: Optional[ExpiringLRUCache[bool]] = None) -> None:
        self._claimed: set[tuple[int, str]] = set()
        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self.page_cache: ExpiringLRUCache[bool] = page_cache if page_cache is not None else ExpiringLRUCache()

    def claim(self, site_id: int, path: str) -> bool:
        key = (site_id, path)
        with self._lock:
            if key in self._claimed:
                return False
            self._claimed.add(key)
            return True

    def is_claimed(self, site_id: int, path: str) -> bool:
        with self._lock:
            return (site_id, path) in self._claimed

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


class SiteCrawler:
    """Crawls one site on a shared executor and indexes every page it reaches."""

    def __init__(
        self,
        site: Site,
        executor: Executor,
        run_state: CrawlRunState,
        merger: IndexMerger,
        site_store: Optional[SiteStore] = None,
        page_store: Optional[PageStore] = None,
        fetcher: Optional[PageFetcher] = None,
        lemmatizer: Optional[Lemmatizer] = None,
        settings: Optional[CrawlerSettings] = None,
        sleep_func: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings or get_settings().crawler
        self._site = site
        self._executor = executor
        self._run = run_state
        self._merger = merger
        self._site_store = site_store or SiteStore()
        self._page_store = page_store or PageStore()
        self._fetcher = fetcher or PageFetcher(self._settings)
        self._lemmatizer = lemmatizer or Lemmatizer()
        self._sleep = sleep_func
        self._filter = UrlFilter(site.url, self._settings.excluded_extensions)

        self._pending = 0
        self._pending_lock = threading.Lock()
        self._finished = threading.Event()
        self._stats_lock = threading.Lock()
        self._pages_indexed = 0
        self._fetch_errors = 0

    @property
    def site(self) -> Site:
        return self._site

    @property
    def finished(self) -> bool:
        return self._finished.is_set()

    def crawl(self, start_url: Optional[str] = None) -> None:
        """Submit the root task and return; use `wait()` to block until done."""
        url = start_url or self._site.url
        logger.info("Crawling %s from %s", self._site.name or self._site.url, url)
        self._submit(url)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until every task of the tree has finished. Returns False on timeout."""
        return self._finished.wait(timeout)

    def summary(self) -> dict:
        with self._stats_lock:
            return {
                "site": self._site.url,
                "pages_indexed": self._pages_indexed,
                "fetch_errors": self._fetch_errors,
            }

    # ----- Task bookkeeping -----

    def _submit(self, url: str) -> None:
        with self._pending_lock:
            self._pending += 1
        try:
            future = self._executor.submit(self._visit, url)
        except RuntimeError:
            # Pool already shut down by a stop request
            self._task_done(None)
            return
        future.add_done_callback(self._task_done)

    def _task_done(self, future: Optional[Future]) -> None:
        if future is not None and not future.cancelled() and future.exception() is not None:
            logger.error("Crawl task for %s raised", self._site.url, exc_info=future.exception())
        with self._pending_lock:
            self._pending -= 1
            done = self._pending == 0
        if done:
            logger.info("Crawl of %s finished: %s", self._site.url, self.summary())
            self._finished.set()

    # ----- One URL -----

    def _visit(self, url: str) -> None:
        if self._run.cancelled:
            self._fail(STOPPED_MESSAGE)
            return

        path = relative_path(self._site.url, url)
        if not self._run.claim(self._site.id, path):
            return
        if self._already_stored(path):
            return

        try:
            fetched = self._fetcher.fetch(url)
        except FetchError as exc:
            logger.warning("Fetch failed for %s: %s", url, exc)
            with self._stats_lock:
                self._fetch_errors += 1
            self._fail(str(exc))
            self._sleep(self._settings.politeness_delay)
            return

        try:
            if fetched.is_indexable and self._store_and_index(path, fetched):
                for link in fetched.links:
                    if self._filter.is_allowed(link) and not self._run.is_claimed(
                        self._site.id, relative_path(self._site.url, link)
                    ):
                        self._submit(link)
        except Exception as exc:
            logger.exception("Unexpected error while indexing %s", url)
            self._fail(f"{type(exc).__name__}: {exc}")
        finally:
            self._sleep(self._settings.politeness_delay)

    def _already_stored(self, path: str) -> bool:
        key = (self._site.id, path)
        if self._run.page_cache.get(key):
            return True
        if self._page_store.exists(path, self._site.id):
            self._run.page_cache.put(key, True)
            return True
        return False

    def _store_and_index(self, path: str, fetched: FetchedPage) -> bool:
        """Persist the page and merge its lemmas. False if another task stored it first."""
        page = self._page_store.insert(
            Page(site_id=self._site.id, path=path, code=fetched.status_code, content=fetched.html)
        )
        if page is None:
            logger.debug("Page %s of %s stored by another task", path, self._site.url)
            return False
        self._run.page_cache.put((self._site.id, path), True)

        text = self._lemmatizer.plain_text(fetched.html)
        self._merger.merge(page, self._lemmatizer.lemma_frequencies(text))
        with self._stats_lock:
            self._pages_indexed += 1
        return True

    def _fail(self, error: str) -> None:
        self._site_store.set_status(self._site.id, SiteStatus.FAILED, error)
