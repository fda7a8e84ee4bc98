"""
Crawl lifecycle: start, stop and natural completion of an indexing run.

The coordinator is an explicit Idle/Running state machine behind one
gate lock, so start and stop requests never interleave. A run owns a
fresh worker pool; every configured site gets its own crawl tree on it.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import Callable, Optional

from sitesearch.config.settings import Settings, get_settings
from sitesearch.crawler.crawler import STOPPED_MESSAGE, CrawlRunState, SiteCrawler
from sitesearch.crawler.http_client import PageFetcher
from sitesearch.indexing.merger import IndexMerger
from sitesearch.indexing.outcome import IndexingOutcome
from sitesearch.preprocessing.lemmatizer import Lemmatizer
from sitesearch.storage.cache import ExpiringLRUCache
from sitesearch.storage.lemma_store import LemmaStore
from sitesearch.storage.models import SiteStatus
from sitesearch.storage.page_store import PageStore
from sitesearch.storage.posting_store import PostingStore
from sitesearch.storage.site_store import SiteStore

logger = logging.getLogger(__name__)

STILL_STOPPING_MESSAGE = "The previous indexing run is still stopping"


class IndexingState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class _Run:
    number: int
    executor: ThreadPoolExecutor
    state: CrawlRunState
    crawlers: list[SiteCrawler] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)
    done: threading.Event = field(default_factory=threading.Event)


class IndexingCoordinator:
    """Owns the indexing run: one at a time, started and stopped on request."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        site_store: Optional[SiteStore] = None,
        page_store: Optional[PageStore] = None,
        lemma_store: Optional[LemmaStore] = None,
        merger: Optional[IndexMerger] = None,
        fetcher: Optional[PageFetcher] = None,
        lemmatizer: Optional[Lemmatizer] = None,
        page_cache: Optional[ExpiringLRUCache[bool]] = None,
        sleep_func: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings or get_settings()
        db_path = self._settings.db_path
        self._site_store = site_store or SiteStore(db_path)
        self._page_store = page_store or PageStore(db_path)
        self._lemma_store = lemma_store or LemmaStore(db_path)
        self._merger = merger or IndexMerger(
            lemma_store=self._lemma_store,
            posting_store=PostingStore(db_path),
            lemma_cache=ExpiringLRUCache(
                max_size=self._settings.cache.lemma_cache_size,
                ttl=self._settings.cache.lemma_cache_ttl,
            ),
        )
        self._fetcher = fetcher or PageFetcher(self._settings.crawler)
        self._lemmatizer = lemmatizer or Lemmatizer(self._settings.preprocessing)
        if page_cache is None:
            page_cache = ExpiringLRUCache(
                max_size=self._settings.cache.page_cache_size,
                ttl=self._settings.cache.page_cache_ttl,
            )
        self._page_cache = page_cache
        self._sleep = sleep_func

        self._gate = threading.Lock()
        self._state = IndexingState.IDLE
        self._run: Optional[_Run] = None
        self._last_run: Optional[_Run] = None
        self._run_counter = 0

    # ----- Queries -----

    def is_indexing(self) -> bool:
        return self._state is IndexingState.RUNNING

    @property
    def state(self) -> IndexingState:
        return self._state

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the current (or most recent) run's tasks have all
        finished. Returns False on timeout.
        """
        run = self._last_run
        if run is None:
            return True
        return run.done.wait(timeout)

    # ----- Transitions -----

    def start_indexing(self) -> IndexingOutcome:
        """Launch a run over every configured site and return without waiting."""
        with self._gate:
            if self._state is IndexingState.RUNNING:
                return IndexingOutcome.rejected("Indexing is already running")
            if self._last_run is not None and not self._last_run.done.is_set():
                # The stopped run still has tasks in flight on its pool
                return IndexingOutcome.rejected(STILL_STOPPING_MESSAGE, HTTPStatus.CONFLICT)
            if not self._settings.sites:
                return IndexingOutcome.rejected("No sites are configured for indexing")

            self._page_cache.clear()
            self._merger.lemma_cache.clear()

            self._run_counter += 1
            run = _Run(
                number=self._run_counter,
                executor=ThreadPoolExecutor(
                    max_workers=self._settings.crawler.max_workers,
                    thread_name_prefix=f"crawl-{self._run_counter}",
                ),
                state=CrawlRunState(page_cache=self._page_cache),
            )

            for site_config in self._settings.sites:
                site = self._site_store.upsert_indexing(site_config.url, site_config.name)
                # A run rebuilds each site from scratch
                self._page_store.delete_by_site(site.id)
                self._lemma_store.delete_by_site(site.id)
                run.crawlers.append(
                    SiteCrawler(
                        site=site,
                        executor=run.executor,
                        run_state=run.state,
                        merger=self._merger,
                        site_store=self._site_store,
                        page_store=self._page_store,
                        fetcher=self._fetcher,
                        lemmatizer=self._lemmatizer,
                        settings=self._settings.crawler,
                        sleep_func=self._sleep,
                    )
                )

            self._run = run
            self._last_run = run
            self._state = IndexingState.RUNNING

            for crawler in run.crawlers:
                crawler.crawl()

            threading.Thread(
                target=self._supervise,
                args=(run,),
                name=f"crawl-{run.number}-supervisor",
                daemon=True,
            ).start()

        logger.info("Indexing run #%d started for %d site(s)", run.number, len(run.crawlers))
        return IndexingOutcome.ok()

    def stop_indexing(self) -> IndexingOutcome:
        """Cancel the running run; sites still INDEXING become FAILED."""
        with self._gate:
            if self._state is not IndexingState.RUNNING or self._run is None:
                return IndexingOutcome.rejected("Indexing is not running")

            run = self._run
            self._run = None
            self._state = IndexingState.IDLE

            run.state.cancel()
            run.executor.shutdown(wait=False, cancel_futures=True)
            failed = self._site_store.set_status_where(
                SiteStatus.INDEXING, SiteStatus.FAILED, STOPPED_MESSAGE
            )

        logger.info("Indexing run #%d stopped by request; %d site(s) marked FAILED", run.number, failed)
        return IndexingOutcome.ok()

    def shutdown(self, timeout: Optional[float] = 30.0) -> None:
        """Stop any running run and wait for its in-flight tasks."""
        if self.is_indexing():
            self.stop_indexing()
        self.wait(timeout)

    # ----- Completion -----

    def _supervise(self, run: _Run) -> None:
        try:
            for crawler in run.crawlers:
                crawler.wait()
            self._finish(run)
        except Exception:
            logger.exception("Supervisor of run #%d failed", run.number)
            with self._gate:
                if self._run is run:
                    self._run = None
                    self._state = IndexingState.IDLE
                run.done.set()
        finally:
            run.done.set()

    def _finish(self, run: _Run) -> None:
        with self._gate:
            if self._run is not run:
                # Stopped; stop_indexing already settled site statuses
                return

            for crawler in run.crawlers:
                site = self._site_store.get_by_id(crawler.site.id)
                if site is not None and site.status is SiteStatus.INDEXING:
                    self._site_store.set_status(site.id, SiteStatus.INDEXED)

            run.executor.shutdown(wait=False)
            self._run = None
            self._state = IndexingState.IDLE
            run.done.set()

        elapsed = time.monotonic() - run.started_at
        minutes, seconds = divmod(int(elapsed), 60)
        logger.info("Indexing run #%d completed in %dm %ds", run.number, minutes, seconds)

