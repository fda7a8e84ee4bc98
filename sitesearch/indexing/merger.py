"""Merges one page's lemma counts into the site's lemma dictionary and postings."""

from __future__ import annotations

import logging
import threading
from typing import Hashable, Optional

from sitesearch.config.settings import get_settings
from sitesearch.storage.cache import ExpiringLRUCache
from sitesearch.storage.lemma_store import LemmaStore
from sitesearch.storage.models import Lemma, Page, Posting
from sitesearch.storage.posting_store import PostingStore

logger = logging.getLogger(__name__)


class StripedLock:
    """
    A fixed pool of locks addressed by key hash.

    Two different keys may share a stripe; the same key always maps to
    the same lock.
    """

    def __init__(self, stripes: int = 64) -> None:
        self._locks = [threading.Lock() for _ in range(stripes)]

    def for_key(self, key: Hashable) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]


class IndexMerger:
    """
    Applies `merge(page, lemma_frequencies)` for pages crawled concurrently.

    For every lemma of the page the site-scoped Lemma row is fetched or
    created (through the lemma cache) and its frequency raised by one,
    under a lock for the (site, text) key. Then one Posting per lemma is
    written with the page-local occurrence count as weight.
    """

    def __init__(
        self,
        lemma_store: Optional[LemmaStore] = None,
        posting_store: Optional[PostingStore] = None,
        lemma_cache: Optional[ExpiringLRUCache[Lemma]] = None,
        locks: Optional[StripedLock] = None,
    ) -> None:
        self._lemma_store = lemma_store or LemmaStore()
        self._posting_store = posting_store or PostingStore()
        if lemma_cache is None:
            cache_settings = get_settings().cache
            lemma_cache = ExpiringLRUCache(
                max_size=cache_settings.lemma_cache_size,
                ttl=cache_settings.lemma_cache_ttl,
            )
        self._lemma_cache = lemma_cache
        self._locks = locks or StripedLock()

    @property
    def lemma_cache(self) -> ExpiringLRUCache[Lemma]:
        return self._lemma_cache

    def merge(self, page: Page, lemma_frequencies: dict[str, int]) -> int:
        """
        Index one page. The page must already be persisted (id set) and
        must not have postings yet.

        Returns the number of postings written.
        """
        if page.id is None:
            raise ValueError("Page must be saved before it can be merged")

        postings: list[Posting] = []
        for text in sorted(lemma_frequencies):
            count = lemma_frequencies[text]
            if count <= 0:
                continue
            lemma = self._count_page(text, page.site_id)
            postings.append(Posting(page_id=page.id, lemma_id=lemma.id, weight=float(count)))

        written = self._posting_store.insert_many(postings)
        logger.debug("Merged page #%d (%s): %d lemmas", page.id, page.path, written)
        return written

    def _count_page(self, text: str, site_id: int) -> Lemma:
        """Raise the page frequency of (site, text) by one and return the lemma row."""
        key = (site_id, text)
        with self._locks.for_key(key):
            cached = self._lemma_cache.get(key)
            if cached is not None and self._lemma_store.increment(cached.id):
                cached.frequency += 1
                return cached

            # Miss, or the cached row was deleted underneath us
            lemma = self._lemma_store.upsert_increment(text, site_id)
            self._lemma_cache.put(key, lemma)
            return lemma
