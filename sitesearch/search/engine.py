"""Ranked free-text search over the lemma index."""

from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

from sitesearch.config.settings import Settings, get_settings, normalize_site_url
from sitesearch.errors import QueryValidationError
from sitesearch.preprocessing.lemmatizer import Lemmatizer
from sitesearch.search.snippets import SnippetBuilder
from sitesearch.storage.cache import ExpiringLRUCache
from sitesearch.storage.lemma_store import LemmaStore
from sitesearch.storage.models import Page, Site
from sitesearch.storage.page_store import PageStore
from sitesearch.storage.posting_store import PostingStore
from sitesearch.storage.site_store import SiteStore

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """One ranked page with its display fields."""

    site: str
    site_name: str
    uri: str
    title: str
    snippet: str
    relevance: float

    def as_dict(self) -> dict:
        return {
            "site": self.site,
            "siteName": self.site_name,
            "uri": self.uri,
            "title": self.title,
            "snippet": self.snippet,
            "relevance": self.relevance,
        }


@dataclass
class SearchPage:
    """One page of a ranked result list; `total` counts the whole list."""

    total: int
    results: list[SearchResult] = field(default_factory=list)


class SearchEngine:
    """
    Answers `search(query, site, offset, limit)`.

    A page qualifies only if it holds every lemma of the query. Its raw
    relevance is the sum of its posting weights for those lemmas,
    normalized by the best raw relevance in the same result list.
    Full ranked lists are cached per (site, query) with a sliding TTL;
    re-indexing does not invalidate them.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        lemmatizer: Optional[Lemmatizer] = None,
        site_store: Optional[SiteStore] = None,
        page_store: Optional[PageStore] = None,
        lemma_store: Optional[LemmaStore] = None,
        posting_store: Optional[PostingStore] = None,
        cache: Optional[ExpiringLRUCache[list[SearchResult]]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        db_path = self._settings.db_path
        self._lemmatizer = lemmatizer or Lemmatizer(self._settings.preprocessing)
        self._site_store = site_store or SiteStore(db_path)
        self._page_store = page_store or PageStore(db_path)
        self._lemma_store = lemma_store or LemmaStore(db_path)
        self._posting_store = posting_store or PostingStore(db_path)
        if cache is None:
            cache = ExpiringLRUCache(
                max_size=self._settings.cache.search_cache_size,
                ttl=self._settings.cache.search_cache_ttl,
            )
        self._cache = cache
        self._snippets = SnippetBuilder(
            self._lemmatizer,
            radius=self._settings.search.snippet_radius,
            fallback_length=self._settings.search.fallback_snippet_length,
        )

    def search(
        self,
        query: Optional[str],
        site: Optional[str] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> SearchPage:
        """
        Return one page of ranked results.

        Raises:
            QueryValidationError: empty or oversized query, negative offset,
                non-positive limit.
        """
        query = (query or "").strip()
        if not query:
            raise QueryValidationError("Empty search query")
        if len(query) > self._settings.search.max_query_length:
            raise QueryValidationError(
                f"Search query is longer than {self._settings.search.max_query_length} characters"
            )
        if offset < 0:
            raise QueryValidationError("Offset must not be negative")
        limit = self._settings.search.default_limit if limit is None else limit
        if limit < 1:
            raise QueryValidationError("Limit must be positive")
        limit = min(limit, self._settings.search.max_limit)

        site_url = normalize_site_url(site) if site else None
        key = (site_url or "all", query)
        ranked = self._cache.get_or_compute(key, lambda: self._rank(query, site_url))

        logger.info(
            "Search query=%r site=%s offset=%d limit=%d -> %d results",
            query, site_url or "all", offset, limit, len(ranked),
        )
        return SearchPage(total=len(ranked), results=ranked[offset: offset + limit])

    # ----- Ranking -----

    def _rank(self, query: str, site_url: Optional[str]) -> list[SearchResult]:
        site_id: Optional[int] = None
        if site_url:
            scope = self._site_store.get_by_url(site_url)
            if scope is None:
                return []
            site_id = scope.id

        lemmas = self._lemmatizer.lemma_set(query)
        if not lemmas:
            return []
        ordered = self.order_by_rarity(lemmas, site_id)

        pages = self._page_store.find_containing_all(lemmas, site_id=site_id)
        if not pages:
            return []

        raw: dict[int, float] = defaultdict(float)
        for posting in self._posting_store.get_for_pages([p.id for p in pages], lemmas):
            raw[posting.page_id] += posting.weight

        best = max(raw.get(p.id, 0.0) for p in pages)
        scored = [(page, raw.get(page.id, 0.0) / best if best > 0 else 0.0) for page in pages]
        # Stable: equal relevance keeps encounter order
        scored.sort(key=lambda item: item[1], reverse=True)

        sites = {s.id: s for s in self._site_store.get_by_ids(sorted({p.site_id for p in pages}))}

        def materialize(item: tuple[Page, float]) -> SearchResult:
            page, relevance = item
            return self._to_result(page, sites[page.site_id], relevance, ordered, lemmas)

        with ThreadPoolExecutor(
            max_workers=self._settings.search.snippet_workers,
            thread_name_prefix="snippet",
        ) as pool:
            return list(pool.map(materialize, scored))

    def order_by_rarity(self, lemmas: set[str], site_id: Optional[int] = None) -> list[str]:
        """Query lemmas sorted rarest first by page frequency, then by number of sites."""
        frequencies = self._lemma_store.corpus_frequencies(lemmas, site_id=site_id)
        return sorted(
            lemmas,
            key=lambda text: (frequencies[text], self._lemma_store.count_sites_with(text), text),
        )

    def _to_result(
        self,
        page: Page,
        site: Site,
        relevance: float,
        ordered_lemmas: list[str],
        query_lemmas: set[str],
    ) -> SearchResult:
        text = self._lemmatizer.plain_text(page.content)
        return SearchResult(
            site=site.url,
            site_name=site.name,
            uri=page.path,
            title=self._lemmatizer.title_of(page.content),
            snippet=self._snippets.build(text, ordered_lemmas, query_lemmas),
            relevance=relevance,
        )
