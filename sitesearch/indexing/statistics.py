"""Index statistics: totals and per-site detail."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sitesearch.indexing.coordinator import IndexingCoordinator
from sitesearch.storage.lemma_store import LemmaStore
from sitesearch.storage.page_store import PageStore
from sitesearch.storage.site_store import SiteStore


def _epoch_seconds(iso_timestamp: Optional[str]) -> int:
    if not iso_timestamp:
        return 0
    try:
        return int(datetime.fromisoformat(iso_timestamp).timestamp())
    except ValueError:
        return 0


class StatisticsService:
    """Reads counts from storage and the indexing flag from the coordinator."""

    def __init__(
        self,
        coordinator: IndexingCoordinator,
        site_store: SiteStore,
        page_store: PageStore,
        lemma_store: LemmaStore,
    ) -> None:
        self._coordinator = coordinator
        self._site_store = site_store
        self._page_store = page_store
        self._lemma_store = lemma_store

    def statistics(self) -> dict:
        sites = self._site_store.list_all()
        detailed = [
            {
                "url": site.url,
                "name": site.name,
                "status": site.status.value,
                "statusTime": _epoch_seconds(site.status_time),
                "error": site.last_error,
                "pages": self._page_store.count(site.id),
                "lemmas": self._lemma_store.count(site.id),
            }
            for site in sites
        ]
        return {
            "total": {
                "sites": len(sites),
                "pages": self._page_store.count(),
                "lemmas": self._lemma_store.count(),
                "indexing": self._coordinator.is_indexing(),
            },
            "detailed": detailed,
        }
