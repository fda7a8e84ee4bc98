"""Index maintenance: merging, crawl lifecycle, single-page re-indexing."""

from sitesearch.indexing.merger import IndexMerger, StripedLock
from sitesearch.indexing.outcome import IndexingOutcome
from sitesearch.indexing.coordinator import IndexingCoordinator, IndexingState
from sitesearch.indexing.page_indexer import PageIndexer
from sitesearch.indexing.statistics import StatisticsService

__all__ = [
    "IndexMerger",
    "StripedLock",
    "IndexingOutcome",
    "IndexingCoordinator",
    "IndexingState",
    "PageIndexer",
    "StatisticsService",
]
