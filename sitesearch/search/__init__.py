"""Ranked search over the lemma index."""

from sitesearch.search.engine import SearchEngine, SearchPage, SearchResult
from sitesearch.search.snippets import SnippetBuilder

__all__ = [
    "SearchEngine",
    "SearchPage",
    "SearchResult",
    "SnippetBuilder",
]
