from sitesearch.storage.models import Site, SiteStatus, Page, Lemma, Posting
from sitesearch.storage.connection import get_connection, close_connection
from sitesearch.storage.schema import initialize_database
from sitesearch.storage.site_store import SiteStore
from sitesearch.storage.page_store import PageStore
from sitesearch.storage.lemma_store import LemmaStore
from sitesearch.storage.posting_store import PostingStore
from sitesearch.storage.cache import ExpiringLRUCache

__all__ = [
    "Site",
    "SiteStatus",
    "Page",
    "Lemma",
    "Posting",
    "get_connection",
    "close_connection",
    "initialize_database",
    "SiteStore",
    "PageStore",
    "LemmaStore",
    "PostingStore",
    "ExpiringLRUCache",
]
