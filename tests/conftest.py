"""
Shared test fixtures for the SiteSearch test suite.

Provides an isolated SQLite database per test via a temporary file.
Every test gets a clean database with the schema already initialized,
plus hand-written fakes for the HTTP transport.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

import pytest

from sitesearch.config.settings import (
    CacheSettings,
    CrawlerSettings,
    PreprocessingSettings,
    SearchSettings,
    Settings,
    SiteConfig,
)
from sitesearch.crawler.http_client import FetchedPage
from sitesearch.crawler.parser import PageParser
from sitesearch.errors import FetchError
from sitesearch.indexing.merger import IndexMerger
from sitesearch.preprocessing.lemmatizer import Lemmatizer
from sitesearch.storage.cache import ExpiringLRUCache
from sitesearch.storage.connection import close_connection, get_connection
from sitesearch.storage.lemma_store import LemmaStore
from sitesearch.storage.models import Page, Site, SiteStatus
from sitesearch.storage.page_store import PageStore
from sitesearch.storage.posting_store import PostingStore
from sitesearch.storage.schema import initialize_database
from sitesearch.storage.site_store import SiteStore

SITE_URL = "https://example.com"
OTHER_SITE_URL = "https://other.org"


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """
    Provide a temporary SQLite database path.

    Uses pytest's tmp_path fixture for automatic cleanup.
    """
    return tmp_path / "test_sitesearch.db"


@pytest.fixture
def db(db_path: Path):
    """
    Provide an initialized database connection.

    Creates all tables, yields the connection, then cleans up.
    """
    initialize_database(db_path)
    conn = get_connection(db_path)
    yield conn
    close_connection(db_path)


@pytest.fixture
def site_store(db, db_path: Path) -> SiteStore:
    return SiteStore(db_path)


@pytest.fixture
def page_store(db, db_path: Path) -> PageStore:
    return PageStore(db_path)


@pytest.fixture
def lemma_store(db, db_path: Path) -> LemmaStore:
    return LemmaStore(db_path)


@pytest.fixture
def posting_store(db, db_path: Path) -> PostingStore:
    return PostingStore(db_path)


@pytest.fixture
def lemmatizer() -> Lemmatizer:
    return Lemmatizer(PreprocessingSettings())


@pytest.fixture
def merger(lemma_store: LemmaStore, posting_store: PostingStore) -> IndexMerger:
    return IndexMerger(
        lemma_store=lemma_store,
        posting_store=posting_store,
        lemma_cache=ExpiringLRUCache(max_size=100, ttl=60.0),
    )


@pytest.fixture
def settings(tmp_path: Path):
    """
    Settings rooted in a temporary directory with two configured sites
    and no politeness delay.
    """
    settings = make_settings(tmp_path)
    yield settings
    close_connection(settings.db_path)


def make_settings(project_root: Path, sites: Optional[tuple[SiteConfig, ...]] = None) -> Settings:
    """Create test Settings. The database lives under *project_root*."""
    if sites is None:
        sites = (
            SiteConfig(url=SITE_URL, name="Example"),
            SiteConfig(url=OTHER_SITE_URL, name="Other"),
        )
    return Settings(
        project_root=project_root,
        sites=sites,
        crawler=CrawlerSettings(politeness_delay=0.0, max_workers=4),
        cache=CacheSettings(),
        search=SearchSettings(snippet_workers=2),
    )


# ---------------------------------------------------------------------------
# Sample data factories
# ---------------------------------------------------------------------------


def make_site(
    url: str = SITE_URL,
    name: str = "Example",
    status: SiteStatus = SiteStatus.INDEXED,
    **kwargs,
) -> Site:
    """Create a Site with sensible defaults. Override any field via kwargs."""
    return Site(url=url, name=name, status=status, **kwargs)


def make_html(title: str = "Test Page", body: str = "", links: tuple[str, ...] = ()) -> str:
    """Create a small HTML document with a title, body text and anchors."""
    anchors = "".join(f'<a href="{href}">link</a>' for href in links)
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><p>{body}</p>{anchors}</body></html>"
    )


def make_page(
    site_id: int,
    path: str = "/",
    content: Optional[str] = None,
    **kwargs,
) -> Page:
    """Create a Page with sensible defaults."""
    if content is None:
        content = make_html(body="Cats and dogs.")
    return Page(site_id=site_id, path=path, content=content, **kwargs)


# ---------------------------------------------------------------------------
# Transport fakes
# ---------------------------------------------------------------------------


class FakeFetcher:
    """
    Serves pages from an in-memory map of URL -> HTML.

    URLs not in the map answer 404. URLs in `broken` raise FetchError.
    Links are extracted with the real PageParser.
    """

    def __init__(
        self,
        pages: dict[str, str],
        broken: tuple[str, ...] = (),
        status_codes: Optional[dict[str, int]] = None,
    ) -> None:
        self._pages = pages
        self._broken = set(broken)
        self._status_codes = status_codes or {}
        self._parser = PageParser()
        self._lock = threading.Lock()
        self.requested: list[str] = []

    def fetch(self, url: str) -> FetchedPage:
        with self._lock:
            self.requested.append(url)
        if url in self._broken:
            raise FetchError(url, "ConnectionError: connection refused")
        if url not in self._pages:
            return FetchedPage(url=url, status_code=404)
        html = self._pages[url]
        return FetchedPage(
            url=url,
            status_code=self._status_codes.get(url, 200),
            html=html,
            links=self._parser.parse(html, url).links,
        )


class BlockingFetcher(FakeFetcher):
    """A FakeFetcher whose every fetch waits until `release` is set."""

    def __init__(self, pages: dict[str, str]) -> None:
        super().__init__(pages)
        self.release = threading.Event()
        self.entered = threading.Event()

    def fetch(self, url: str) -> FetchedPage:
        self.entered.set()
        self.release.wait(5.0)
        return super().fetch(url)
