"""
Central configuration for the SiteSearch system.

All tunables live here. Nothing is hardcoded in module code.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from functools import lru_cache

logger = logging.getLogger(__name__)


def _project_root() -> Path:
    """Walk up from this file to find the project root (where pyproject.toml lives)."""
    current = Path(__file__).resolve().parent
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    # Fallback: two levels up from config/settings.py
    return Path(__file__).resolve().parent.parent.parent


def normalize_site_url(url: str) -> str:
    """Strip surrounding whitespace and trailing slashes from a site root URL."""
    return url.strip().rstrip("/")


@dataclass(frozen=True)
class SiteConfig:
    """One site to crawl: root URL and display name."""

    url: str
    name: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "url", normalize_site_url(self.url))


@dataclass(frozen=True)
class CrawlerSettings:
    """Settings for the web crawler."""

    # Sent as User-Agent with every request
    user_agent: str = "SiteSearchBot/0.1 (+https://example.org/bot)"

    # Sent as Referer with every request
    referrer: str = "https://www.google.com"

    # Request timeout (seconds)
    request_timeout: float = 10.0

    # Pause after each fetch attempt, per worker (seconds)
    politeness_delay: float = 0.1

    # Size of the crawl worker pool shared by all sites in a run
    max_workers: int = field(default_factory=lambda: (os.cpu_count() or 2) * 2)

    # Links ending in one of these extensions are never followed
    excluded_extensions: tuple[str, ...] = (
        "pdf", "jpg", "jpeg", "png", "gif", "webp", "svg", "zip", "rar",
        "gz", "tar", "doc", "docx", "xls", "xlsx", "ppt", "pptx",
        "mp3", "mp4", "avi",
    )


@dataclass(frozen=True)
class StorageSettings:
    """Settings for SQLite storage."""

    # Path to the SQLite database file (relative to project root resolved at runtime)
    db_name: str = "sitesearch.db"

    # SQLite journal mode
    journal_mode: str = "WAL"

    # SQLite busy timeout (milliseconds): how long to wait for a locked DB
    busy_timeout_ms: int = 5000


@dataclass(frozen=True)
class PreprocessingSettings:
    """Settings for the lemmatizer."""

    # Minimum token length to keep after tokenization
    min_token_length: int = 2

    # Maximum token length to keep (avoids garbage tokens)
    max_token_length: int = 50


@dataclass(frozen=True)
class CacheSettings:
    """Capacity and sliding TTL of the in-memory caches."""

    page_cache_size: int = 1000
    page_cache_ttl: float = 600.0

    lemma_cache_size: int = 10_000
    lemma_cache_ttl: float = 600.0

    search_cache_size: int = 1000
    search_cache_ttl: float = 600.0


@dataclass(frozen=True)
class SearchSettings:
    """Settings for the query/search engine."""

    # Characters kept on each side of the first matched lemma in a snippet
    snippet_radius: int = 150

    # Snippet length when no lemma occurs literally in the page text
    fallback_snippet_length: int = 300

    # Default page size
    default_limit: int = 10

    # Maximum allowed page size
    max_limit: int = 100

    # Maximum query length (characters)
    max_query_length: int = 500

    # Threads used to build titles and snippets for one result list
    snippet_workers: int = 4


@dataclass
class Settings:
    """
    Top-level settings container. Aggregates all subsystem settings.

    Usage:
        settings = get_settings()
        print(settings.crawler.user_agent)
        print([site.url for site in settings.sites])
    """

    project_root: Path = field(default_factory=_project_root)
    sites: tuple[SiteConfig, ...] = ()
    crawler: CrawlerSettings = field(default_factory=CrawlerSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    preprocessing: PreprocessingSettings = field(default_factory=PreprocessingSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    search: SearchSettings = field(default_factory=SearchSettings)

    @property
    def data_dir(self) -> Path:
        """Root directory for all runtime data (DB, logs)."""
        return self.project_root / "data"

    @property
    def db_path(self) -> Path:
        """Full path to the SQLite database file."""
        return self.data_dir / "db" / self.storage.db_name

    @property
    def logs_dir(self) -> Path:
        """Root directory for log files."""
        return self.data_dir / "logs"

    @property
    def sites_file(self) -> Path:
        """JSON file listing the sites to crawl."""
        return self.project_root / "sites.json"

    def find_site(self, url: str) -> SiteConfig | None:
        """Return the configured site whose root URL prefixes *url*, if any."""
        for site in self.sites:
            if url == site.url or url.startswith((site.url + "/", site.url + "?")):
                return site
        return None

    def ensure_dirs(self) -> None:
        """Create all required data directories if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)


def load_sites(path: Path) -> tuple[SiteConfig, ...]:
    """
    Read the site list from a JSON file.

    The file holds a list of objects with "url" and "name" keys.
    """
    entries = json.loads(path.read_text(encoding="utf-8"))
    sites = tuple(SiteConfig(url=entry["url"], name=entry.get("name") or entry["url"]) for entry in entries)
    logger.info("Loaded %d site(s) from %s", len(sites), path)
    return sites


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Returns the singleton Settings instance.

    Call this instead of constructing Settings() directly so the entire
    application shares one config object.
    """
    settings = Settings()
    if settings.sites_file.exists():
        settings.sites = load_sites(settings.sites_file)
    settings.ensure_dirs()
    return settings
