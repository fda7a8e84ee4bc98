"""HTTP transport used by the crawler and the single-page indexer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import requests

from sitesearch.config.settings import CrawlerSettings, get_settings
from sitesearch.crawler.parser import PageParser
from sitesearch.errors import FetchError

logger = logging.getLogger(__name__)

_HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


@dataclass
class FetchedPage:
    """Result of one GET: final URL, status, body and outbound links."""

    url: str
    status_code: int
    html: str = ""
    links: list[str] = field(default_factory=list)

    @property
    def is_indexable(self) -> bool:
        """4xx/5xx responses and non-HTML bodies are skipped, not treated as errors."""
        return not (400 <= self.status_code < 600) and bool(self.html)


class PageFetcher:
    """Fetches one URL with the configured identity headers and timeout. No retries."""

    def __init__(
        self,
        settings: Optional[CrawlerSettings] = None,
        parser: Optional[PageParser] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._settings = settings or get_settings().crawler
        self._parser = parser or PageParser()
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "User-Agent": self._settings.user_agent,
                "Referer": self._settings.referrer,
            }
        )

    def fetch(self, url: str) -> FetchedPage:
        """
        GET *url* and parse its links.

        Raises:
            FetchError: on timeout, connection failure or an unusable URL.
        """
        try:
            response = self._session.get(url, timeout=self._settings.request_timeout)
        except requests.RequestException as exc:
            raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc

        status = response.status_code
        content_type = response.headers.get("Content-Type", "text/html").lower()

        if 400 <= status < 600:
            logger.info("Not indexing %s: HTTP %d", url, status)
            return FetchedPage(url=response.url or url, status_code=status)

        if not content_type.startswith(_HTML_CONTENT_TYPES):
            logger.debug("Not indexing %s: content type %s", url, content_type)
            return FetchedPage(url=response.url or url, status_code=status)

        final_url = response.url or url
        html = response.text
        links = self._parser.parse(html, final_url).links
        return FetchedPage(url=final_url, status_code=status, html=html, links=links)
