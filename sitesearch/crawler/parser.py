"""HTML parsing for crawled pages."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

_FOLLOWED_SCHEMES = {"http", "https"}


@dataclass
class ParsedPage:
    """Outbound links of a page, absolute and de-duplicated, in document order."""

    links: list[str]


class PageParser:
    """Extracts outbound links from fetched HTML."""

    def parse(self, html: str, page_url: str) -> ParsedPage:
        soup = BeautifulSoup(html, "lxml")

        base = page_url
        base_node = soup.find("base", href=True)
        if base_node:
            base = urljoin(page_url, base_node["href"])

        links: list[str] = []
        seen: set[str] = set()
        for anchor in soup.select("a[href]"):
            href = (anchor.get("href") or "").strip()
            if not href:
                continue
            absolute = urljoin(base, href)
            if urlparse(absolute).scheme not in _FOLLOWED_SCHEMES:
                continue
            if absolute not in seen:
                seen.add(absolute)
                links.append(absolute)

        return ParsedPage(links=links)
