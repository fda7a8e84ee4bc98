"""URL admission rules for the site crawler."""

from __future__ import annotations

from urllib.parse import urlparse


def relative_path(site_url: str, url: str) -> str:
    """
    Path of *url* relative to the site root, always starting with "/".

    >>> relative_path("https://example.com", "https://example.com/docs/a.html")
    '/docs/a.html'
    >>> relative_path("https://example.com", "https://example.com")
    '/'
    """
    path = url[len(site_url):] if url.startswith(site_url) else urlparse(url).path
    if not path.startswith("/"):
        path = "/" + path
    return path


class UrlFilter:
    """Decides whether a discovered link belongs to the crawl of one site."""

    def __init__(self, site_url: str, excluded_extensions: tuple[str, ...]) -> None:
        self._site_url = site_url
        self._suffixes = tuple("." + ext.lower().lstrip(".") for ext in excluded_extensions)

    def is_allowed(self, url: str) -> bool:
        """
        A link is followed only if it is under the site root, carries no
        fragment, and does not point at a binary file.
        """
        if not url.startswith(self._site_url):
            return False
        rest = url[len(self._site_url):]
        if rest and not rest.startswith(("/", "?")):
            # https://example.com.evil.org shares the prefix but is another host
            return False
        if "#" in url:
            return False
        path = urlparse(url).path.lower()
        return not path.endswith(self._suffixes)
