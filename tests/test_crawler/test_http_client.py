"""Tests for the requests-based page fetcher."""

from unittest.mock import MagicMock

import pytest
import requests

from sitesearch.config.settings import CrawlerSettings
from sitesearch.crawler.http_client import FetchedPage, PageFetcher
from sitesearch.errors import FetchError


def _response(status: int = 200, text: str = "", content_type: str = "text/html; charset=utf-8", url: str = ""):
    response = MagicMock()
    response.status_code = status
    response.text = text
    response.headers = {"Content-Type": content_type}
    response.url = url
    return response


def _fetcher(response=None, error=None) -> tuple[PageFetcher, MagicMock]:
    session = MagicMock()
    session.headers = {}
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = response
    settings = CrawlerSettings(user_agent="TestBot/1.0", referrer="https://ref.example", request_timeout=3.0)
    return PageFetcher(settings, session=session), session


def test_sends_identity_headers_and_timeout():
    fetcher, session = _fetcher(_response(text="<html></html>", url="https://example.com/"))

    fetcher.fetch("https://example.com/")

    assert session.headers["User-Agent"] == "TestBot/1.0"
    assert session.headers["Referer"] == "https://ref.example"
    session.get.assert_called_once_with("https://example.com/", timeout=3.0)


def test_html_page_is_parsed_for_links():
    html = '<html><body><a href="/next">n</a></body></html>'
    fetcher, _ = _fetcher(_response(text=html, url="https://example.com/start"))

    page = fetcher.fetch("https://example.com/start")

    assert page.status_code == 200
    assert page.html == html
    assert page.links == ["https://example.com/next"]
    assert page.is_indexable


@pytest.mark.parametrize("status", [404, 500, 503])
def test_error_status_is_not_indexable(status):
    fetcher, _ = _fetcher(_response(status=status, text="<html>oops</html>", url="https://example.com/x"))

    page = fetcher.fetch("https://example.com/x")

    assert page.status_code == status
    assert page.html == ""
    assert not page.is_indexable


def test_non_html_content_is_not_indexable():
    fetcher, _ = _fetcher(_response(text="{}", content_type="application/json", url="https://example.com/api"))

    page = fetcher.fetch("https://example.com/api")

    assert page.status_code == 200
    assert not page.is_indexable


def test_transport_error_raises_fetch_error():
    fetcher, _ = _fetcher(error=requests.ConnectionError("refused"))

    with pytest.raises(FetchError) as info:
        fetcher.fetch("https://example.com/down")

    assert info.value.url == "https://example.com/down"
    assert "refused" in str(info.value)


def test_fetched_page_indexable_flag():
    assert FetchedPage(url="u", status_code=200, html="<p>x</p>").is_indexable
    assert not FetchedPage(url="u", status_code=200, html="").is_indexable
    assert not FetchedPage(url="u", status_code=404, html="<p>x</p>").is_indexable
