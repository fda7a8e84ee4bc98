"""Tests for link extraction from fetched HTML."""

from sitesearch.crawler.parser import PageParser


def test_parse_resolves_relative_links_in_document_order():
    html = """
    <html><body>
      <a href="/docs/">Docs</a>
      <a href="guide.html">Guide</a>
      <a href="https://other.org/x">Elsewhere</a>
    </body></html>
    """

    parsed = PageParser().parse(html, page_url="https://example.com/blog/post")

    assert parsed.links == [
        "https://example.com/docs/",
        "https://example.com/blog/guide.html",
        "https://other.org/x",
    ]


def test_parse_drops_non_http_schemes_and_duplicates():
    html = """
    <a href="mailto:team@example.com">Mail</a>
    <a href="javascript:void(0)">Click</a>
    <a href="tel:+100">Call</a>
    <a href="/a">A</a>
    <a href="/a">A again</a>
    <a href="">Empty</a>
    <a>No href</a>
    """

    parsed = PageParser().parse(html, page_url="https://example.com/")

    assert parsed.links == ["https://example.com/a"]


def test_parse_honours_base_href():
    html = '<html><head><base href="https://example.com/v2/"></head><body><a href="page">P</a></body></html>'

    parsed = PageParser().parse(html, page_url="https://example.com/index")

    assert parsed.links == ["https://example.com/v2/page"]
