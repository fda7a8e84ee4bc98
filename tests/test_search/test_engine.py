"""Tests for ranked search over an indexed corpus."""

from __future__ import annotations

import pytest

from sitesearch.errors import QueryValidationError
from sitesearch.indexing.merger import IndexMerger
from sitesearch.preprocessing.lemmatizer import Lemmatizer
from sitesearch.search.engine import SearchEngine
from sitesearch.storage.cache import ExpiringLRUCache
from sitesearch.storage.lemma_store import LemmaStore
from sitesearch.storage.models import Page
from sitesearch.storage.page_store import PageStore
from sitesearch.storage.posting_store import PostingStore
from sitesearch.storage.schema import initialize_database
from sitesearch.storage.site_store import SiteStore
from tests.conftest import OTHER_SITE_URL, SITE_URL, make_html


class Corpus:
    """Indexes hand-written pages straight into the stores."""

    def __init__(self, settings) -> None:
        initialize_database(settings.db_path)
        self.lemmatizer = Lemmatizer(settings.preprocessing)
        self.sites = SiteStore(settings.db_path)
        self.pages = PageStore(settings.db_path)
        self.lemmas = LemmaStore(settings.db_path)
        self.postings = PostingStore(settings.db_path)
        self.merger = IndexMerger(
            lemma_store=self.lemmas,
            posting_store=self.postings,
            lemma_cache=ExpiringLRUCache(),
        )

    def add(self, path: str, body: str, title: str = "Untitled", site_url: str = SITE_URL) -> Page:
        site = self.sites.get_or_create(site_url, "Example" if site_url == SITE_URL else "Other")
        html = make_html(title=title, body=body)
        page = self.pages.insert(Page(site_id=site.id, path=path, content=html))
        text = self.lemmatizer.plain_text(html)
        self.merger.merge(page, self.lemmatizer.lemma_frequencies(text))
        return page

    def engine(self, settings) -> SearchEngine:
        return SearchEngine(
            settings,
            lemmatizer=self.lemmatizer,
            site_store=self.sites,
            page_store=self.pages,
            lemma_store=self.lemmas,
            posting_store=self.postings,
        )


@pytest.fixture
def corpus(settings) -> Corpus:
    return Corpus(settings)


class TestRanking:
    def test_relevance_is_normalized_by_best_page(self, settings, corpus):
        corpus.add("/two", "cat cat")
        corpus.add("/four", "cat cat cat cat")

        page = corpus.engine(settings).search("cats")

        assert page.total == 2
        assert [r.uri for r in page.results] == ["/four", "/two"]
        assert [r.relevance for r in page.results] == [1.0, 0.5]

    def test_every_query_lemma_is_required(self, settings, corpus):
        corpus.add("/cat", "cat alone")
        corpus.add("/both", "cat and dog")

        page = corpus.engine(settings).search("cat dog")

        assert [r.uri for r in page.results] == ["/both"]

    def test_ties_keep_insertion_order(self, settings, corpus):
        for path in ("/c", "/a", "/b"):
            corpus.add(path, "fish")

        page = corpus.engine(settings).search("fish")

        assert [r.uri for r in page.results] == ["/c", "/a", "/b"]
        assert {r.relevance for r in page.results} == {1.0}

    def test_result_fields(self, settings, corpus):
        corpus.add("/pets", "Our cats sleep all day", title="Pet Guide")

        hit = corpus.engine(settings).search("cat").results[0]

        assert hit.site == SITE_URL
        assert hit.site_name == "Example"
        assert hit.uri == "/pets"
        assert hit.title == "Pet Guide"
        assert "<b>cats</b>" in hit.snippet
        assert hit.as_dict()["siteName"] == "Example"

    def test_rarest_lemma_first(self, settings, corpus):
        corpus.add("/1", "cat lynx")
        corpus.add("/2", "cat")
        corpus.add("/3", "cat", site_url=OTHER_SITE_URL)

        assert corpus.engine(settings).order_by_rarity({"cat", "lynx"}) == ["lynx", "cat"]


class TestPagination:
    def test_offset_and_limit(self, settings, corpus):
        for i in range(7):
            corpus.add(f"/p{i}", "python")

        page = corpus.engine(settings).search("python", offset=5, limit=10)

        assert page.total == 7
        assert [r.uri for r in page.results] == ["/p5", "/p6"]

    def test_limit_is_capped(self, settings, corpus):
        for i in range(3):
            corpus.add(f"/p{i}", "python")

        page = corpus.engine(settings).search("python", limit=10_000)

        assert len(page.results) == 3


class TestScope:
    def test_site_filter(self, settings, corpus):
        corpus.add("/a", "rust")
        corpus.add("/b", "rust", site_url=OTHER_SITE_URL)
        engine = corpus.engine(settings)

        assert [r.site for r in engine.search("rust", site=OTHER_SITE_URL + "/").results] == [OTHER_SITE_URL]
        assert engine.search("rust").total == 2

    def test_unknown_site_yields_nothing(self, settings, corpus):
        corpus.add("/a", "rust")
        assert corpus.engine(settings).search("rust", site="https://unknown.net").total == 0


class TestValidation:
    @pytest.mark.parametrize("query", [None, "", "   "])
    def test_empty_query_is_rejected(self, settings, corpus, query):
        with pytest.raises(QueryValidationError):
            corpus.engine(settings).search(query)

    def test_bad_paging_is_rejected(self, settings, corpus):
        engine = corpus.engine(settings)
        with pytest.raises(QueryValidationError):
            engine.search("cat", offset=-1)
        with pytest.raises(QueryValidationError):
            engine.search("cat", limit=0)

    def test_no_match(self, settings, corpus):
        corpus.add("/a", "cat")
        page = corpus.engine(settings).search("giraffe")
        assert page.total == 0
        assert page.results == []

    def test_stopword_only_query(self, settings, corpus):
        corpus.add("/a", "cat")
        assert corpus.engine(settings).search("the of").total == 0


def test_results_are_cached_per_query(settings, corpus):
    corpus.add("/a", "bird")
    engine = corpus.engine(settings)
    assert engine.search("bird").total == 1

    corpus.add("/b", "bird")

    assert engine.search("bird").total == 1
    assert engine.search("bird", site=SITE_URL).total == 2


def test_injected_empty_cache_holds_ranked_lists(settings, corpus):
    corpus.add("/a", "bird")
    cache = ExpiringLRUCache(max_size=5, ttl=60.0)
    engine = SearchEngine(
        settings,
        lemmatizer=corpus.lemmatizer,
        site_store=corpus.sites,
        page_store=corpus.pages,
        lemma_store=corpus.lemmas,
        posting_store=corpus.postings,
        cache=cache,
    )

    engine.search("bird")

    assert len(cache) == 1
    assert [r.uri for r in cache.get(("all", "bird"))] == ["/a"]
