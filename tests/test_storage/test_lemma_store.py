"""Tests for LemmaStore frequency bookkeeping and PostingStore reads."""

from sitesearch.storage.models import Posting
from tests.conftest import OTHER_SITE_URL, SITE_URL, make_page


class TestLemmaFrequency:
    def test_upsert_increment_creates_then_increments(self, site_store, lemma_store):
        site_id = site_store.get_or_create(SITE_URL, "Example").id

        created = lemma_store.upsert_increment("cat", site_id)
        assert created.frequency == 1

        again = lemma_store.upsert_increment("cat", site_id)
        assert again.id == created.id
        assert again.frequency == 2

    def test_increment_reports_missing_row(self, site_store, lemma_store):
        site_id = site_store.get_or_create(SITE_URL, "Example").id
        lemma = lemma_store.upsert_increment("cat", site_id)

        assert lemma_store.increment(lemma.id) is True
        assert lemma_store.get("cat", site_id).frequency == 2
        assert lemma_store.increment(99999) is False

    def test_lemmas_are_scoped_per_site(self, site_store, lemma_store):
        a = site_store.get_or_create(SITE_URL, "Example").id
        b = site_store.get_or_create(OTHER_SITE_URL, "Other").id
        lemma_store.upsert_increment("cat", a)
        lemma_store.upsert_increment("cat", b)
        lemma_store.upsert_increment("cat", b)

        assert lemma_store.count() == 2
        assert lemma_store.count(a) == 1
        assert lemma_store.count_sites_with("cat") == 2
        assert lemma_store.count_sites_with("dog") == 0

    def test_corpus_frequencies(self, site_store, lemma_store):
        a = site_store.get_or_create(SITE_URL, "Example").id
        b = site_store.get_or_create(OTHER_SITE_URL, "Other").id
        lemma_store.upsert_increment("cat", a)
        lemma_store.upsert_increment("cat", b)
        lemma_store.upsert_increment("cat", b)

        assert lemma_store.corpus_frequencies(["cat", "dog"]) == {"cat": 3, "dog": 0}
        assert lemma_store.corpus_frequencies(["cat"], site_id=a) == {"cat": 1}

    def test_delete_by_site(self, site_store, lemma_store):
        a = site_store.get_or_create(SITE_URL, "Example").id
        b = site_store.get_or_create(OTHER_SITE_URL, "Other").id
        lemma_store.upsert_increment("cat", a)
        lemma_store.upsert_increment("cat", b)

        assert lemma_store.delete_by_site(a) == 1
        assert lemma_store.get("cat", a) is None
        assert lemma_store.get("cat", b) is not None


class TestPostings:
    def test_get_for_pages_orders_rarest_lemma_first(self, site_store, page_store, lemma_store, posting_store):
        site_id = site_store.get_or_create(SITE_URL, "Example").id
        page = page_store.insert(make_page(site_id, "/"))
        common = lemma_store.upsert_increment("cat", site_id)
        lemma_store.upsert_increment("cat", site_id)
        rare = lemma_store.upsert_increment("lynx", site_id)

        posting_store.insert_many([
            Posting(page_id=page.id, lemma_id=common.id, weight=4.0),
            Posting(page_id=page.id, lemma_id=rare.id, weight=1.0),
        ])

        postings = posting_store.get_for_pages([page.id], {"cat", "lynx"})
        assert [p.lemma_text for p in postings] == ["lynx", "cat"]
        assert [p.weight for p in postings] == [1.0, 4.0]

    def test_get_for_pages_filters_lemmas(self, site_store, page_store, lemma_store, posting_store):
        site_id = site_store.get_or_create(SITE_URL, "Example").id
        page = page_store.insert(make_page(site_id, "/"))
        cat = lemma_store.upsert_increment("cat", site_id)
        dog = lemma_store.upsert_increment("dog", site_id)
        posting_store.insert_many([
            Posting(page_id=page.id, lemma_id=cat.id, weight=1.0),
            Posting(page_id=page.id, lemma_id=dog.id, weight=2.0),
        ])

        postings = posting_store.get_for_pages([page.id], ["dog"])
        assert len(postings) == 1
        assert postings[0].lemma_text == "dog"
        assert posting_store.get_for_pages([], ["dog"]) == []

    def test_insert_many_empty(self, posting_store):
        assert posting_store.insert_many([]) == 0
