"""
CRUD operations for the postings table (the inverted index proper).

Postings are write-once: a page's postings are created in one batch when
the page is merged and disappear with the page (ON DELETE CASCADE).
"""

from __future__ import annotations

import logging
from typing import Iterable

from sitesearch.storage.base import SqliteStore, placeholders
from sitesearch.storage.models import Posting

logger = logging.getLogger(__name__)


class PostingStore(SqliteStore):
    """CRUD interface for the postings table."""

    def _row_to_posting(self, row) -> Posting:
        keys = row.keys()
        return Posting(
            id=row["id"],
            page_id=row["page_id"],
            lemma_id=row["lemma_id"],
            weight=row["weight"],
            lemma_text=row["text"] if "text" in keys else None,
        )

    def insert_many(self, postings: list[Posting]) -> int:
        """Insert a batch of postings in one transaction. Returns rows inserted."""
        if not postings:
            return 0
        rows = [(p.page_id, p.lemma_id, p.weight) for p in postings]
        with self._transaction() as conn:
            cursor = conn.executemany(
                "INSERT INTO postings (page_id, lemma_id, weight) VALUES (?, ?, ?)", rows
            )
            count = cursor.rowcount
        logger.debug("Inserted %d postings for page #%d", count, postings[0].page_id)
        return count

    def get_for_page(self, page_id: int) -> list[Posting]:
        rows = self._fetchall(
            """
            SELECT i.*, l.text FROM postings i
            JOIN lemmas l ON l.id = i.lemma_id
            WHERE i.page_id = ?
            ORDER BY l.text
            """,
            (page_id,),
        )
        return [self._row_to_posting(r) for r in rows]

    def get_for_pages(self, page_ids: list[int], lemma_texts: Iterable[str]) -> list[Posting]:
        """
        Postings of the given pages for the given lemma texts.

        Ordered by ascending lemma frequency (rarest first), then page id.
        """
        texts = sorted(set(lemma_texts))
        if not page_ids or not texts:
            return []
        rows = self._fetchall(
            f"""
            SELECT i.*, l.text FROM postings i
            JOIN lemmas l ON l.id = i.lemma_id
            WHERE i.page_id IN ({placeholders(page_ids)})
              AND l.text IN ({placeholders(texts)})
            ORDER BY l.frequency ASC, i.page_id ASC
            """,
            [*page_ids, *texts],
        )
        return [self._row_to_posting(r) for r in rows]

    def count(self) -> int:
        return self._scalar("SELECT COUNT(*) FROM postings")
