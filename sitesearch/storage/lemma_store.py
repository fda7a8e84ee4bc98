"""
CRUD operations for the lemmas table.

A lemma row is unique per (site, text). Its frequency is the number of
distinct pages of the site that hold a posting for it; the index merger
raises it by exactly one per merged page, and page deletion lowers it.
Both directions are single UPDATE statements, so no increment is lost
when several crawler threads touch the same lemma.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from sitesearch.storage.base import SqliteStore, placeholders
from sitesearch.storage.models import Lemma

logger = logging.getLogger(__name__)


class LemmaStore(SqliteStore):
    """CRUD interface for the lemmas table."""

    def _row_to_lemma(self, row) -> Lemma:
        return Lemma(
            id=row["id"],
            site_id=row["site_id"],
            text=row["text"],
            frequency=row["frequency"],
        )

    # ----- Write operations -----

    def increment(self, lemma_id: int) -> bool:
        """
        Add one page to a known lemma's frequency.

        Returns False when the row no longer exists (e.g. dropped after
        its last page was deleted), so callers can fall back to
        `upsert_increment`.
        """
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE lemmas SET frequency = frequency + 1 WHERE id = ?", (lemma_id,)
            )
            return cursor.rowcount > 0

    def upsert_increment(self, text: str, site_id: int) -> Lemma:
        """Create the lemma with frequency 1, or add one to the existing row."""
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO lemmas (site_id, text, frequency) VALUES (?, ?, 1)
                ON CONFLICT(site_id, text) DO UPDATE SET frequency = frequency + 1
                """,
                (site_id, text),
            )
            row = conn.execute(
                "SELECT * FROM lemmas WHERE site_id = ? AND text = ?", (site_id, text)
            ).fetchone()
        return self._row_to_lemma(row)

    def delete_by_site(self, site_id: int) -> int:
        """Delete every lemma of a site. Returns count deleted."""
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM lemmas WHERE site_id = ?", (site_id,))
            return cursor.rowcount

    # ----- Read operations -----

    def get(self, text: str, site_id: int) -> Optional[Lemma]:
        row = self._fetchone(
            "SELECT * FROM lemmas WHERE site_id = ? AND text = ?", (site_id, text)
        )
        return self._row_to_lemma(row) if row else None

    def get_by_texts(self, texts: Iterable[str], site_id: Optional[int] = None) -> list[Lemma]:
        """Fetch lemma rows for a set of texts, across all sites or for one."""
        texts = sorted(set(texts))
        if not texts:
            return []
        params: list = list(texts)
        sql = f"SELECT * FROM lemmas WHERE text IN ({placeholders(texts)})"
        if site_id is not None:
            sql += " AND site_id = ?"
            params.append(site_id)
        rows = self._fetchall(sql + " ORDER BY id", params)
        return [self._row_to_lemma(r) for r in rows]

    def count(self, site_id: Optional[int] = None) -> int:
        if site_id is not None:
            return self._scalar("SELECT COUNT(*) FROM lemmas WHERE site_id = ?", (site_id,))
        return self._scalar("SELECT COUNT(*) FROM lemmas")

    def count_sites_with(self, text: str) -> int:
        """Number of sites whose dictionary contains *text*."""
        return self._scalar("SELECT COUNT(*) FROM lemmas WHERE text = ?", (text,))

    def corpus_frequencies(
        self,
        texts: Iterable[str],
        site_id: Optional[int] = None,
    ) -> dict[str, int]:
        """
        Sum of page frequencies per lemma text over one site or all sites.

        Texts unknown to the index map to 0.
        """
        texts = sorted(set(texts))
        result = {text: 0 for text in texts}
        for lemma in self.get_by_texts(texts, site_id=site_id):
            result[lemma.text] += lemma.frequency
        return result
