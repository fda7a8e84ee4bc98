"""
CRUD operations for the pages table.

Pages are unique per (site, path). Concurrent crawler branches may race
to insert the same page; the loser gets `None` back from `insert()`.

Deleting a page removes its postings (ON DELETE CASCADE) and takes the
page's contribution out of every lemma frequency it had raised.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Iterable, Optional

from sitesearch.storage.base import SqliteStore, placeholders
from sitesearch.storage.models import Page

logger = logging.getLogger(__name__)


class PageStore(SqliteStore):
    """CRUD interface for the pages table."""

    def _row_to_page(self, row) -> Page:
        return Page(
            id=row["id"],
            site_id=row["site_id"],
            path=row["path"],
            code=row["code"],
            content=row["content"],
        )

    # ----- Write operations -----

    def insert(self, page: Page) -> Optional[Page]:
        """
        Insert a page and return it with its id set.

        Returns None if the (site, path) pair already exists.
        """
        try:
            with self._transaction() as conn:
                cursor = conn.execute(
                    "INSERT INTO pages (site_id, path, code, content) VALUES (?, ?, ?, ?)",
                    (page.site_id, page.path, page.code, page.content),
                )
        except sqlite3.IntegrityError:
            logger.debug("Page already exists: %s (site #%d)", page.path, page.site_id)
            return None

        page.id = cursor.lastrowid
        return page

    def delete(self, page_id: int) -> bool:
        """
        Delete one page, its postings, and its share of lemma frequencies.

        Lemmas whose frequency drops to zero are removed. Returns True if
        the page existed.
        """
        with self._transaction() as conn:
            conn.execute(
                """
                UPDATE lemmas SET frequency = frequency - 1
                WHERE id IN (SELECT lemma_id FROM postings WHERE page_id = ?)
                """,
                (page_id,),
            )
            cursor = conn.execute("DELETE FROM pages WHERE id = ?", (page_id,))
            conn.execute("DELETE FROM lemmas WHERE frequency <= 0")
            deleted = cursor.rowcount > 0
        if deleted:
            logger.debug("Deleted page #%d", page_id)
        return deleted

    def delete_by_site(self, site_id: int) -> int:
        """Delete every page of a site (postings cascade). Returns count deleted."""
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM pages WHERE site_id = ?", (site_id,))
            count = cursor.rowcount
        if count:
            logger.info("Deleted %d pages of site #%d", count, site_id)
        return count

    # ----- Read operations -----

    def get(self, path: str, site_id: int) -> Optional[Page]:
        """Fetch a page by its site-relative path."""
        row = self._fetchone(
            "SELECT * FROM pages WHERE site_id = ? AND path = ?", (site_id, path)
        )
        return self._row_to_page(row) if row else None

    def get_by_ids(self, page_ids: list[int]) -> list[Page]:
        """Fetch multiple pages by id. Returns in arbitrary order."""
        if not page_ids:
            return []
        rows = self._fetchall(
            f"SELECT * FROM pages WHERE id IN ({placeholders(page_ids)})", page_ids
        )
        return [self._row_to_page(r) for r in rows]

    def exists(self, path: str, site_id: int) -> bool:
        row = self._fetchone(
            "SELECT 1 FROM pages WHERE site_id = ? AND path = ?", (site_id, path)
        )
        return row is not None

    def count(self, site_id: Optional[int] = None) -> int:
        """Count pages, optionally for one site."""
        if site_id is not None:
            return self._scalar("SELECT COUNT(*) FROM pages WHERE site_id = ?", (site_id,))
        return self._scalar("SELECT COUNT(*) FROM pages")

    def find_containing_all(
        self,
        lemma_texts: Iterable[str],
        site_id: Optional[int] = None,
    ) -> list[Page]:
        """
        Return pages holding a posting for every lemma in *lemma_texts*.

        Optionally restricted to one site. Pages come back in insertion
        order (ascending id).
        """
        texts = sorted(set(lemma_texts))
        if not texts:
            return []

        params: list = list(texts)
        site_clause = ""
        if site_id is not None:
            site_clause = "AND p.site_id = ?"
            params.append(site_id)
        params.append(len(texts))

        rows = self._fetchall(
            f"""
            SELECT p.* FROM pages p
            JOIN postings i ON i.page_id = p.id
            JOIN lemmas l ON l.id = i.lemma_id
            WHERE l.text IN ({placeholders(texts)}) {site_clause}
            GROUP BY p.id
            HAVING COUNT(DISTINCT l.text) = ?
            ORDER BY p.id
            """,
            params,
        )
        return [self._row_to_page(r) for r in rows]
