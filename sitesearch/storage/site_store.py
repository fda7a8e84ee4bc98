"""
CRUD operations for the sites table.

Site rows are created or reset when a crawl run starts and are never
deleted by the indexer; only their status moves between INDEXING,
INDEXED and FAILED.
"""

from __future__ import annotations

import logging
from typing import Optional

from sitesearch.storage.base import SqliteStore, placeholders
from sitesearch.storage.models import Site, SiteStatus, utc_now_iso

logger = logging.getLogger(__name__)


class SiteStore(SqliteStore):
    """CRUD interface for the sites table."""

    def _row_to_site(self, row) -> Site:
        return Site(
            id=row["id"],
            url=row["url"],
            name=row["name"],
            status=SiteStatus(row["status"]),
            status_time=row["status_time"],
            last_error=row["last_error"],
        )

    # ----- Write operations -----

    def upsert_indexing(self, url: str, name: str) -> Site:
        """
        Create the site row or reset an existing one to INDEXING.

        The status time is refreshed and any previous error is cleared.
        """
        sql = """
            INSERT INTO sites (url, name, status, status_time, last_error)
            VALUES (?, ?, ?, ?, NULL)
            ON CONFLICT(url) DO UPDATE SET
                name = excluded.name,
                status = excluded.status,
                status_time = excluded.status_time,
                last_error = NULL
        """
        with self._transaction() as conn:
            conn.execute(sql, (url, name, SiteStatus.INDEXING.value, utc_now_iso()))
            row = conn.execute("SELECT * FROM sites WHERE url = ?", (url,)).fetchone()
        logger.debug("Site %s set to INDEXING", url)
        return self._row_to_site(row)

    def get_or_create(self, url: str, name: str, status: SiteStatus = SiteStatus.INDEXED) -> Site:
        """Return the site row for *url*, creating it with *status* when missing."""
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO sites (url, name, status, status_time, last_error)
                VALUES (?, ?, ?, ?, NULL)
                """,
                (url, name, status.value, utc_now_iso()),
            )
            row = conn.execute("SELECT * FROM sites WHERE url = ?", (url,)).fetchone()
        return self._row_to_site(row)

    def set_status(self, site_id: int, status: SiteStatus, error: Optional[str] = None) -> None:
        """
        Move a site to *status* and refresh its status time.

        `error` is stored only for FAILED; any other status clears it.
        """
        last_error = error if status is SiteStatus.FAILED else None
        with self._transaction() as conn:
            conn.execute(
                "UPDATE sites SET status = ?, status_time = ?, last_error = ? WHERE id = ?",
                (status.value, utc_now_iso(), last_error, site_id),
            )
        logger.debug("Site #%d -> %s", site_id, status.value)

    def set_status_where(self, current: SiteStatus, status: SiteStatus, error: Optional[str] = None) -> int:
        """Move every site in *current* to *status*. Returns the number of rows changed."""
        last_error = error if status is SiteStatus.FAILED else None
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE sites SET status = ?, status_time = ?, last_error = ? WHERE status = ?",
                (status.value, utc_now_iso(), last_error, current.value),
            )
            return cursor.rowcount

    # ----- Read operations -----

    def get_by_id(self, site_id: int) -> Optional[Site]:
        row = self._fetchone("SELECT * FROM sites WHERE id = ?", (site_id,))
        return self._row_to_site(row) if row else None

    def get_by_ids(self, site_ids: list[int]) -> list[Site]:
        if not site_ids:
            return []
        rows = self._fetchall(
            f"SELECT * FROM sites WHERE id IN ({placeholders(site_ids)})", site_ids
        )
        return [self._row_to_site(r) for r in rows]

    def get_by_url(self, url: str) -> Optional[Site]:
        row = self._fetchone("SELECT * FROM sites WHERE url = ?", (url,))
        return self._row_to_site(row) if row else None

    def list_all(self) -> list[Site]:
        rows = self._fetchall("SELECT * FROM sites ORDER BY id")
        return [self._row_to_site(r) for r in rows]

    def list_by_status(self, status: SiteStatus) -> list[Site]:
        rows = self._fetchall("SELECT * FROM sites WHERE status = ? ORDER BY id", (status.value,))
        return [self._row_to_site(r) for r in rows]

    def count(self) -> int:
        return self._scalar("SELECT COUNT(*) FROM sites")
