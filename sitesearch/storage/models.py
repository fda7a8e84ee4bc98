"""
Data models for the SiteSearch storage layer.

These are plain dataclasses with no ORM. They represent rows
in SQLite tables and are used as the transport format between storage
and all other modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utc_now_iso() -> str:
    """ISO 8601 timestamp in UTC, used for status timestamps."""
    return datetime.now(timezone.utc).isoformat()


class SiteStatus(str, Enum):
    """Indexing state of a configured site."""

    INDEXING = "INDEXING"
    INDEXED = "INDEXED"
    FAILED = "FAILED"


# ---------------------------------------------------------------------------
# Sites: one row per configured site, never deleted by the indexer
# ---------------------------------------------------------------------------


@dataclass
class Site:
    """
    A configured site and its current indexing status.

    Stored in the `sites` table. `last_error` is only populated while
    the status is FAILED.
    """

    # Auto-incremented primary key (None before insertion)
    id: Optional[int] = None

    # Root URL without trailing slash, e.g. "https://example.com"
    url: str = ""

    # Display name
    name: str = ""

    status: SiteStatus = SiteStatus.INDEXING

    # ISO 8601 timestamp of the last status change
    status_time: str = field(default_factory=utc_now_iso)

    last_error: Optional[str] = None


# ---------------------------------------------------------------------------
# Pages: fetched HTML, unique per (site, path)
# ---------------------------------------------------------------------------


@dataclass
class Page:
    """A fetched page. `path` is relative to the site root and starts with '/'."""

    id: Optional[int] = None
    site_id: int = 0
    path: str = "/"

    # HTTP status of the fetch that produced `content`
    code: int = 200

    # Raw HTML as fetched
    content: str = ""


# ---------------------------------------------------------------------------
# Lemmas and postings: the per-site inverted index
# ---------------------------------------------------------------------------


@dataclass
class Lemma:
    """
    A normalized word form known on one site.

    `frequency` counts the distinct pages of the site that hold a
    posting for this lemma.
    """

    id: Optional[int] = None
    site_id: int = 0
    text: str = ""
    frequency: int = 0


@dataclass
class Posting:
    """One (page, lemma) entry of the inverted index; `weight` = occurrences on the page."""

    id: Optional[int] = None
    page_id: int = 0
    lemma_id: int = 0
    weight: float = 0.0

    # Denormalized lemma text, filled by queries that join the lemmas table
    lemma_text: Optional[str] = None
