"""
SQLite schema definitions (DDL).

All table creation lives here. The schema is versioned via the
`user_version` pragma so migrations can be added later without
breaking existing databases.

Tables:
    sites: configured sites and their indexing status
    pages: fetched pages, unique per (site, path)
    lemmas: per-site lemma dictionary with page frequency
    postings: inverted index entries (page, lemma, weight)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from sitesearch.storage.connection import get_connection, get_statement_lock

logger = logging.getLogger(__name__)

# Current schema version. Bump when adding migrations.
SCHEMA_VERSION = 1

# ---------------------------------------------------------------------------
# Table DDL
# ---------------------------------------------------------------------------

_SITES_DDL = """
CREATE TABLE IF NOT EXISTS sites (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    url          TEXT UNIQUE NOT NULL,
    name         TEXT NOT NULL,
    status       TEXT NOT NULL CHECK (status IN ('INDEXING', 'INDEXED', 'FAILED')),
    status_time  TEXT NOT NULL,
    last_error   TEXT
);
"""

_PAGES_DDL = """
CREATE TABLE IF NOT EXISTS pages (
    id       INTEGER PRIMARY KEY AUTOINCREMENT,
    site_id  INTEGER NOT NULL,
    path     TEXT NOT NULL,
    code     INTEGER NOT NULL,
    content  TEXT NOT NULL,
    UNIQUE (site_id, path),
    FOREIGN KEY (site_id) REFERENCES sites(id) ON DELETE CASCADE
);
"""

_LEMMAS_DDL = """
CREATE TABLE IF NOT EXISTS lemmas (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    site_id    INTEGER NOT NULL,
    text       TEXT NOT NULL,
    frequency  INTEGER NOT NULL DEFAULT 0,
    UNIQUE (site_id, text),
    FOREIGN KEY (site_id) REFERENCES sites(id) ON DELETE CASCADE
);
"""

_POSTINGS_DDL = """
CREATE TABLE IF NOT EXISTS postings (
    id        INTEGER PRIMARY KEY AUTOINCREMENT,
    page_id   INTEGER NOT NULL,
    lemma_id  INTEGER NOT NULL,
    weight    REAL NOT NULL,
    UNIQUE (page_id, lemma_id),
    FOREIGN KEY (page_id) REFERENCES pages(id) ON DELETE CASCADE,
    FOREIGN KEY (lemma_id) REFERENCES lemmas(id) ON DELETE CASCADE
);
"""

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_sites_status ON sites(status);",
    "CREATE INDEX IF NOT EXISTS idx_lemmas_text ON lemmas(text);",
    "CREATE INDEX IF NOT EXISTS idx_postings_lemma ON postings(lemma_id);",
]


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------


def initialize_database(db_path: Optional[Path] = None) -> None:
    """
    Create all tables and indexes if they don't exist.

    Safe to call multiple times; all statements use IF NOT EXISTS.
    """
    conn = get_connection(db_path)

    logger.info("Initializing database schema (version %d)...", SCHEMA_VERSION)

    with get_statement_lock(db_path), conn:
        conn.execute(_SITES_DDL)
        conn.execute(_PAGES_DDL)
        conn.execute(_LEMMAS_DDL)
        conn.execute(_POSTINGS_DDL)

        for idx_sql in _INDEXES:
            conn.execute(idx_sql)

        conn.execute(f"PRAGMA user_version={SCHEMA_VERSION}")

    logger.info("Database schema initialized successfully.")


def get_schema_version(db_path: Optional[Path] = None) -> int:
    """Return the current schema version of the database."""
    conn = get_connection(db_path)
    row = conn.execute("PRAGMA user_version").fetchone()
    return row[0] if row else 0
