"""
SQLite connection factory.

Provides shared connections with WAL mode enabled.
All database access in the project goes through get_connection().

Design decisions:
- WAL mode: allows concurrent reads while a write is in progress.
- check_same_thread=False: the crawler writes from its worker pool.
- One re-entrant lock per connection: a store holds it for the whole
  statement group it issues, so transactions from different threads
  never interleave on the shared connection.
- Row factory: rows are returned as sqlite3.Row (dict-like access).
- Foreign keys: enforced (OFF by default in SQLite).
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Optional

from sitesearch.config.settings import get_settings

logger = logging.getLogger(__name__)

# Module-level lock for connection creation
_lock = threading.Lock()

# Singleton connection and its statement lock per database path
_connections: dict[str, sqlite3.Connection] = {}
_statement_locks: dict[str, threading.RLock] = {}


def _resolve(db_path: Optional[Path]) -> Path:
    return db_path if db_path is not None else get_settings().db_path


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """
    Get the shared SQLite connection for a database file.

    Returns the same connection object for the same db_path
    (singleton per path).

    Args:
        db_path: Path to the SQLite database file. If None, uses
                 the default path from settings.
    """
    db_path = _resolve(db_path)
    db_key = str(db_path)

    with _lock:
        if db_key in _connections:
            return _connections[db_key]

        db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.info("Opening SQLite database: %s", db_path)

        conn = sqlite3.connect(
            str(db_path),
            check_same_thread=False,
            timeout=10.0,
        )

        storage = get_settings().storage
        conn.execute(f"PRAGMA journal_mode={storage.journal_mode}")
        conn.execute(f"PRAGMA busy_timeout={storage.busy_timeout_ms}")
        conn.execute("PRAGMA foreign_keys=ON")
        conn.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL

        conn.row_factory = sqlite3.Row

        _connections[db_key] = conn
        _statement_locks[db_key] = threading.RLock()
        logger.info("Database connection established (WAL mode)")

        return conn


def get_statement_lock(db_path: Optional[Path] = None) -> threading.RLock:
    """Return the lock guarding statement groups on the shared connection."""
    get_connection(db_path)
    with _lock:
        return _statement_locks[str(_resolve(db_path))]


def close_connection(db_path: Optional[Path] = None) -> None:
    """
    Close the connection for a given db_path (or the default).

    Useful in tests and shutdown hooks.
    """
    db_path = _resolve(db_path)
    db_key = str(db_path)

    with _lock:
        conn = _connections.pop(db_key, None)
        _statement_locks.pop(db_key, None)
        if conn is not None:
            conn.close()
            logger.info("Database connection closed: %s", db_path)


def close_all_connections() -> None:
    """Close all open connections. Used during shutdown."""
    with _lock:
        for key, conn in list(_connections.items()):
            conn.close()
            logger.info("Database connection closed: %s", key)
        _connections.clear()
        _statement_locks.clear()
