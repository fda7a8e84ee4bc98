"""Shared plumbing for the table stores."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

from sitesearch.storage.connection import get_connection, get_statement_lock


def placeholders(values: Sequence) -> str:
    """Return "?,?,?" for an IN clause over *values*."""
    return ",".join("?" for _ in values)


class SqliteStore:
    """
    Base class for stores over the shared connection.

    Writes go through `_transaction()`, reads through `_fetchall()` /
    `_fetchone()`. Both hold the connection's statement lock.
    All stores accept an optional db_path for testability.
    """

    def __init__(self, db_path: Optional[Path] = None) -> None:
        self._db_path = db_path

    @property
    def _conn(self) -> sqlite3.Connection:
        return get_connection(self._db_path)

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._conn
        with get_statement_lock(self._db_path):
            with conn:
                yield conn

    def _fetchall(self, sql: str, params: Sequence = ()) -> list[sqlite3.Row]:
        with get_statement_lock(self._db_path):
            return self._conn.execute(sql, tuple(params)).fetchall()

    def _fetchone(self, sql: str, params: Sequence = ()) -> Optional[sqlite3.Row]:
        with get_statement_lock(self._db_path):
            return self._conn.execute(sql, tuple(params)).fetchone()

    def _scalar(self, sql: str, params: Sequence = ()) -> int:
        row = self._fetchone(sql, params)
        return row[0] if row and row[0] is not None else 0
