"""Exceptions raised across SiteSearch subsystems."""

from __future__ import annotations


class QueryValidationError(ValueError):
    """A search request was rejected before touching the index (e.g. empty query)."""


class FetchError(RuntimeError):
    """A page could not be fetched at the transport level (timeout, connection, bad URL)."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url
