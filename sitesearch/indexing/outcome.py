"""Structured results of indexing operations."""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import Optional


@dataclass(frozen=True)
class IndexingOutcome:
    """
    Success flag, human-readable error and an HTTP-like severity.

    Rejections (already running, bad URL, upstream failure) are
    outcomes, not exceptions.
    """

    result: bool
    error: Optional[str] = None
    status_code: int = HTTPStatus.OK

    @classmethod
    def ok(cls) -> "IndexingOutcome":
        return cls(result=True)

    @classmethod
    def rejected(cls, error: str, status_code: int = HTTPStatus.BAD_REQUEST) -> "IndexingOutcome":
        return cls(result=False, error=error, status_code=int(status_code))

    def as_dict(self) -> dict:
        body: dict = {"result": self.result}
        if self.error is not None:
            body["error"] = self.error
        return body
