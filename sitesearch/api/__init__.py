"""FastAPI REST API over the indexing and search services."""

from sitesearch.api.app import create_app

__all__ = [
    "create_app",
]
