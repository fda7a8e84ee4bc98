"""CLI for ranked search against the lemma index."""

from __future__ import annotations

import argparse
import logging

from sitesearch.config.logging_config import setup_logging
from sitesearch.config.settings import get_settings
from sitesearch.errors import QueryValidationError
from sitesearch.search.engine import SearchEngine
from sitesearch.storage.schema import initialize_database


def build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(description="Search the indexed sites.")
    parser.add_argument("--query", required=True, help="Search query text.")
    parser.add_argument("--site", default=None, help="Optional site root URL to search in.")
    parser.add_argument("--offset", type=int, default=0, help="Number of results to skip.")
    parser.add_argument("--limit", type=int, default=10, help="Number of results to return.")
    return parser


def main() -> int:
    """Run a query and print ranked results."""
    args = build_parser().parse_args()

    settings = get_settings()
    setup_logging(log_dir=settings.logs_dir)
    initialize_database(settings.db_path)

    logger = logging.getLogger(__name__)

    try:
        page = SearchEngine(settings).search(
            args.query, site=args.site, offset=args.offset, limit=args.limit
        )
    except QueryValidationError as exc:
        print(f"error: {exc}")
        return 2
    except Exception as exc:
        logger.exception("Search failed: %s", exc)
        return 1

    if not page.results:
        print("No results.")
        return 0

    print(f"{page.total} result(s)")
    for rank, hit in enumerate(page.results, start=args.offset + 1):
        print(f"{rank}. relevance={hit.relevance:.4f} {hit.site}{hit.uri} title={hit.title}")
        print(f"   {hit.snippet}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
