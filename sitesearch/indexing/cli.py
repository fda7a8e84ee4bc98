"""CLI for crawling the configured sites or re-indexing one page."""

from __future__ import annotations

import argparse
import logging
from typing import Optional

from sitesearch.config.logging_config import setup_logging
from sitesearch.config.settings import get_settings
from sitesearch.indexing.coordinator import IndexingCoordinator
from sitesearch.indexing.merger import IndexMerger
from sitesearch.indexing.page_indexer import PageIndexer
from sitesearch.storage.cache import ExpiringLRUCache
from sitesearch.storage.lemma_store import LemmaStore
from sitesearch.storage.posting_store import PostingStore
from sitesearch.storage.schema import initialize_database
from sitesearch.storage.site_store import SiteStore


def build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(description="Crawl and index the configured sites.")
    sub = parser.add_subparsers(dest="command", required=True)

    crawl = sub.add_parser("crawl", help="Run a full indexing pass and wait for it to finish.")
    crawl.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Stop the run after this many seconds.",
    )

    page = sub.add_parser("page", help="Re-index a single page.")
    page.add_argument("--url", required=True, help="Absolute URL of a page on a configured site.")
    return parser


def _run_crawl(coordinator: IndexingCoordinator, timeout: Optional[float]) -> int:
    outcome = coordinator.start_indexing()
    if not outcome.result:
        print(f"error: {outcome.error}")
        return 1

    try:
        if not coordinator.wait(timeout):
            coordinator.stop_indexing()
            coordinator.wait()
    except KeyboardInterrupt:
        coordinator.stop_indexing()
        coordinator.wait()

    for site in SiteStore(get_settings().db_path).list_all():
        line = f"site={site.url} status={site.status.value}"
        if site.last_error:
            line += f" error={site.last_error!r}"
        print(line)
    return 0


def main() -> int:
    """Run the requested indexing command."""
    args = build_parser().parse_args()

    settings = get_settings()
    setup_logging(log_dir=settings.logs_dir)
    initialize_database(settings.db_path)

    logger = logging.getLogger(__name__)

    merger = IndexMerger(
        lemma_store=LemmaStore(settings.db_path),
        posting_store=PostingStore(settings.db_path),
        lemma_cache=ExpiringLRUCache(
            max_size=settings.cache.lemma_cache_size,
            ttl=settings.cache.lemma_cache_ttl,
        ),
    )

    try:
        if args.command == "crawl":
            return _run_crawl(IndexingCoordinator(settings, merger=merger), args.timeout)

        outcome = PageIndexer(merger, settings).index_page(args.url)
    except Exception as exc:
        logger.exception("Indexing command failed: %s", exc)
        return 1

    print(f"result={outcome.result} status={outcome.status_code}" + (f" error={outcome.error!r}" if outcome.error else ""))
    return 0 if outcome.result else 1


if __name__ == "__main__":
    raise SystemExit(main())
