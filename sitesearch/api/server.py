"""Uvicorn entrypoint for running the API server."""

from __future__ import annotations

import argparse
import logging

import uvicorn

from sitesearch.api.app import create_app
from sitesearch.config.logging_config import setup_logging
from sitesearch.config.settings import get_settings
from sitesearch.storage.connection import close_all_connections


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the SiteSearch API server.")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address.")
    parser.add_argument("--port", type=int, default=8000, help="Bind port.")
    parser.add_argument("--log-level", default="INFO", help="Logging level, e.g. DEBUG.")
    parser.add_argument(
        "--shutdown-timeout",
        type=float,
        default=30.0,
        help="Seconds to wait for in-flight crawl tasks when the server exits.",
    )
    return parser


def main() -> int:
    args = build_parser().parse_args()

    settings = get_settings()
    setup_logging(log_dir=settings.logs_dir, level=args.log_level)
    logger = logging.getLogger(__name__)

    if not settings.sites:
        logger.warning("No sites configured in %s; indexing requests will be rejected", settings.sites_file)

    # Single process: the indexing coordinator lives in this interpreter
    app = create_app(settings)

    logger.info("Starting API server on %s:%d", args.host, args.port)
    try:
        uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())
    finally:
        app.state.coordinator.shutdown(timeout=args.shutdown_timeout)
        close_all_connections()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
