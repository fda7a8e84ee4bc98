"""
Logging configuration for the SiteSearch system.

Console + rotating file output for the ``sitesearch`` logger tree.
Modules never configure handlers themselves; they only do:
    import logging
    logger = logging.getLogger(__name__)
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"

# Third-party loggers that are too chatty at INFO while crawling
_NOISY_LOGGERS = ("urllib3", "charset_normalizer")


def setup_logging(
    log_dir: Path | None = None,
    level: int | str = logging.INFO,
    log_file: str = "sitesearch.log",
) -> None:
    """
    Configure logging for the whole application.

    Args:
        log_dir: Directory for the rotating log file. None keeps console only.
        level: Minimum level, as a number or a name such as "DEBUG".
        log_file: Name of the log file inside log_dir.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    app_logger = logging.getLogger("sitesearch")
    app_logger.setLevel(level)

    # Repeated calls (CLI + server reload) must not stack handlers
    if app_logger.handlers:
        return

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=log_dir / log_file,
                maxBytes=10 * 1024 * 1024,  # 10 MB
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            app_logger.addHandler(file_handler)
        except OSError as e:
            app_logger.warning("Could not set up file logging: %s", e)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
