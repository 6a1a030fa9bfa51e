"""Logging configuration for the explorer.

Library modules only create loggers with ``logging.getLogger(__name__)``;
the embedding application calls setup_logging once at startup.
"""

import logging
import sys

from firestore_explorer.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Client libraries that log every HTTP request; a bulk export issues thousands.
_CHATTY_LOGGERS = ("httpx", "httpcore", "google.auth", "urllib3")


def setup_logging(level: int | None = None) -> None:
    """Send explorer logs to stdout.

    Args:
        level: Explicit level. Defaults to DEBUG when settings.debug is True,
            otherwise INFO.
    """
    if level is None:
        level = logging.DEBUG if get_settings().debug else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name."""
    return logging.getLogger(name)
