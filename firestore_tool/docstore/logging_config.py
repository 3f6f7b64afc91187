"""
Logging setup driven by the -v/--verbose count.
"""

import logging
import sys

TRACE = 5

logging.addLevelName(TRACE, "TRACE")

_LEVELS = {0: logging.WARNING, 1: logging.INFO, 2: logging.DEBUG}

# Chatty SDK loggers, only opened up at TRACE
_LIBRARY_LOGGERS = ("google", "google.auth", "google.api_core", "grpc", "urllib3")


def setup_logging(verbose: int = 0) -> None:
    """
    Configure root logging to stderr.

    Args:
        verbose: 0 WARNING, 1 INFO, 2 DEBUG, 3+ TRACE
    """
    level = _LEVELS.get(verbose, TRACE)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )
    library_level = logging.DEBUG if level <= TRACE else logging.WARNING
    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger."""
    return logging.getLogger(name)
