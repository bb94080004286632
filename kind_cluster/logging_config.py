"""Logging configuration for kind cluster management."""

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(level: str = "INFO", log_file: Path | None = None, verbose: bool = False) -> None:
    """Configure logging for the application.

    The console only shows warnings unless ``verbose`` is set, so retries and
    skipped kubeconfig cleanups are visible while lifecycle progress is not.
    The log file, when given, receives every record that passes the root level.

    Args:
        level: Root logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        verbose: If True, log DEBUG to the console as well
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else getattr(logging, level.upper()))
    root_logger.handlers.clear()

    console_level = logging.DEBUG if verbose else logging.WARNING
    root_logger.addHandler(_handler(logging.StreamHandler(sys.stderr), console_level))

    if log_file is None:
        return

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(_handler(logging.FileHandler(log_file), logging.DEBUG))
    except OSError as e:
        logging.getLogger(__name__).warning(f"Failed to create log file handler: {e}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance (typically for ``__name__``)."""
    return logging.getLogger(name)
