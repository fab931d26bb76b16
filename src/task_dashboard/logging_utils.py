"""Logging utilities with custom trace level."""

import logging
from typing import Any

# Define custom TRACE level (lower than DEBUG)
TRACE_LEVEL = 5

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def add_trace_level() -> None:
    """Add a custom TRACE logging level."""
    logging.addLevelName(TRACE_LEVEL, "TRACE")

    def trace(self: logging.Logger, message: str, *args: Any, **kwargs: Any) -> None:
        """Log a message with severity 'TRACE'."""
        if self.isEnabledFor(TRACE_LEVEL):
            self._log(TRACE_LEVEL, message, args, **kwargs)

    # Monkey patch the Logger class
    logging.Logger.trace = trace  # type: ignore[attr-defined]


def get_logger(name: str) -> logging.Logger:
    """Get a logger with trace support."""
    if not hasattr(logging.Logger, "trace"):
        add_trace_level()

    return logging.getLogger(name)


def configure_logging(verbose: bool = False, trace: bool = False) -> None:
    """
    Configure root logging for command-line entry points.

    Args:
        verbose: Log at DEBUG level
        trace: Log at TRACE level, including per-row diagnostics
    """
    add_trace_level()

    if trace:
        logging.basicConfig(level=TRACE_LEVEL, format=LOG_FORMAT)
        logging.getLogger("httpx").setLevel(logging.DEBUG)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT)
        logging.getLogger("httpx").setLevel(logging.INFO)
    else:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)
