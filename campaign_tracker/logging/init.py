from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Labeled console logging for import runs.

Lines on stdout read ``LABEL message`` with LABEL one of INFO, WARN, ERROR or
SUMMARY, so wrapper scripts can grep the run outcome. With --debug, DEBUG
lines appear too and every line names the module it came from
(``DEBUG [csvimport.parser] header cells=...``).

Module loggers inside the package (``logging.getLogger(__name__)``) are
children of ``campaign_tracker`` and reach the single handler configured here.
"""

__all__ = [
    "APP_LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
]

APP_LOGGER_NAME = "campaign_tracker"

# Run outcome line; sits between INFO and WARNING so it survives a WARN threshold
SUMMARY_LEVEL = 25

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """``LABEL message``, optionally with the short module name."""

    LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def __init__(self, show_origin: bool = False) -> None:
        super().__init__()
        self.show_origin = show_origin

    def format(self, record: logging.LogRecord) -> str:
        label = self.LABELS.get(record.levelno, record.levelname)
        if self.show_origin and record.name.startswith(APP_LOGGER_NAME + "."):
            origin = record.name[len(APP_LOGGER_NAME) + 1:]
            return f"{label} [{origin}] {record.getMessage()}"
        return f"{label} {record.getMessage()}"


def _configure(logger: logging.Logger, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)
    for h in logger.handlers:
        h.setLevel(level)
        h.setFormatter(LabeledFormatter(show_origin=debug))


def setup_logging(debug: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Configure the ``campaign_tracker`` logger once per process.

    A repeated call with debug=True switches the existing handler to DEBUG;
    a repeated call without it leaves the configuration alone.

    Args:
        debug: Show DEBUG lines with their module names
        stream: Output stream (stdout when omitted)
    """
    global _logger

    if _logger is not None:
        if debug:
            _configure(_logger, debug=True)
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(APP_LOGGER_NAME)
    for old in logger.handlers[:]:
        logger.removeHandler(old)
    logger.addHandler(logging.StreamHandler(stream if stream is not None else sys.stdout))
    # The root logger must not print the same line again
    logger.propagate = False
    _configure(logger, debug)

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    return _logger if _logger is not None else setup_logging()


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Drop the handler so the next setup_logging() binds to the current stdout (tests)."""
    global _logger
    if _logger is not None:
        for handler in _logger.handlers[:]:
            _logger.removeHandler(handler)
        _logger.propagate = True
    _logger = None
