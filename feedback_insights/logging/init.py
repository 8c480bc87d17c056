from __future__ import annotations

import logging
import sys

"""Console logging for the analyzer.

Lines are written to stdout as ``LABEL message`` where LABEL is one of
DEBUG|INFO|WARN|ERROR|SUMMARY. Module loggers under ``feedback_insights``
propagate into the package logger configured here; failure details of a run
also go to the error log buffer (feedback_insights.logging.error_log).
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "feedback_insights"

# between INFO (20) and WARNING (30)
SUMMARY_LEVEL = 25

_LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
    SUMMARY_LEVEL: "SUMMARY",
}


class LabeledFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return f"{_LABELS.get(record.levelno, record.levelname)} {record.getMessage()}"


def _console_handler(logger: logging.Logger) -> logging.Handler | None:
    for handler in logger.handlers:
        if isinstance(handler.formatter, LabeledFormatter):
            return handler
    return None


def setup_logging(debug: bool = False) -> logging.Logger:
    """Attach the labeled stdout handler to the package logger.

    Calling it again reuses the existing handler and only adjusts the level,
    so ``--debug`` can be applied after the first call.
    """
    logger = logging.getLogger(LOGGER_NAME)
    handler = _console_handler(logger)
    if handler is None:
        logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(LabeledFormatter())
        logger.addHandler(handler)
        # root handlers would print every line twice
        logger.propagate = False

    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)
    handler.setLevel(level)
    return logger


def log_summary(message: str) -> None:
    logging.getLogger(LOGGER_NAME).log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Detach the console handler (tests re-run setup against a fresh stdout)."""
    logger = logging.getLogger(LOGGER_NAME)
    handler = _console_handler(logger)
    if handler is not None:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
