"""Action and error logs written alongside the console output."""
from __future__ import annotations

import logging
import sys

from .config import Settings

LOGGER_NAME = "accountops.actions"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _BelowErrorFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.ERROR


def configure_logging(settings: Settings) -> logging.Logger:
    """Route INFO lines to ``actions.log``/stdout and ERROR lines to ``errors.log``/stderr.

    Calling this again replaces the handlers installed by a previous call.
    """

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(logging.INFO)
    logger.propagate = False
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    actions_file = logging.FileHandler(settings.actions_log, mode="a", encoding="utf-8", delay=True)
    actions_stream = logging.StreamHandler(sys.stdout)
    for handler in (actions_file, actions_stream):
        handler.setLevel(logging.INFO)
        handler.addFilter(_BelowErrorFilter())

    errors_file = logging.FileHandler(settings.errors_log, mode="a", encoding="utf-8", delay=True)
    errors_stream = logging.StreamHandler(sys.stderr)
    for handler in (errors_file, errors_stream):
        handler.setLevel(logging.ERROR)

    for handler in (actions_file, actions_stream, errors_file, errors_stream):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


__all__ = ["configure_logging", "LOGGER_NAME"]
