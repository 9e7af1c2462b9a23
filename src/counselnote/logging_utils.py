"""Logging setup for the counselnote package logger."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Callable

LOGGER_NAME = "counselnote"
LOG_FILENAME = "counselnote.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _has_handler(logger: logging.Logger, match: Callable[[logging.Handler], bool]) -> bool:
    return any(match(h) for h in logger.handlers)


def _is_console(handler: logging.Handler) -> bool:
    # FileHandler subclasses StreamHandler.
    return type(handler) is logging.StreamHandler


def setup_logging(
    log_dir: str = "logs",
    level: int = logging.INFO,
    console: bool = False,
) -> tuple[logging.Logger, str]:
    """Attach a rotating session log to the package logger.

    With ``console`` set, warnings and errors (microphone and AI failures) are
    also echoed to stderr. Calling this again with the same arguments does not
    add handlers twice.
    """
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.abspath(os.path.join(log_dir, LOG_FILENAME))
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if not _has_handler(
        logger,
        lambda h: isinstance(h, RotatingFileHandler) and h.baseFilename == log_path,
    ):
        file_handler = RotatingFileHandler(
            log_path, maxBytes=2_000_000, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console and not _has_handler(logger, _is_console):
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(logging.WARNING)
        stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(stream_handler)

    return logger, log_path
