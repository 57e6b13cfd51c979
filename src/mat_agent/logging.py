"""Logging configuration for the mat_agent package."""

import logging
import sys
from typing import TextIO

ROOT_LOGGER_NAME = "mat_agent"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Attach a single stream handler to the package logger.

    Calling this again replaces the previously installed handler.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_mat_agent_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._mat_agent_handler = True
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger

