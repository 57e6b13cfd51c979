"""Tests for package logging setup."""

import io
import logging

from mat_agent.logging import ROOT_LOGGER_NAME, setup_logging


def test_setup_logging_attaches_one_handler():
    stream = io.StringIO()
    logger = setup_logging(level=logging.DEBUG, stream=stream)
    setup_logging(level=logging.DEBUG, stream=stream)

    tagged = [h for h in logger.handlers if getattr(h, "_mat_agent_handler", False)]
    assert len(tagged) == 1
    assert logger.name == ROOT_LOGGER_NAME
    assert logger.level == logging.DEBUG
    assert logger.propagate is False


def test_module_loggers_write_to_stream():
    stream = io.StringIO()
    setup_logging(stream=stream)

    logging.getLogger("mat_agent.patcher.fallback").info("Strategy %d succeeded", 2)
    logging.getLogger("mat_agent.patcher.fallback").debug("hidden")

    output = stream.getvalue()
    assert "INFO mat_agent.patcher.fallback: Strategy 2 succeeded" in output
    assert "hidden" not in output
