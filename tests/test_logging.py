"""Tests for structlog setup."""

import logging

import structlog

from pipewright.logging import NOISY_LOGGERS, bind_context, configure_logging, level_for


def test_level_for():
    assert level_for() == logging.WARNING
    assert level_for(verbose=True) == logging.INFO
    assert level_for(verbose=True, debug=True) == logging.DEBUG


def test_configure_logging_quiets_noisy_loggers():
    saved = structlog.get_config()
    try:
        configure_logging(logging.DEBUG)

        assert logging.getLogger().level == logging.DEBUG
        assert len(logging.getLogger().handlers) == 1
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
    finally:
        logging.basicConfig(level=logging.WARNING, force=True)
        structlog.configure(**saved)


def test_bind_context():
    try:
        logger = bind_context(command="configure")
        assert structlog.contextvars.get_contextvars()["command"] == "configure"
        assert structlog.get_context(logger)["command"] == "configure"
    finally:
        structlog.contextvars.clear_contextvars()
