"""Shared pytest fixtures."""

import logging

import pytest

from contact_reminder.utils.logging import ROOT_LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging() so later tests see records through caplog."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    logger.disabled = False
