"""Shared fixtures for PARA Publisher tests."""

import logging

import pytest

from para_publisher._logging import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging() so each test starts with a bare logger."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def write_doc(tmp_path):
    """Write a markdown file below tmp_path, creating parent directories."""
    def _write(relative: str, content: str):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')
        return path
    return _write
