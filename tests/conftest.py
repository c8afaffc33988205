"""Shared pytest fixtures."""

import logging

import pytest


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by configure_logging() so tests stay isolated."""
    pkg_logger = logging.getLogger("taskpad")

    def _reset() -> None:
        for handler in list(pkg_logger.handlers):
            pkg_logger.removeHandler(handler)
        pkg_logger.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()
