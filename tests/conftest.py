"""Shared test fixtures."""

import logging

import pytest

from tumbler.core.container import Container, set_current_container


@pytest.fixture
def container():
    """Create a fresh container for testing."""
    container = Container()
    yield container
    container.flush()


@pytest.fixture(autouse=True)
def reset_current_container():
    """Make sure no test leaks a current container into the next."""
    yield
    set_current_container(None)


@pytest.fixture
def debug_logs(caplog):
    """Capture DEBUG records from the tumbler loggers."""
    caplog.set_level(logging.DEBUG, logger="tumbler")
    return caplog
