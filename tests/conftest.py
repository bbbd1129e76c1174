"""Shared fixtures."""
import logging

import pytest


@pytest.fixture(autouse=True)
def reset_package_loggers():
    """Undo handlers installed by setup_logging() so caplog sees every record."""
    yield
    for name in ("vmnetconf", "vmnetconf.perf"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


@pytest.fixture
def no_interfaces():
    """Interface check that reports every host interface as missing."""
    return lambda name: False


@pytest.fixture
def all_interfaces():
    """Interface check that reports every host interface as present."""
    return lambda name: True
