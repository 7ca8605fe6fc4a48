"""Pytest configuration and shared fixtures."""

import pytest

from event_emitter import Dispatcher, EmitterOptions


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture
def dispatcher():
    return Dispatcher()


@pytest.fixture
def small_dispatcher():
    """Dispatcher that accepts only two handlers per key."""
    return Dispatcher(options=EmitterOptions(max_handlers_per_key=2))
