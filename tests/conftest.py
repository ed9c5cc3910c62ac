"""
txevents Test Configuration and Fixtures

Provides a bus, a transactional dispatcher wrapping it, and a transaction
manager that drives the dispatcher through lifecycle events.
"""

import pytest

from txevents.bootstrap.config import DEFAULT_EXCLUDE, reset_config
from txevents.kernel.event_dispatcher import EventDispatcher
from txevents.kernel.transactional_dispatcher import TransactionalDispatcher
from txevents.transactions.manager import TransactionManager


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Isolate tests from TXEVENTS_* variables and the cached config."""
    for name in (
        "TXEVENTS_INCLUDE",
        "TXEVENTS_EXCLUDE",
        "TXEVENTS_STACK_SCOPE",
        "TXEVENTS_ENVIRONMENT",
        "TXEVENTS_DEBUG",
        "TXEVENTS_LOG_LEVEL",
        "TXEVENTS_LOG_FILE",
        "TXEVENTS_JSON_LOGS",
        "TXEVENTS_LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def bus():
    """Underlying event bus."""
    return EventDispatcher()


@pytest.fixture
def events(bus):
    """Transactional dispatcher with no include patterns yet."""
    return TransactionalDispatcher(bus, include=[], exclude=DEFAULT_EXCLUDE)


@pytest.fixture
def transactions(events):
    """Transaction manager reporting its lifecycle on the dispatcher."""
    return TransactionManager(events)
