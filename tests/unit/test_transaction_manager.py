"""
Unit tests for TransactionManager.

Tests nesting bookkeeping and the lifecycle events it emits.
"""

import pytest
from unittest.mock import Mock

from txevents.kernel.event_dispatcher import EventDispatcher
from txevents.kernel.events import (
    TransactionBeginning,
    TransactionCommitted,
    TransactionRolledBack,
)
from txevents.transactions.manager import TransactionManager, atomic
from txevents.transactions.schemas import TransactionStatus


@pytest.fixture
def recorder():
    """Bus that records lifecycle events in order."""
    bus = EventDispatcher()
    seen = []
    for event_type in (TransactionBeginning, TransactionCommitted, TransactionRolledBack):
        bus.listen(event_type, seen.append)
    bus.seen = seen
    return bus


def kinds(seen):
    return [(type(event).__name__, event.level) for event in seen]


class TestBeginCommitRollback:
    """Tests for the basic lifecycle."""

    def test_begin_emits_beginning(self, recorder):
        """begin() pushes a transaction and announces it."""
        manager = TransactionManager(recorder, connection="orders_db")

        tx = manager.begin(source="test")

        assert manager.level == 1
        assert manager.active_transaction is tx
        assert tx.status == TransactionStatus.ACTIVE
        event = recorder.seen[0]
        assert isinstance(event, TransactionBeginning)
        assert event.transaction_id == tx.transaction_id
        assert event.connection == "orders_db"

    def test_commit_emits_committed(self, recorder):
        """commit() pops the transaction and announces it."""
        manager = TransactionManager(recorder)
        tx = manager.begin()

        assert manager.commit() is True

        assert manager.level == 0
        assert tx.status == TransactionStatus.COMMITTED
        assert tx.completed_at is not None
        assert kinds(recorder.seen) == [("TransactionBeginning", 1), ("TransactionCommitted", 1)]

    def test_rollback_emits_rolled_back(self, recorder):
        """rollback() pops the transaction and announces it."""
        manager = TransactionManager(recorder)
        tx = manager.begin()

        assert manager.rollback(tx.transaction_id) is True

        assert tx.status == TransactionStatus.ROLLED_BACK
        assert kinds(recorder.seen) == [("TransactionBeginning", 1), ("TransactionRolledBack", 1)]

    def test_nested_levels(self, recorder):
        """Nested transactions report their depth and parent."""
        manager = TransactionManager(recorder)
        outer = manager.begin()
        inner = manager.begin()

        assert inner.level == 2
        assert inner.parent_transaction_id == outer.transaction_id

        manager.commit()
        manager.commit()

        assert kinds(recorder.seen) == [
            ("TransactionBeginning", 1),
            ("TransactionBeginning", 2),
            ("TransactionCommitted", 2),
            ("TransactionCommitted", 1),
        ]


class TestMisuse:
    """Tests for invalid commit/rollback calls."""

    def test_commit_without_transaction(self, recorder):
        """Committing nothing returns False and emits nothing."""
        manager = TransactionManager(recorder)

        assert manager.commit() is False
        assert manager.rollback() is False
        assert recorder.seen == []

    def test_commit_outer_while_inner_open(self, recorder):
        """Only the innermost transaction may be resolved."""
        manager = TransactionManager(recorder)
        outer = manager.begin()
        manager.begin()

        assert manager.commit(outer.transaction_id) is False
        assert manager.level == 2
        assert len(recorder.seen) == 2


class TestContextManager:
    """Tests for transaction()."""

    def test_commits_on_success(self, recorder):
        """A clean block commits."""
        manager = TransactionManager(recorder)

        with manager.transaction(source="block") as tx:
            assert manager.active_transaction is tx

        assert tx.status == TransactionStatus.COMMITTED

    def test_rolls_back_and_reraises(self, recorder):
        """A failing block rolls back and re-raises."""
        manager = TransactionManager(recorder)

        with pytest.raises(ValueError):
            with manager.transaction() as tx:
                raise ValueError("nope")

        assert tx.status == TransactionStatus.ROLLED_BACK
        assert manager.level == 0

    def test_commit_listener_error_is_not_rolled_back(self):
        """A listener failing on commit propagates; the commit stands."""
        bus = EventDispatcher()
        bus.listen(TransactionCommitted, Mock(side_effect=RuntimeError("flush failed")))
        rolled_back = Mock()
        bus.listen(TransactionRolledBack, rolled_back)
        manager = TransactionManager(bus)

        with pytest.raises(RuntimeError, match="flush failed"):
            with manager.transaction() as tx:
                pass

        assert tx.status == TransactionStatus.COMMITTED
        rolled_back.assert_not_called()


class TestAtomic:
    """Tests for the atomic decorator."""

    def test_wraps_call_in_transaction(self, recorder):
        """The decorated function runs inside a transaction."""
        manager = TransactionManager(recorder)

        @atomic(manager)
        def place_order(order_id):
            """Place an order."""
            return manager.level, order_id

        assert place_order(7) == (1, 7)
        assert place_order.__name__ == "place_order"
        assert manager.get_history()[-1].source == "place_order"


class TestHistory:
    """Tests for history and summary."""

    def test_history_and_summary(self, recorder):
        """Completed transactions are counted by status."""
        manager = TransactionManager(recorder)
        manager.begin()
        manager.commit()
        manager.begin()
        manager.rollback()
        manager.begin()

        assert len(manager.get_history()) == 2
        assert manager.get_summary() == {
            "active": 1,
            "committed": 1,
            "rolled_back": 1,
        }
