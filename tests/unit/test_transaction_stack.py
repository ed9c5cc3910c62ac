"""
Unit tests for TransactionStack.

Tests push/pop discipline, FIFO flush order, empty-stack no-ops and
thread scoping.
"""

import threading

import pytest

from txevents.errors import ErrorCode, NoOpenTransactionError
from txevents.transactions.schemas import DispatchRecord, FrameStatus, StackScope
from txevents.transactions.stack import (
    ThreadScopedTransactionStack,
    TransactionStack,
    create_stack,
)


def record(name: str) -> DispatchRecord:
    return DispatchRecord(event=name, payload=None, name=name)


class TestStackBasics:
    """Tests for begin and depth tracking."""

    def test_starts_empty(self):
        """A new stack has no open transaction."""
        stack = TransactionStack()

        assert stack.depth == 0
        assert stack.is_open() is False
        assert stack.top is None

    def test_begin_pushes_open_frame(self):
        """begin() pushes an empty open frame."""
        stack = TransactionStack()

        frame = stack.begin()

        assert stack.depth == 1
        assert stack.is_open() is True
        assert stack.top is frame
        assert frame.status == FrameStatus.OPEN
        assert frame.records == []

    def test_nested_begin(self):
        """Each begin adds one level."""
        stack = TransactionStack()
        outer = stack.begin()
        inner = stack.begin()

        assert stack.depth == 2
        assert stack.top is inner
        assert outer is not inner


class TestCommit:
    """Tests for commit()."""

    def test_commit_returns_records_in_order(self):
        """Records come back in insertion order."""
        stack = TransactionStack()
        stack.begin()
        for name in ("a", "b", "c"):
            stack.enqueue(record(name))

        records = stack.commit()

        assert [r.name for r in records] == ["a", "b", "c"]
        assert stack.depth == 0

    def test_commit_pops_only_top(self):
        """Committing the child leaves the parent's queue untouched."""
        stack = TransactionStack()
        parent = stack.begin()
        stack.enqueue(record("parent"))
        stack.begin()
        stack.enqueue(record("child"))

        records = stack.commit()

        assert [r.name for r in records] == ["child"]
        assert stack.top is parent
        assert [r.name for r in parent.records] == ["parent"]

    def test_commit_marks_frame_flushed(self):
        """The popped frame is closed as flushed."""
        stack = TransactionStack()
        frame = stack.begin()

        stack.commit()

        assert frame.status == FrameStatus.FLUSHED
        assert frame.closed_at is not None

    def test_commit_pops_before_returning(self):
        """Records enqueued after commit go to the parent."""
        stack = TransactionStack()
        parent = stack.begin()
        stack.begin()
        stack.enqueue(record("child"))

        for r in stack.commit():
            stack.enqueue(r)

        assert [r.name for r in parent.records] == ["child"]

    def test_commit_on_empty_stack_is_noop(self):
        """Commit without a frame does nothing."""
        stack = TransactionStack()

        assert stack.commit() == []
        assert stack.depth == 0


class TestCommitIntoParent:
    """Tests for committing a child frame into its parent."""

    def test_child_records_join_parent(self):
        """A child's records are appended to the parent, nothing to replay."""
        stack = TransactionStack()
        parent = stack.begin()
        stack.enqueue(record("parent"))
        child = stack.begin()
        stack.enqueue(record("child-1"))
        stack.enqueue(record("child-2"))

        assert stack.commit_into_parent() == []

        assert stack.depth == 1
        assert child.status == FrameStatus.FLUSHED
        assert [r.name for r in parent.records] == ["parent", "child-1", "child-2"]

    def test_outermost_returns_records(self):
        """The outermost frame's records come back for replay."""
        stack = TransactionStack()
        stack.begin()
        stack.enqueue(record("a"))
        stack.enqueue(record("b"))

        assert [r.name for r in stack.commit_into_parent()] == ["a", "b"]
        assert stack.depth == 0

    def test_empty_stack_is_noop(self):
        """Nothing open means nothing to do."""
        stack = TransactionStack()

        assert stack.commit_into_parent() == []
        assert stack.depth == 0

    def test_waits_for_stack_lock(self):
        """Pop and merge run under the stack lock."""
        stack = TransactionStack()
        stack.begin()
        stack.begin()
        stack.enqueue(record("child"))
        done = threading.Event()

        def worker():
            stack.commit_into_parent()
            done.set()

        thread = threading.Thread(target=worker)
        with stack._lock:
            thread.start()
            assert done.wait(timeout=0.2) is False
            assert stack.depth == 2
        thread.join(timeout=5)

        assert done.is_set()
        assert [r.name for r in stack.top.records] == ["child"]


class TestRollback:
    """Tests for rollback()."""

    def test_rollback_discards_top_frame(self):
        """Rollback drops only the top frame's records."""
        stack = TransactionStack()
        parent = stack.begin()
        stack.enqueue(record("parent"))
        child = stack.begin()
        stack.enqueue(record("child"))

        discarded = stack.rollback()

        assert [r.name for r in discarded] == ["child"]
        assert child.status == FrameStatus.DISCARDED
        assert stack.top is parent
        assert [r.name for r in stack.commit()] == ["parent"]

    def test_rollback_on_empty_stack_is_noop(self):
        """Rollback without a frame does nothing."""
        stack = TransactionStack()

        assert stack.rollback() == []
        assert stack.depth == 0

    def test_repeated_empty_pops(self):
        """Any number of unmatched pops is harmless."""
        stack = TransactionStack()
        stack.begin()
        stack.commit()

        for _ in range(3):
            stack.commit()
            stack.rollback()

        assert stack.depth == 0


class TestEnqueue:
    """Tests for enqueue()."""

    def test_enqueue_without_transaction_raises(self):
        """Queueing with no open frame is a usage error."""
        stack = TransactionStack()

        with pytest.raises(NoOpenTransactionError) as exc_info:
            stack.enqueue(record("orphan"))

        assert exc_info.value.code == ErrorCode.USE_NO_TRANSACTION
        assert "orphan" in str(exc_info.value)

    def test_enqueue_goes_to_top(self):
        """Records always land in the innermost frame."""
        stack = TransactionStack()
        outer = stack.begin()
        inner = stack.begin()

        stack.enqueue(record("x"))

        assert outer.records == []
        assert [r.name for r in inner.records] == ["x"]

    def test_clear(self):
        """clear() drops every frame."""
        stack = TransactionStack()
        stack.begin()
        stack.begin()

        stack.clear()

        assert stack.depth == 0


class TestScopes:
    """Tests for shared and thread-scoped stacks."""

    def test_create_stack(self):
        """create_stack picks the implementation by scope."""
        assert type(create_stack()) is TransactionStack
        assert type(create_stack(StackScope.SHARED)) is TransactionStack
        assert isinstance(create_stack(StackScope.THREAD), ThreadScopedTransactionStack)

    def test_thread_scoped_stacks_are_independent(self):
        """Frames opened on one thread are invisible to another."""
        stack = ThreadScopedTransactionStack()
        stack.begin()
        stack.enqueue(record("main"))
        seen = {}

        def worker():
            seen["depth_before"] = stack.depth
            stack.begin()
            stack.enqueue(record("worker"))
            seen["records"] = [r.name for r in stack.commit()]
            seen["depth_after"] = stack.depth

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        assert seen == {"depth_before": 0, "records": ["worker"], "depth_after": 0}
        assert stack.depth == 1
        assert [r.name for r in stack.commit()] == ["main"]

    def test_shared_stack_is_visible_across_threads(self):
        """A shared stack is one stack for every thread."""
        stack = TransactionStack()
        stack.begin()
        seen = {}

        def worker():
            seen["depth"] = stack.depth

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        assert seen["depth"] == 1
