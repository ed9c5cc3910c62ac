"""
transactions/stack.py - Transaction frame stack

One frame per open transaction level. Events deferred while a level is
open are appended to its frame. Commit pops the frame and hands its
records back for replay; rollback pops and drops them.

INVARIANT: depth == current transaction nesting depth. Only the top
frame is ever appended to or popped.
"""

from __future__ import annotations
from typing import List, Optional
import logging
import threading

from txevents.errors import NoOpenTransactionError

from .schemas import DispatchRecord, FrameStatus, StackScope, TransactionFrame


logger = logging.getLogger(__name__)


class TransactionStack:
    """
    Stack of open transaction frames.

    Every operation holds an internal lock for its whole duration, so a
    stack shared between threads never sees a half-applied push or pop.
    Sharing one stack between unrelated concurrent units of work still
    interleaves their nesting; use ThreadScopedTransactionStack for that.
    """

    def __init__(self):
        self._frames: List[TransactionFrame] = []
        self._lock = threading.RLock()

    def _stack(self) -> List[TransactionFrame]:
        return self._frames

    @property
    def depth(self) -> int:
        """Current nesting depth."""
        with self._lock:
            return len(self._stack())

    @property
    def top(self) -> Optional[TransactionFrame]:
        """Innermost open frame, if any."""
        with self._lock:
            frames = self._stack()
            return frames[-1] if frames else None

    def is_open(self) -> bool:
        """Check whether at least one transaction is open."""
        return self.depth > 0

    def begin(self) -> TransactionFrame:
        """Push a new empty frame."""
        frame = TransactionFrame()
        with self._lock:
            frames = self._stack()
            frames.append(frame)
            depth = len(frames)
        logger.debug(f"Frame {frame.frame_id} opened at depth {depth}")
        return frame

    def commit(self) -> List[DispatchRecord]:
        """
        Pop the top frame and return its records for replay.

        The frame is popped before anything is replayed, so events the
        caller defers during replay land in the parent frame.

        Returns:
            Queued records in insertion order, or [] if no frame is open
        """
        frame = self._pop(FrameStatus.FLUSHED)
        if frame is None:
            return []
        logger.debug(f"Frame {frame.frame_id} flushed with {len(frame.records)} record(s)")
        return list(frame.records)

    def commit_into_parent(self) -> List[DispatchRecord]:
        """
        Pop the top frame and move its records into the parent frame.

        Pop and merge happen under one lock acquisition, so no frame
        pushed by another flow can slip in between.

        Returns:
            The records to replay now: the popped frame's records when it
            was the outermost frame, otherwise []
        """
        with self._lock:
            frame = self._pop(FrameStatus.FLUSHED)
            if frame is None:
                return []
            frames = self._stack()
            if frames:
                frames[-1].records.extend(frame.records)
                logger.debug(
                    f"Frame {frame.frame_id} merged {len(frame.records)} record(s) "
                    f"into parent {frames[-1].frame_id}"
                )
                return []
        logger.debug(f"Frame {frame.frame_id} flushed with {len(frame.records)} record(s)")
        return list(frame.records)

    def rollback(self) -> List[DispatchRecord]:
        """
        Pop the top frame and discard its records.

        Returns:
            The discarded records, or [] if no frame is open
        """
        frame = self._pop(FrameStatus.DISCARDED)
        if frame is None:
            return []
        logger.debug(f"Frame {frame.frame_id} discarded {len(frame.records)} record(s)")
        return list(frame.records)

    def enqueue(self, record: DispatchRecord) -> None:
        """
        Append a record to the top frame.

        Raises:
            NoOpenTransactionError: If no frame is open
        """
        with self._lock:
            frames = self._stack()
            if not frames:
                raise NoOpenTransactionError(
                    f"Cannot queue {record.name or record.event!r}: no open transaction"
                )
            frames[-1].records.append(record)

    def _pop(self, status: FrameStatus) -> Optional[TransactionFrame]:
        with self._lock:
            frames = self._stack()
            if not frames:
                logger.debug(f"No open frame to mark {status.value}, ignoring")
                return None
            frame = frames.pop()
        frame.close(status)
        return frame

    def clear(self) -> None:
        """Discard every frame."""
        with self._lock:
            self._stack().clear()


class ThreadScopedTransactionStack(TransactionStack):
    """
    Transaction stack with one independent set of frames per thread.

    Begin, commit and rollback notifications must arrive on the thread
    that runs the transaction, which holds for synchronous resources.
    """

    def __init__(self):
        super().__init__()
        self._local = threading.local()

    def _stack(self) -> List[TransactionFrame]:
        frames = getattr(self._local, "frames", None)
        if frames is None:
            frames = []
            self._local.frames = frames
        return frames


def create_stack(scope: StackScope = StackScope.SHARED) -> TransactionStack:
    """Build a transaction stack for the given scope."""
    if scope == StackScope.THREAD:
        return ThreadScopedTransactionStack()
    return TransactionStack()
